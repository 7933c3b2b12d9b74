"""Unit tests for the app_config module."""
import os
from unittest.mock import patch, mock_open

import pytest
import yaml
from openai import AsyncOpenAI

from i18n_translate.app_config import (
    AppConfig,
    DEFAULT_BASE_URL,
    create_openai_client,
    create_translator,
    get_system_prompt,
    load_app_config,
    validate_app_config
)
from i18n_translate.exceptions import ConfigError


def _app_config(**overrides):
    values = dict(
        project_root="/test/root",
        translate_dir="./src/locales",
        api_key="sk-test",
        base_url=DEFAULT_BASE_URL,
        model_name="ep-123",
        temperature=0.2,
        max_model_tokens=4000,
        max_retries=3,
        requests_per_minute=60,
        source_language="en",
        target_languages=["zh-CN", "fr"],
        language_names={"en": "English", "zh-CN": "Chinese (Simplified)", "fr": "French"},
    )
    values.update(overrides)
    return AppConfig(**values)


class TestAppConfig:
    """Test cases for the AppConfig dataclass."""

    def test_app_config_creation(self):
        config = _app_config()

        assert config.project_root == "/test/root"
        assert config.model_name == "ep-123"
        assert config.dry_run is False
        assert config.system_prompt is None
        assert config.logging == {}


class TestLoadAppConfig:
    """Test cases for the load_app_config function."""

    def test_load_config_with_valid_yaml_file(self):
        mock_config = {
            "source_language": "en",
            "target_languages": ["zh-CN", "ja-JP"],
            "translate_dir": "./locales",
            "model_name": "ep-20240101",
            "temperature": 0.5,
            "dry_run": True,
            "supported_locales": [
                {"code": "ja-JP", "name": "Japanisch"},
                {"code": "sv", "name": "Swedish"}
            ],
            "logging": {
                "log_level": "DEBUG",
                "log_file_path": "test.log"
            }
        }

        with patch("builtins.open", mock_open(read_data=yaml.dump(mock_config))):
            with patch("os.path.exists", return_value=True):
                with patch("i18n_translate.app_config.load_dotenv"):
                    with patch.dict(os.environ, {}, clear=True):
                        config = load_app_config(project_root="/test/root")

        assert config.project_root == "/test/root"
        assert config.translate_dir == "./locales"
        assert config.model_name == "ep-20240101"
        assert config.temperature == 0.5
        assert config.dry_run is True
        assert config.target_languages == ["zh-CN", "ja-JP"]
        assert config.language_names["ja-JP"] == "Japanisch"
        assert config.language_names["sv"] == "Swedish"
        assert config.language_names["fr"] == "French"
        assert config.logging["log_level"] == "DEBUG"
        assert config.api_key is None

    def test_load_config_with_missing_file_uses_defaults(self, capsys):
        with patch("os.path.exists", return_value=False):
            with patch.dict(os.environ, {}, clear=True):
                config = load_app_config(project_root="/test/root")

        assert config.source_language == "en"
        assert config.target_languages == []
        assert config.translate_dir == "./src/locales"
        assert config.base_url == DEFAULT_BASE_URL
        assert config.model_name == ""
        assert config.temperature == 0.2
        assert config.max_model_tokens == 4000
        assert config.max_retries == 3
        assert config.requests_per_minute == 60
        assert config.dry_run is False
        assert "not found" in capsys.readouterr().err

    def test_load_config_with_environment_overrides(self):
        mock_config = {"model_name": "ep-from-file", "base_url": "https://file.example.com/v1"}

        with patch("builtins.open", mock_open(read_data=yaml.dump(mock_config))):
            with patch("os.path.exists", return_value=True):
                with patch("i18n_translate.app_config.load_dotenv"):
                    with patch.dict(os.environ, {
                        "I18N_TRANSLATE_API_KEY": "sk-env",
                        "I18N_TRANSLATE_MODEL": "ep-from-env",
                        "I18N_TRANSLATE_BASE_URL": "https://env.example.com/v1"
                    }, clear=True):
                        config = load_app_config(project_root="/test/root")

        assert config.api_key == "sk-env"
        assert config.model_name == "ep-from-env"
        assert config.base_url == "https://env.example.com/v1"

    def test_openai_api_key_is_a_fallback(self):
        with patch("os.path.exists", return_value=False):
            with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-openai"}, clear=True):
                config = load_app_config(project_root="/test/root")

        assert config.api_key == "sk-openai"

    def test_comma_separated_target_languages(self):
        mock_config = {"target_languages": "zh-CN, fr,,de"}

        with patch("builtins.open", mock_open(read_data=yaml.dump(mock_config))):
            with patch("os.path.exists", return_value=True):
                with patch("i18n_translate.app_config.load_dotenv"):
                    with patch.dict(os.environ, {}, clear=True):
                        config = load_app_config(project_root="/test/root")

        assert config.target_languages == ["zh-CN", "fr", "de"]

    def test_config_file_from_environment(self, tmp_path):
        config_path = tmp_path / "custom.yaml"
        config_path.write_text(yaml.dump({"source_language": "de"}), encoding="utf-8")

        with patch.dict(os.environ, {"I18N_TRANSLATE_CONFIG_FILE": str(config_path)}, clear=True):
            config = load_app_config(project_root=str(tmp_path))

        assert config.source_language == "de"

    def test_dotenv_file_is_loaded(self, tmp_path):
        (tmp_path / ".env").write_text("I18N_TRANSLATE_API_KEY=sk-dotenv\n", encoding="utf-8")
        (tmp_path / "i18n_translate.yaml").write_text(yaml.dump({"model_name": "ep-1"}), encoding="utf-8")

        with patch.dict(os.environ, {}, clear=True):
            config = load_app_config(project_root=str(tmp_path))

        assert config.api_key == "sk-dotenv"
        assert config.model_name == "ep-1"

    def test_load_config_with_invalid_yaml(self, capsys):
        with patch("builtins.open", mock_open(read_data="invalid: yaml: content: [")):
            with patch("os.path.exists", return_value=True):
                with patch("i18n_translate.app_config.load_dotenv"):
                    with patch.dict(os.environ, {}, clear=True):
                        config = load_app_config(project_root="/test/root")

        assert config.source_language == "en"
        assert "Invalid YAML" in capsys.readouterr().err

    def test_load_config_with_non_mapping_yaml(self, capsys):
        with patch("builtins.open", mock_open(read_data=yaml.dump(["a", "b"]))):
            with patch("os.path.exists", return_value=True):
                with patch("i18n_translate.app_config.load_dotenv"):
                    with patch.dict(os.environ, {}, clear=True):
                        config = load_app_config(project_root="/test/root")

        assert config.target_languages == []
        assert "must contain a YAML dictionary" in capsys.readouterr().err


class TestValidateAppConfig:

    def test_valid_config(self):
        validate_app_config(_app_config())

    def test_missing_api_key(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_app_config(_app_config(api_key=None))
        assert exc_info.value.details["missing_field"] == "api_key"

    def test_missing_model(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_app_config(_app_config(model_name=""))
        assert exc_info.value.details["missing_field"] == "model_name"

    def test_no_target_languages(self):
        with pytest.raises(ConfigError):
            validate_app_config(_app_config(target_languages=[]))

    def test_only_source_language_as_target(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_app_config(_app_config(target_languages=["en"]))
        assert exc_info.value.code == "config_error"


class TestSystemPrompt:

    def test_configured_prompt_is_used_verbatim(self):
        config = _app_config(system_prompt="Translate {exactly} as JSON.")
        assert get_system_prompt(config) == "Translate {exactly} as JSON."

    def test_default_prompt_lists_languages_in_use(self):
        prompt = get_system_prompt(_app_config(target_languages=["fr"], project_context="A recipe app."))
        assert "en->English, fr->French" in prompt
        assert "zh-CN->" not in prompt.split("Language codes:")[1].splitlines()[0]
        assert "A recipe app." in prompt

    def test_unknown_language_falls_back_to_code(self):
        prompt = get_system_prompt(_app_config(target_languages=["tlh"]))
        assert "tlh->tlh" in prompt


class TestClientFactories:

    def test_create_openai_client(self):
        client = create_openai_client(_app_config(base_url="https://ark.example.com/api/v3"))
        assert isinstance(client, AsyncOpenAI)
        assert client.api_key == "sk-test"
        assert str(client.base_url).startswith("https://ark.example.com/api/v3")

    def test_create_translator(self):
        translator = create_translator(_app_config(max_retries=5, requests_per_minute=10), client=object())
        assert translator.model_name == "ep-123"
        assert translator.max_retries == 5
        assert translator.rate_limiter.max_rate == 10
