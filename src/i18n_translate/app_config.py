"""Application configuration: YAML file, .env file and environment overrides."""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

import yaml
from aiolimiter import AsyncLimiter
from dotenv import load_dotenv
from openai import AsyncOpenAI

from i18n_translate.exceptions import ConfigError
from i18n_translate.logging_config import setup_logger
from i18n_translate.prompts import LANGUAGE_NAMES, build_system_prompt
from i18n_translate.translator import OpenAITranslator

DEFAULT_CONFIG_FILE_NAME = 'i18n_translate.yaml'
# Volcengine Ark exposes an OpenAI-compatible chat completions API.
DEFAULT_BASE_URL = 'https://ark.cn-beijing.volces.com/api/v3'


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Core paths
    project_root: str
    translate_dir: str

    # Translation service
    api_key: Optional[str]
    base_url: str
    model_name: str
    temperature: float
    max_model_tokens: int
    max_retries: int
    requests_per_minute: int

    # Language configuration
    source_language: str
    target_languages: List[str]
    language_names: Dict[str, str]

    # Processing settings
    dry_run: bool = False

    # Prompting; a configured system_prompt is used verbatim
    project_context: Optional[str] = None
    system_prompt: Optional[str] = None

    logging: Dict[str, Any] = field(default_factory=dict)


def _load_dotenv_files(project_root: str) -> None:
    """Load the .env file from the project root, if present."""
    dotenv_path = os.path.join(project_root, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)


def _resolve_config_file(project_root: str, config_file: Optional[str]) -> str:
    default_config_path = os.path.join(project_root, DEFAULT_CONFIG_FILE_NAME)
    resolved = config_file or os.environ.get('I18N_TRANSLATE_CONFIG_FILE', default_config_path)
    if not os.path.isabs(resolved):
        resolved = os.path.abspath(os.path.join(project_root, resolved))
    return resolved


def _load_yaml_config(config_file: str) -> Dict[str, Any]:
    """Load the YAML configuration file; fall back to defaults on any problem."""
    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            print(f"Tip: Create {DEFAULT_CONFIG_FILE_NAME} in the project root or set I18N_TRANSLATE_CONFIG_FILE.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except (OSError, IOError) as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def setup_logger_from_config(app_config: AppConfig) -> logging.Logger:
    """Set up the package logger based on the ``logging`` section."""
    log_config = app_config.logging or {}
    log_level_str = log_config.get('log_level', 'INFO').upper()
    log_file_path = log_config.get('log_file_path', 'logs/i18n_translate.log')
    if log_file_path and not os.path.isabs(log_file_path):
        log_file_path = os.path.join(app_config.project_root, log_file_path)
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _build_language_names(locales_list: List[Dict[str, str]]) -> Dict[str, str]:
    """Merge configured locale names over the built-in table."""
    language_names = dict(LANGUAGE_NAMES)
    for locale in locales_list:
        code = locale.get('code')
        name = locale.get('name')
        if code and name:
            language_names[code] = name
    return language_names


def _as_language_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [code.strip() for code in value.split(',') if code.strip()]
    return [str(code) for code in (value or [])]


def load_app_config(config_file: Optional[str] = None, project_root: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from a YAML file and environment variables.

    Args:
        config_file: Explicit configuration file; defaults to
            ``I18N_TRANSLATE_CONFIG_FILE`` or ``i18n_translate.yaml`` in the project root.
        project_root: Directory holding ``.env`` and the default config file;
            defaults to the current working directory.

    Returns:
        AppConfig: The loaded application configuration. It is not validated;
        see ``validate_app_config``.
    """
    project_root = os.path.abspath(project_root or os.getcwd())

    _load_dotenv_files(project_root)

    config = _load_yaml_config(_resolve_config_file(project_root, config_file))

    source_language = config.get('source_language', 'en')
    target_languages = _as_language_list(config.get('target_languages', []))
    language_names = _build_language_names(config.get('supported_locales', []))

    api_key = os.environ.get('I18N_TRANSLATE_API_KEY') or os.environ.get('OPENAI_API_KEY') or config.get('api_key')

    return AppConfig(
        project_root=project_root,
        translate_dir=config.get('translate_dir', './src/locales'),
        api_key=api_key,
        base_url=os.environ.get('I18N_TRANSLATE_BASE_URL', config.get('base_url', DEFAULT_BASE_URL)),
        model_name=os.environ.get('I18N_TRANSLATE_MODEL', config.get('model_name', '')),
        temperature=float(config.get('temperature', 0.2)),
        max_model_tokens=int(config.get('max_model_tokens', 4000)),
        max_retries=int(config.get('max_retries', 3)),
        requests_per_minute=int(config.get('requests_per_minute', 60)),
        source_language=source_language,
        target_languages=target_languages,
        language_names=language_names,
        dry_run=bool(config.get('dry_run', False)),
        project_context=config.get('project_context'),
        system_prompt=config.get('system_prompt') or None,
        logging=config.get('logging', {}) or {},
    )


def validate_app_config(app_config: AppConfig) -> None:
    """
    Check the settings a translation run cannot start without.

    Raises:
        ConfigError: If the API key or model is missing, or no target language is configured.
    """
    if not app_config.api_key or not app_config.model_name:
        raise ConfigError(
            "Please configure the API key and model/endpoint id first "
            "(I18N_TRANSLATE_API_KEY and model_name or I18N_TRANSLATE_MODEL).",
            details={"missing_field": "api_key" if not app_config.api_key else "model_name"}
        )
    targets = [code for code in app_config.target_languages if code != app_config.source_language]
    if not targets:
        raise ConfigError("Please configure the target languages.", details={"missing_field": "target_languages"})


def get_system_prompt(app_config: AppConfig) -> str:
    """Return the configured system prompt, or build the default one for the languages in use."""
    if app_config.system_prompt:
        return app_config.system_prompt
    used_codes = [app_config.source_language] + list(app_config.target_languages)
    language_names = {code: app_config.language_names.get(code, code) for code in used_codes}
    return build_system_prompt(language_names, project_context=app_config.project_context)


def create_openai_client(app_config: AppConfig) -> AsyncOpenAI:
    """Create the async OpenAI-compatible client."""
    return AsyncOpenAI(api_key=app_config.api_key, base_url=app_config.base_url)


def create_translator(app_config: AppConfig, client: Optional[AsyncOpenAI] = None) -> OpenAITranslator:
    """Build the translator used as the orchestrator's translate function."""
    return OpenAITranslator(
        client=client or create_openai_client(app_config),
        model_name=app_config.model_name,
        temperature=app_config.temperature,
        max_retries=app_config.max_retries,
        rate_limiter=AsyncLimiter(max_rate=app_config.requests_per_minute, time_period=60),
        max_model_tokens=app_config.max_model_tokens,
    )
