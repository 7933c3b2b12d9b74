import json
import logging
import os

import pytest

from i18n_translate.logging_config import LOGGER_NAME

SOURCE_CONTENT = {
    "login": "Login",
    "register": "Register",
    "greeting": "Hello {name}",
}


class FakeTranslator:
    """
    Stand-in for OpenAITranslator.

    ``replies`` maps a language code to what the call returns: a mapping, a raw
    reply string, or an exception instance returned as the error. Languages not
    listed get every value suffixed with ``-<code>``.
    """

    def __init__(self, replies=None, on_call=None):
        self.replies = replies or {}
        self.on_call = on_call
        self.calls = []

    async def __call__(self, system_prompt, content, language_code):
        self.calls.append((system_prompt, content, language_code))
        if self.on_call is not None:
            self.on_call(language_code)
        reply = self.replies.get(language_code)
        if isinstance(reply, Exception):
            return None, reply
        if reply is not None:
            return reply, None
        source = json.loads(content)
        return {key: f"{value}-{language_code}" for key, value in source.items()}, None

    @property
    def languages(self):
        return [call[2] for call in self.calls]


@pytest.fixture
def fake_translator():
    return FakeTranslator


@pytest.fixture
def locale_tree(tmp_path):
    """
    A project with ``src/locales/<lang>/common.json`` files.

    Only the source (en) and the existing German file are created; other
    targets start missing.
    """
    locales_dir = tmp_path / "src" / "locales"
    en_dir = locales_dir / "en"
    de_dir = locales_dir / "de"
    en_dir.mkdir(parents=True)
    de_dir.mkdir(parents=True)

    source_file = en_dir / "common.json"
    source_file.write_text(json.dumps(SOURCE_CONTENT, indent=2), encoding="utf-8")
    existing_de = de_dir / "common.json"
    existing_de.write_text(json.dumps({"logout": "Abmelden", "login": "Alt"}, indent=2), encoding="utf-8")

    return {
        "project_root": str(tmp_path),
        "locales_dir": str(locales_dir),
        "source_file": str(source_file),
        "target_file": lambda language: os.path.join(str(locales_dir), language, "common.json"),
    }


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logger() so handlers and propagation do not leak between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
