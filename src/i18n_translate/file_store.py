"""
Format-aware reading, merging and writing of target translation files.

Two stores share one contract:

- ``JsonFileStore`` for data-only ``.json`` files (nested values supported).
- ``ModuleFileStore`` for code modules holding ``export default { ... }``.
  These files may be hand-written, so a module that cannot be understood is
  read as an empty mapping instead of failing the run.
"""
import json
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Dict

from i18n_translate.exceptions import FileIOError, ParseError
from i18n_translate.file_context import FileFormat

logger = logging.getLogger(__name__)

EXPORT_DEFAULT_PATTERN = re.compile(r'export\s+default\s+(\{[\s\S]*\})')

# Tokens of a JS object literal that need rewriting to become JSON. Strings are
# matched first so keys and commas inside them are left alone.
JS_LITERAL_TOKEN_PATTERN = re.compile(
    r'''"((?:[^"\\]|\\[\s\S])*)"'''     # 1: double-quoted string
    r"""|'((?:[^'\\]|\\[\s\S])*)'"""    # 2: single-quoted string
    r'''|([A-Za-z_$][\w$]*)(\s*:)'''    # 3, 4: bare identifier key
    r'''|,(\s*[}\]])'''                 # 5: trailing comma
)

# Inside a JS string body: 1: an escape sequence, 2: a character JSON requires escaped.
JS_STRING_ESCAPE_PATTERN = re.compile(
    r'''\\(u\{[0-9A-Fa-f]+\}|u[0-9A-Fa-f]{4}|x[0-9A-Fa-f]{2}|\r\n|[\s\S])'''
    r'''|(["\x00-\x1f])'''
)

JSON_SIMPLE_ESCAPES = frozenset('"\\/bfnrt')

MODULE_STRING_ESCAPES = {
    '\\': '\\\\',
    "'": "\\'",
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}

MODULE_STRING_UNSAFE_PATTERN = re.compile(r"[\\'\x00-\x1f\x7f\u2028\u2029]")


def merge_content(existing: Dict[str, Any], translated: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge translated keys onto the existing file content.

    Keys of ``translated`` are added or overwritten; nested objects are
    replaced wholesale. Keys only present in ``existing`` are kept. Neither
    input is modified.
    """
    merged = dict(existing)
    merged.update(translated)
    return merged


def _json_escape(char: str) -> str:
    return json.dumps(char)[1:-1]


def _js_string_to_json(body: str) -> str:
    """Re-spell the body of a JS string literal (either quote style) as a JSON string."""
    def replace_escape(match: re.Match) -> str:
        escape, raw = match.groups()
        if raw is not None:
            return _json_escape(raw)
        if escape in JSON_SIMPLE_ESCAPES:
            return '\\' + escape
        if escape.startswith('u{'):
            return _json_escape(chr(int(escape[2:-1], 16)))
        if escape.startswith('u'):
            return '\\' + escape
        if escape.startswith('x'):
            return '\\u00' + escape[1:]
        if escape == 'v':
            return '\\u000b'
        if escape == '0':
            return '\\u0000'
        if escape in ('\n', '\r', '\r\n', '\u2028', '\u2029'):
            # Line continuation.
            return ''
        return _json_escape(escape)

    return '"' + JS_STRING_ESCAPE_PATTERN.sub(replace_escape, body) + '"'


def normalize_js_object_literal(literal: str) -> str:
    """Rewrite a JS object literal with quoted strings and keys into JSON text."""
    def replace_token(match: re.Match) -> str:
        double_quoted, single_quoted, identifier, colon, closing = match.groups()
        if double_quoted is not None:
            return _js_string_to_json(double_quoted)
        if single_quoted is not None:
            return _js_string_to_json(single_quoted)
        if identifier is not None:
            return f'"{identifier}"{colon}'
        return closing

    return JS_LITERAL_TOKEN_PATTERN.sub(replace_token, literal)


def _quote_module_string(value: str) -> str:
    """Single-quote ``value`` for a module file; the result never spans lines."""
    def escape(match: re.Match) -> str:
        char = match.group(0)
        return MODULE_STRING_ESCAPES.get(char, f'\\u{ord(char):04x}')

    return "'" + MODULE_STRING_UNSAFE_PATTERN.sub(escape, value) + "'"


class FileStore(ABC):
    """Reads and writes one on-disk translation format."""

    file_format: FileFormat

    def read(self, path: str) -> Dict[str, Any]:
        """
        Read the mapping stored at ``path``.

        Returns:
            The stored mapping, or an empty mapping if the file does not exist.

        Raises:
            FileIOError: If the file exists but cannot be read.
            ParseError: If a data file holds malformed content.
        """
        if not os.path.exists(path):
            logger.debug("Target file '%s' does not exist yet; starting from an empty mapping.", path)
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise FileIOError(
                f"Error reading target file {os.path.basename(path)}: {exc}",
                details={"path": path}
            ) from exc
        return self.parse(text, path)

    def write(self, path: str, content: Dict[str, Any]) -> None:
        """
        Serialize ``content`` to ``path``, creating parent directories.

        Raises:
            FileIOError: If the directory or file cannot be written.
        """
        text = self.serialize(content)
        try:
            target_dir = os.path.dirname(path)
            if target_dir:
                os.makedirs(target_dir, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
        except OSError as exc:
            raise FileIOError(
                f"Error writing target file {os.path.basename(path)}: {exc}",
                details={"path": path}
            ) from exc

    @abstractmethod
    def parse(self, text: str, path: str) -> Dict[str, Any]:
        """Turn file text into a mapping."""

    @abstractmethod
    def serialize(self, content: Dict[str, Any]) -> str:
        """Turn a mapping into file text."""


class JsonFileStore(FileStore):
    file_format = FileFormat.DATA

    def parse(self, text: str, path: str) -> Dict[str, Any]:
        if not text.strip():
            return {}
        try:
            content = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Error reading target file {os.path.basename(path)}: {exc}",
                details={"path": path}
            ) from exc
        if not isinstance(content, dict):
            raise ParseError(
                f"Target file {os.path.basename(path)} does not contain a JSON object.",
                details={"path": path}
            )
        return content

    def serialize(self, content: Dict[str, Any]) -> str:
        return json.dumps(content, ensure_ascii=False, indent=2) + '\n'


class ModuleFileStore(FileStore):
    file_format = FileFormat.MODULE

    def parse(self, text: str, path: str) -> Dict[str, Any]:
        match = EXPORT_DEFAULT_PATTERN.search(text)
        if not match:
            logger.warning("No 'export default { ... }' object found in '%s'; treating it as empty.", path)
            return {}
        try:
            content = json.loads(normalize_js_object_literal(match.group(1)))
        except json.JSONDecodeError as exc:
            logger.warning("Could not parse the object literal in '%s' (%s); treating it as empty.", path, exc)
            return {}
        if not isinstance(content, dict):
            logger.warning("Exported value in '%s' is not an object; treating it as empty.", path)
            return {}
        return content

    def serialize(self, content: Dict[str, Any]) -> str:
        lines = ['export default {']
        for key, value in content.items():
            if isinstance(value, str):
                rendered = _quote_module_string(value)
            else:
                # Flat entries only; anything else is emitted as a JSON literal.
                rendered = json.dumps(value, ensure_ascii=False)
            lines.append(f"  {_quote_module_string(str(key))}: {rendered},")
        lines.append('};')
        return '\n'.join(lines) + '\n'


_STORES = {
    FileFormat.DATA: JsonFileStore,
    FileFormat.MODULE: ModuleFileStore,
}


def get_file_store(file_format: FileFormat) -> FileStore:
    """Return the store for ``file_format``."""
    return _STORES[file_format]()
