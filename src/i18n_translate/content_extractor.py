"""
Turn a raw editor selection into a normalized key/value mapping.

Selections are frequently partial: a few lines cut out of a larger JSON
document, a nested block with its root key, or a chunk of a code module. The
extractor tries structured parses first and only falls back to lossy pattern
scanning, which supports flat string values only.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from i18n_translate.exceptions import ParseError
from i18n_translate.file_context import FileFormat

logger = logging.getLogger(__name__)

# 'key': 'value' or "key": "value" inside an exported object literal
MODULE_PAIR_PATTERN = re.compile(r'''['"]([^'"]+)['"]\s*:\s*['"]([^'"]+)['"]''')

# "rootKey": { ... }
ROOT_KEY_PATTERN = re.compile(r'^"([^"]+)"\s*:\s*(\{[\s\S]*\})$')

SIMPLE_PAIR_PATTERN = re.compile(r'"([^"]+)":\s*"([^"]+)"')


@dataclass(frozen=True)
class SelectionContent:
    """A selection and the mapping extracted from it."""
    raw_text: str
    content: Dict[str, Any] = field(default_factory=dict)

    @property
    def keys(self):
        return list(self.content.keys())

    def to_json(self) -> str:
        """Compact JSON sent to the translator, identical for every language."""
        return json.dumps(self.content, ensure_ascii=False)


def extract_module_pairs(text: str) -> Dict[str, str]:
    """
    Extract quoted key/value pairs from a code-module selection.

    Raises:
        ParseError: If no pair is found.
    """
    pairs = {key: value for key, value in MODULE_PAIR_PATTERN.findall(text)}
    if not pairs:
        raise ParseError("No quoted key/value pairs found in the module selection.")
    return pairs


def _load_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse ``text`` as JSON; return the object, or None if it is not a JSON object."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _looks_like_bare_pairs(content: str) -> bool:
    return (
        (content.startswith('"') or '":' in content)
        and not content.startswith('{')
        and not content.endswith('}')
    )


def scan_simple_pairs(text: str) -> Dict[str, str]:
    """Collect every ``"key": "value"`` pair in ``text``, ignoring everything else."""
    return {key: value for key, value in SIMPLE_PAIR_PATTERN.findall(text)}


def extract_json_content(text: str) -> Dict[str, Any]:
    """
    Extract a mapping from a JSON (or JSON-like) selection.

    The steps are tried in order and the first one yielding a mapping wins:
    full JSON object, ``"rootKey": {...}``, then bare pairs wrapped in braces.
    Pair scanning is the last resort for bare pairs whose wrap failed and that
    do not cut through a nested block; anything else raises.

    Raises:
        ParseError: If no step yields at least one key, or a ``"rootKey": {...}``
            selection has an unparseable body.
    """
    parsed = _load_json_object(text)
    if parsed is not None:
        logger.debug("Selection parsed as a complete JSON object.")
        if not parsed:
            raise ParseError("The selected JSON object is empty.")
        return parsed

    content = text.strip()

    root_key_match = ROOT_KEY_PATTERN.match(content)
    if root_key_match:
        root_key, value_text = root_key_match.groups()
        try:
            value = json.loads(value_text)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Could not parse the nested value of '{root_key}': {exc}",
                details={"root_key": root_key}
            ) from exc
        logger.debug("Selection parsed as root key '%s' with a nested object.", root_key)
        return {root_key: value}

    if not _looks_like_bare_pairs(content):
        raise ParseError("The selected text is neither a JSON object nor a list of \"key\": \"value\" pairs.")

    wrapped = _load_json_object('{' + content.rstrip().rstrip(',') + '}')
    if wrapped:
        logger.debug("Selection parsed after wrapping it in braces.")
        return wrapped

    # Pair scanning flattens; a partial nested block must not leak its keys to the top level.
    if '{' in content:
        raise ParseError("The selection cuts through a nested block; select the whole block or its root key.")

    pairs = scan_simple_pairs(text)
    if pairs:
        logger.debug("Selection recovered by pair scanning (%d keys).", len(pairs))
        return pairs

    raise ParseError("The selected text is not valid JSON and contains no \"key\": \"value\" pairs.")


def extract_content(raw_text: str, file_format: FileFormat) -> Dict[str, Any]:
    """Extract the key/value mapping of a selection according to the file format."""
    if raw_text is None or not raw_text.strip():
        raise ParseError("The selection is empty.")
    if file_format is FileFormat.MODULE:
        return extract_module_pairs(raw_text)
    return extract_json_content(raw_text)


def extract_selection(raw_text: str, file_format: FileFormat) -> SelectionContent:
    """Build the SelectionContent for one invocation."""
    return SelectionContent(raw_text=raw_text, content=extract_content(raw_text, file_format))
