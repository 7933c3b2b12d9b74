import json
import logging
import re
from typing import Any, Dict

import jsonschema

from i18n_translate.exceptions import ResponseFormatError

logger = logging.getLogger(__name__)

# The translated payload must be a JSON object; values may be nested objects.
TRANSLATION_PAYLOAD_SCHEMA = {
    "type": "object",
    "additionalProperties": {
        "anyOf": [
            {"type": "string"},
            {"type": "number"},
            {"type": "boolean"},
            {"type": "null"},
            {"type": "array"},
            {"type": "object"}
        ]
    }
}

# Greedy: from the first '{' to the last '}'
JSON_OBJECT_PATTERN = re.compile(r'(\{[\s\S]*\})')


def _validate_payload(payload: Any) -> Dict[str, Any]:
    try:
        jsonschema.validate(instance=payload, schema=TRANSLATION_PAYLOAD_SCHEMA)
    except jsonschema.ValidationError as schema_exc:
        raise ResponseFormatError(
            f"Translation reply is not a JSON object: {schema_exc.message}",
            reason="not_an_object"
        ) from schema_exc
    return payload


def parse_response(raw_text: str) -> Dict[str, Any]:
    """
    Recover the translated JSON object from a free-form model reply.

    The whole reply is parsed first. Models often wrap the payload in prose or
    a markdown fence, so on failure the substring between the first ``{`` and
    the last ``}`` is parsed instead.

    Args:
        raw_text: The reply text as returned by the service.

    Returns:
        The translated mapping.

    Raises:
        ResponseFormatError: With ``reason`` "no_json" when the reply contains
            no brace-bounded substring, "invalid_json" when the candidate does
            not parse, or "not_an_object" when the JSON is not an object.
    """
    text = (raw_text or '').strip()

    try:
        return _validate_payload(json.loads(text))
    except json.JSONDecodeError:
        pass

    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        logger.debug("No JSON object found in reply:\n---\n%s\n---", raw_text)
        raise ResponseFormatError("No valid JSON found in response", reason="no_json")

    try:
        payload = json.loads(match.group(1))
    except json.JSONDecodeError as json_exc:
        logger.debug("Invalid JSON extracted from reply:\n---\n%s\n---", match.group(1))
        raise ResponseFormatError(
            f"Failed to parse JSON from response: {json_exc}",
            reason="invalid_json"
        ) from json_exc

    return _validate_payload(payload)
