from collections import Counter
from typing import Any, Dict, List, Set, Tuple
import re

# Matches {0}, {name} and the inner part of {{name}}
PLACEHOLDER_REGEX = re.compile(r'\{([^{}]+)\}')


def check_key_coverage(base_keys: Set[str], target_keys: Set[str]) -> Tuple[Set[str], Set[str]]:
    """
    Compares the keys of a translated mapping against the source selection.

    Args:
        base_keys: A set of keys from the source selection.
        target_keys: A set of keys from the translated mapping.

    Returns:
        A tuple containing two sets:
        - missing_keys: Keys present in the source but missing from the translation.
        - extra_keys: Keys present in the translation but absent from the source.
    """
    missing_keys = base_keys - target_keys
    extra_keys = target_keys - base_keys
    return missing_keys, extra_keys


def check_placeholder_parity(base_string: str, target_string: str) -> bool:
    """
    Checks if the placeholders are identical between a source and a translated string.
    Placeholders look like {0}, {name} or {{name}}. Reordering is allowed,
    but every placeholder must appear the same number of times.

    Args:
        base_string: The source string.
        target_string: The translated string.

    Returns:
        True if the placeholders in both strings match, False otherwise.
    """
    base_placeholders = Counter(PLACEHOLDER_REGEX.findall(base_string))
    target_placeholders = Counter(PLACEHOLDER_REGEX.findall(target_string))

    return base_placeholders == target_placeholders


def find_translation_issues(
        source: Dict[str, Any],
        translated: Dict[str, Any],
        prefix: str = ''
) -> List[str]:
    """
    Lists key and placeholder mismatches between a selection and its translation.

    Nested mappings are compared recursively; issue messages use dotted key paths.
    The result is advisory: callers log it, they do not reject the translation.
    """
    issues: List[str] = []

    missing_keys, extra_keys = check_key_coverage(set(source.keys()), set(translated.keys()))
    for key in sorted(missing_keys):
        issues.append(f"Missing key `{prefix}{key}` in translation.")
    for key in sorted(extra_keys):
        issues.append(f"Unexpected key `{prefix}{key}` in translation.")

    for key, source_value in source.items():
        if key not in translated:
            continue
        target_value = translated[key]
        if isinstance(source_value, dict):
            if isinstance(target_value, dict):
                issues.extend(find_translation_issues(source_value, target_value, f"{prefix}{key}."))
            else:
                issues.append(f"Key `{prefix}{key}` lost its nested structure in translation.")
        elif isinstance(source_value, str) and isinstance(target_value, str):
            if not check_placeholder_parity(source_value, target_value):
                issues.append(f"Placeholder mismatch for key `{prefix}{key}`.")

    return issues
