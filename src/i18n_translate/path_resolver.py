"""
Resolve the target-language file that corresponds to a source file.

Projects lay out their locale files in different ways. The conventions
recognized here, in priority order:

1. ``locales/en-US/common.json``  -> ``locales/fr/common.json``
2. ``locales/en/common.json``     -> ``locales/fr/common.json``
3. ``locales/en.json``            -> ``locales/fr.json``
4. ``i18n/messages.ts``           -> ``i18n/messages.fr.ts`` (code modules only)

Only the first convention that matches is applied. Resolution is a pure
function of the source context and the language code.
"""
import logging
import os
import re
from enum import Enum
from typing import List, Optional, Tuple

from i18n_translate.exceptions import PathResolutionError
from i18n_translate.file_context import (
    SourceFileContext,
    base_language,
    region_directory_pattern,
)

logger = logging.getLogger(__name__)


class PathConvention(Enum):
    REGION_DIRECTORY = "region_directory"
    LANGUAGE_DIRECTORY = "language_directory"
    LANGUAGE_FILE_NAME = "language_file_name"
    SIBLING_FILE = "sibling_file"


def _file_name_language_pattern(source_language: str) -> "re.Pattern[str]":
    """Standalone language token in a file stem: en, en-US, app_en, messages.en."""
    base = re.escape(base_language(source_language))
    code = re.escape(source_language)
    return re.compile(
        rf'(?<![A-Za-z0-9])(?:{base}-(?:[A-Z]{{2}}|\d{{3}})|{code})(?![A-Za-z0-9]|-[A-Za-z0-9])'
    )


def _replace_segment(segments: List[str], index: int, replacement: str) -> str:
    new_segments = list(segments)
    new_segments[index] = replacement
    return os.sep.join(new_segments)


def _find_last_segment(segments: List[str], predicate) -> Optional[int]:
    for index in range(len(segments) - 1, -1, -1):
        if segments[index] and predicate(segments[index]):
            return index
    return None


def _resolve(context: SourceFileContext, target_language: str) -> Tuple[PathConvention, str]:
    segments = context.dir_path.split(os.sep)

    region_pattern = region_directory_pattern(context.source_language)
    index = _find_last_segment(segments, region_pattern.match)
    if index is not None:
        target_dir = _replace_segment(segments, index, target_language)
        return PathConvention.REGION_DIRECTORY, os.path.join(target_dir, context.file_name)

    index = _find_last_segment(segments, lambda segment: segment == context.source_language)
    if index is not None:
        target_dir = _replace_segment(segments, index, target_language)
        return PathConvention.LANGUAGE_DIRECTORY, os.path.join(target_dir, context.file_name)

    stem, ext = os.path.splitext(context.file_name)
    matches = list(_file_name_language_pattern(context.source_language).finditer(stem))
    if matches:
        last = matches[-1]
        target_stem = stem[:last.start()] + target_language + stem[last.end():]
        return PathConvention.LANGUAGE_FILE_NAME, os.path.join(context.dir_path, target_stem + ext)

    if context.is_module_format:
        return PathConvention.SIBLING_FILE, os.path.join(
            context.dir_path, f"{stem}.{target_language}{context.file_ext}"
        )

    raise PathResolutionError(
        f"Cannot derive a '{target_language}' file for '{context.file_path}': no language "
        f"directory or language code in the file name.",
        details={"file_path": context.file_path, "target_language": target_language}
    )


def resolve_target_path(context: SourceFileContext, target_language: str) -> str:
    """
    Compute the absolute path of the ``target_language`` file for ``context``.

    Raises:
        PathResolutionError: If no convention applies, or the resolved path
            would be the source file itself.
    """
    convention, target_path = _resolve(context, target_language)
    if os.path.normpath(target_path) == os.path.normpath(context.file_path):
        raise PathResolutionError(
            f"Resolved target path for '{target_language}' is the source file itself: {target_path}",
            details={"file_path": context.file_path, "target_language": target_language}
        )
    logger.debug("Resolved '%s' target via %s: %s", target_language, convention.value, target_path)
    return target_path
