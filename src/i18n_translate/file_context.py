"""Source file description and format detection."""
import os
import re
from dataclasses import dataclass
from enum import Enum

from i18n_translate.exceptions import UnsupportedFileType


class FileFormat(Enum):
    """On-disk format of a translation file."""
    DATA = "data"      # plain JSON
    MODULE = "module"  # source file exporting an object literal


FORMAT_BY_EXTENSION = {
    '.json': FileFormat.DATA,
    '.ts': FileFormat.MODULE,
    '.js': FileFormat.MODULE,
}


def base_language(language_code: str) -> str:
    """Strip the region from a language code ("en-US" -> "en")."""
    return language_code.split('-')[0]


def region_directory_pattern(language_code: str) -> "re.Pattern[str]":
    """Pattern for a region-qualified directory name of the language, e.g. en-US or es-419."""
    return re.compile(rf'^{re.escape(base_language(language_code))}-(?:[A-Z]{{2}}|\d{{3}})$')


@dataclass(frozen=True)
class SourceFileContext:
    """Immutable description of the file a selection was taken from."""
    file_path: str
    file_name: str
    dir_path: str
    file_ext: str
    source_language: str
    file_format: FileFormat

    @property
    def is_module_format(self) -> bool:
        return self.file_format is FileFormat.MODULE

    @classmethod
    def from_path(cls, file_path: str, source_language: str) -> "SourceFileContext":
        """
        Build a context for ``file_path``.

        Args:
            file_path: Path of the source-language file (made absolute).
            source_language: The source-language code, e.g. "en".

        Raises:
            UnsupportedFileType: If the extension maps to no known format.
        """
        abs_path = os.path.abspath(file_path)
        file_name = os.path.basename(abs_path)
        file_ext = os.path.splitext(file_name)[1].lower()

        file_format = FORMAT_BY_EXTENSION.get(file_ext)
        if file_format is None:
            supported = ', '.join(sorted(FORMAT_BY_EXTENSION))
            raise UnsupportedFileType(
                f"Unsupported file type '{file_ext or file_name}'. Supported extensions: {supported}",
                details={"file_path": abs_path}
            )

        return cls(
            file_path=abs_path,
            file_name=file_name,
            dir_path=os.path.dirname(abs_path),
            file_ext=file_ext,
            source_language=source_language,
            file_format=file_format,
        )


def is_source_language_file(context: SourceFileContext) -> bool:
    """
    Check whether the file looks like it holds source-language content.

    A file qualifies when its name mentions the source-language code, or when
    one of its directories is the bare or region-qualified source language.
    """
    source_language = context.source_language
    segments = context.dir_path.split(os.sep)

    if source_language in context.file_name:
        return True
    if source_language in segments:
        return True
    region_pattern = region_directory_pattern(source_language)
    return any(region_pattern.match(segment) for segment in segments)


def ensure_source_language_file(context: SourceFileContext) -> None:
    """Raise UnsupportedFileType unless the file is a source-language file."""
    if not is_source_language_file(context):
        raise UnsupportedFileType(
            f"'{context.file_name}' is not a '{context.source_language}' source-language file "
            f"(expected the language code in the file name or a language directory).",
            details={"file_path": context.file_path, "source_language": context.source_language}
        )
