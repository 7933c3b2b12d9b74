"""
Error taxonomy for the translation pipeline.

Every error carries a short machine-readable ``code`` and an optional
``details`` dictionary so callers can report failures per language without
parsing messages.
"""
from typing import Any, Dict, Optional


class I18nTranslateError(Exception):
    """Base class for all pipeline errors."""

    code = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ParseError(I18nTranslateError):
    """A selection or an existing file is not interpretable as key/value data."""

    code = "parse_error"


class ConfigError(I18nTranslateError):
    """Missing credentials, model or target languages."""

    code = "config_error"


class UnsupportedFileType(I18nTranslateError):
    """The source file is neither a data-only nor a code-module file."""

    code = "unsupported_file_type"


class PathResolutionError(I18nTranslateError):
    """No directory or file naming convention applies to the source file."""

    code = "path_resolution_error"


class FileIOError(I18nTranslateError):
    """Reading or writing a target file failed."""

    code = "io_error"


class ServiceError(I18nTranslateError):
    """The translation service reported a failure."""

    code = "service_error"


class NetworkError(ServiceError):
    """The translation service could not be reached."""

    code = "network_error"


class ResponseFormatError(I18nTranslateError):
    """The service reply contains no recoverable JSON object."""

    code = "response_format_error"

    def __init__(self, message: str, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.reason = reason


class CancellationError(I18nTranslateError):
    """The user cancelled the run."""

    code = "cancelled"
