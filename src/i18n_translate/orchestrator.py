"""
Drive the per-language translation loop.

For every target language, in list order: resolve the target path, read the
existing file, call the translator, merge the reply into the file content
and write it back. A failure for one language is recorded and the loop moves
on; only a cancellation stops it. Files written before a cancellation stay
on disk.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from i18n_translate.content_extractor import SelectionContent
from i18n_translate.exceptions import (
    CancellationError,
    ConfigError,
    I18nTranslateError,
    ResponseFormatError,
    ServiceError
)
from i18n_translate.file_context import FileFormat, SourceFileContext
from i18n_translate.file_store import FileStore, get_file_store, merge_content
from i18n_translate.path_resolver import resolve_target_path
from i18n_translate.response_parser import parse_response
from i18n_translate.translation_validator import find_translation_issues

logger = logging.getLogger(__name__)

TranslatePayload = Union[Dict[str, Any], str, None]
TranslateFn = Callable[[str, str, str], Awaitable[Tuple[TranslatePayload, Any]]]


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CancellationToken:
    """Cooperative cancellation flag, polled by the orchestrator."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError("Translation cancelled by user")


@dataclass(frozen=True)
class ProgressEvent:
    language: str
    completed: int
    total: int

    @property
    def increment(self) -> float:
        return 100 / self.total if self.total else 0.0

    @property
    def message(self) -> str:
        return f"Translating to {self.language}... ({self.completed}/{self.total})"


@dataclass
class LanguageOutcome:
    """Result of processing one target language."""
    language: str
    target_path: Optional[str] = None
    translated: Optional[Dict[str, Any]] = None
    error: Optional[I18nTranslateError] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.translated is not None


@dataclass
class TranslationSummary:
    state: RunState
    outcomes: List[LanguageOutcome] = field(default_factory=list)
    unfinished_languages: List[str] = field(default_factory=list)

    @property
    def succeeded_languages(self) -> List[str]:
        return [outcome.language for outcome in self.outcomes if outcome.succeeded]

    @property
    def failed_languages(self) -> List[str]:
        return [outcome.language for outcome in self.outcomes if not outcome.succeeded]

    @property
    def all_succeeded(self) -> bool:
        return self.state is RunState.COMPLETED and not self.failed_languages


def prepare_target_languages(target_languages: List[str], source_language: str) -> List[str]:
    """Drop the source language and duplicates, keeping the configured order."""
    prepared: List[str] = []
    for language in target_languages:
        if not language or language == source_language:
            continue
        if language not in prepared:
            prepared.append(language)
    return prepared


def _coerce_translation(payload: TranslatePayload, language: str) -> Dict[str, Any]:
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, str):
        return parse_response(payload)
    if payload is None:
        raise ServiceError(f"Translation service returned nothing for '{language}'.",
                           details={"language": language})
    raise ResponseFormatError(
        f"Unexpected translation payload of type {type(payload).__name__} for '{language}'.",
        reason="not_an_object"
    )


def _as_error(error: Any, language: str) -> I18nTranslateError:
    if isinstance(error, I18nTranslateError):
        return error
    return ServiceError(f"Translation error ({language}): {error}", details={"language": language})


class TranslationOrchestrator:
    """
    Runs one translation invocation across the configured languages.

    Args:
        system_prompt: Prompt passed to every translate call.
        progress_callback: Called with a ProgressEvent before each language.
        dry_run: Translate and merge, but do not write files.
        file_store_factory: Returns the FileStore for a FileFormat.
    """

    def __init__(
            self,
            system_prompt: str,
            progress_callback: Optional[Callable[[ProgressEvent], None]] = None,
            dry_run: bool = False,
            file_store_factory: Callable[[FileFormat], FileStore] = get_file_store
    ):
        self.system_prompt = system_prompt
        self.progress_callback = progress_callback
        self.dry_run = dry_run
        self.file_store_factory = file_store_factory
        self.state = RunState.IDLE

    def _report_progress(self, event: ProgressEvent) -> None:
        if self.progress_callback is None:
            return
        try:
            self.progress_callback(event)
        except Exception:
            logger.warning("Progress callback failed for '%s'.", event.language, exc_info=True)

    async def run(
            self,
            selection: SelectionContent,
            source_context: SourceFileContext,
            target_languages: List[str],
            translate_fn: TranslateFn,
            cancellation_token: Optional[CancellationToken] = None
    ) -> TranslationSummary:
        """
        Translate ``selection`` into every target language.

        Raises:
            ConfigError: If no target language remains besides the source language.
        """
        languages = prepare_target_languages(target_languages, source_context.source_language)
        if not languages:
            raise ConfigError("No target languages configured.")

        token = cancellation_token or CancellationToken()
        store = self.file_store_factory(source_context.file_format)
        summary = TranslationSummary(state=RunState.RUNNING)
        self.state = RunState.RUNNING
        content_json = selection.to_json()
        total = len(languages)

        logger.info(
            "Translating %d key(s) from '%s' into %d language(s): %s",
            len(selection.content), source_context.file_name, total, ', '.join(languages)
        )

        for position, language in enumerate(languages, start=1):
            outcome = LanguageOutcome(language=language)
            try:
                token.raise_if_cancelled()
                self._report_progress(ProgressEvent(language=language, completed=position, total=total))
                await self._translate_language(
                    selection, content_json, source_context, language, translate_fn, store, token, outcome
                )
            except CancellationError:
                logger.info("Translation cancelled before finishing '%s'.", language)
                summary.unfinished_languages = languages[position - 1:]
                self.state = RunState.CANCELLED
                break
            except I18nTranslateError as exc:
                outcome.error = exc
                logger.error("Translation to %s failed: %s", language, exc)
            except Exception as exc:
                outcome.error = I18nTranslateError(f"Unexpected error: {exc}", details={"language": language})
                logger.error("Unexpected error while translating to %s: %s", language, exc, exc_info=True)
            summary.outcomes.append(outcome)

        if self.state is not RunState.CANCELLED:
            self.state = RunState.COMPLETED
        summary.state = self.state

        logger.info(
            "Translation %s: %d succeeded, %d failed, %d unfinished.",
            self.state.value, len(summary.succeeded_languages), len(summary.failed_languages),
            len(summary.unfinished_languages)
        )
        return summary

    async def _translate_language(
            self,
            selection: SelectionContent,
            content_json: str,
            source_context: SourceFileContext,
            language: str,
            translate_fn: TranslateFn,
            store: FileStore,
            token: CancellationToken,
            outcome: LanguageOutcome
    ) -> None:
        target_path = resolve_target_path(source_context, language)
        outcome.target_path = target_path

        token.raise_if_cancelled()
        existing = store.read(target_path)

        payload, error = await translate_fn(self.system_prompt, content_json, language)

        token.raise_if_cancelled()
        if error:
            raise _as_error(error, language)
        translated = _coerce_translation(payload, language)

        outcome.warnings = find_translation_issues(selection.content, translated)
        for warning in outcome.warnings:
            logger.warning("[%s] %s", language, warning)

        merged = merge_content(existing, translated)
        if self.dry_run:
            logger.info("[Dry Run] Would write %d key(s) to '%s'.", len(translated), target_path)
        else:
            store.write(target_path, merged)
            logger.info("Wrote %d key(s) to '%s'.", len(translated), target_path)
        outcome.translated = translated
