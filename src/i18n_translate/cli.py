"""Command line entry point: translate a selection of a source-language file."""
import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import List, Optional, Tuple

from tqdm import tqdm

from i18n_translate.app_config import (
    AppConfig,
    create_translator,
    get_system_prompt,
    load_app_config,
    setup_logger_from_config,
    validate_app_config
)
from i18n_translate.content_extractor import SelectionContent, extract_selection
from i18n_translate.exceptions import I18nTranslateError
from i18n_translate.file_context import SourceFileContext, ensure_source_language_file
from i18n_translate.orchestrator import (
    CancellationToken,
    ProgressEvent,
    RunState,
    TranslateFn,
    TranslationOrchestrator,
    TranslationSummary,
    prepare_target_languages
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='i18n-translate',
        description='Translate selected keys of a source-language locale file into every target language.'
    )
    parser.add_argument('file', help='Source-language locale file (.json, .ts or .js).')
    selection_group = parser.add_mutually_exclusive_group()
    selection_group.add_argument('--selection', help='Selected text. Read from stdin when neither option is given.')
    selection_group.add_argument('--lines', help='Select lines START:END of FILE (1-based, inclusive).')
    parser.add_argument('--source-lang', help='Source language code (overrides source_language).')
    parser.add_argument('--target-langs', help='Comma-separated target language codes (overrides target_languages).')
    parser.add_argument('--config', help='Path to the YAML configuration file.')
    parser.add_argument('--dry-run', action='store_true', help='Translate, but do not write any file.')
    return parser


def parse_line_range(value: str) -> Tuple[int, int]:
    """Parse ``START:END`` (1-based, inclusive). An empty END means end of file."""
    start_text, sep, end_text = value.partition(':')
    try:
        start = int(start_text)
        end = int(end_text) if sep and end_text else (start if not sep else -1)
    except ValueError:
        raise ValueError(f"Invalid line range '{value}', expected START:END.") from None
    if start < 1 or (end != -1 and end < start):
        raise ValueError(f"Invalid line range '{value}', expected 1 <= START <= END.")
    return start, end


def read_selection(args: argparse.Namespace, file_path: str, stdin=None) -> str:
    """Return the selected text from --selection, --lines or stdin."""
    if args.selection is not None:
        return args.selection
    if args.lines:
        start, end = parse_line_range(args.lines)
        with open(file_path, 'r', encoding='utf-8') as f:
            lines = f.readlines()
        return ''.join(lines[start - 1:] if end == -1 else lines[start - 1:end])
    return (stdin or sys.stdin).read()


def resolve_source_file(file_arg: str, app_config: AppConfig) -> str:
    """Make FILE absolute; a relative path missing from the working directory is tried under translate_dir."""
    if os.path.isabs(file_arg) or os.path.exists(file_arg):
        return os.path.abspath(file_arg)
    candidate = os.path.join(app_config.project_root, app_config.translate_dir, file_arg)
    if os.path.exists(candidate):
        return os.path.abspath(candidate)
    return os.path.abspath(file_arg)


def apply_cli_overrides(app_config: AppConfig, args: argparse.Namespace) -> None:
    if args.source_lang:
        app_config.source_language = args.source_lang
    if args.target_langs:
        app_config.target_languages = [code.strip() for code in args.target_langs.split(',') if code.strip()]
    if args.dry_run:
        app_config.dry_run = True


def log_summary(summary: TranslationSummary) -> None:
    for outcome in summary.outcomes:
        if outcome.succeeded:
            logger.info("%s: %d key(s) -> %s", outcome.language, len(outcome.translated), outcome.target_path)
        else:
            logger.error("%s: %s", outcome.language, outcome.error)
    if summary.state is RunState.CANCELLED:
        logger.warning("Translation cancelled. Not processed: %s", ', '.join(summary.unfinished_languages))
    elif summary.all_succeeded:
        logger.info("Translation completed successfully.")
    else:
        logger.warning("Translation completed with failures: %s", ', '.join(summary.failed_languages))


def exit_code_for(summary: TranslationSummary) -> int:
    if summary.state is RunState.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_OK if summary.all_succeeded else EXIT_FAILURE


def show_language_started(progress_bar: tqdm, event: ProgressEvent) -> None:
    """Name the language in flight; the bar itself counts only finished languages."""
    progress_bar.set_description(event.message)
    progress_bar.n = event.completed - 1
    progress_bar.refresh()


def show_languages_finished(progress_bar: tqdm, finished: int) -> None:
    progress_bar.n = finished
    progress_bar.refresh()


async def run_translation(
        app_config: AppConfig,
        selection: SelectionContent,
        context: SourceFileContext,
        translate_fn: TranslateFn,
        cancellation_token: Optional[CancellationToken] = None
) -> TranslationSummary:
    """Run the orchestrator with a progress bar; SIGINT requests cancellation."""
    token = cancellation_token or CancellationToken()
    languages = prepare_target_languages(app_config.target_languages, context.source_language)

    loop = asyncio.get_running_loop()
    signal_handler_installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        signal_handler_installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        # Not supported on this platform or outside the main thread; Ctrl+C falls back to KeyboardInterrupt.
        logger.debug("SIGINT handler not installed; cancellation via Ctrl+C is unavailable.")

    with tqdm(total=len(languages), desc="Translating", unit="lang") as progress_bar:
        orchestrator = TranslationOrchestrator(
            system_prompt=get_system_prompt(app_config),
            progress_callback=lambda event: show_language_started(progress_bar, event),
            dry_run=app_config.dry_run
        )
        try:
            summary = await orchestrator.run(
                selection, context, app_config.target_languages, translate_fn, cancellation_token=token
            )
        finally:
            if signal_handler_installed:
                loop.remove_signal_handler(signal.SIGINT)
        show_languages_finished(progress_bar, len(summary.outcomes))
        return summary


def main(argv: Optional[List[str]] = None, translate_fn: Optional[TranslateFn] = None) -> int:
    """
    Parse arguments, prepare the run and translate.

    Returns:
        The process exit code: 0 when every language succeeded, 1 on failure,
        130 when cancelled.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    app_config = load_app_config(config_file=args.config)
    apply_cli_overrides(app_config, args)
    setup_logger_from_config(app_config)

    try:
        validate_app_config(app_config)
        context = SourceFileContext.from_path(resolve_source_file(args.file, app_config), app_config.source_language)
        ensure_source_language_file(context)
        raw_selection = read_selection(args, context.file_path)
        selection = extract_selection(raw_selection, context.file_format)
    except I18nTranslateError as exc:
        logger.error("[%s] %s", exc.code, exc)
        return EXIT_FAILURE
    except ValueError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except OSError as exc:
        logger.error("Could not read '%s': %s", args.file, exc)
        return EXIT_FAILURE

    if app_config.dry_run:
        logger.info("Dry run enabled; target files will not be written.")

    if translate_fn is None:
        translate_fn = create_translator(app_config)

    try:
        summary = asyncio.run(run_translation(app_config, selection, context, translate_fn))
    except I18nTranslateError as exc:
        logger.error("[%s] %s", exc.code, exc)
        return EXIT_FAILURE

    log_summary(summary)
    return exit_code_for(summary)


if __name__ == '__main__':
    sys.exit(main())
