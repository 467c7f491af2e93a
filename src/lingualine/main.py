from __future__ import annotations

import argparse
import asyncio
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from lingualine.app.headless_mic import HeadlessMicRunner
from lingualine.app.headless_stdin import HeadlessStdinRunner
from lingualine.app.wiring import (
    create_secret_store,
    create_translation_provider,
    create_translation_providers,
)
from lingualine.config.paths import default_settings_path
from lingualine.config.settings import AppSettings, TranslationProviderName, load_settings
from lingualine.core.language import get_all_language_options
from lingualine.core.translation.detection import LangdetectLanguageDetector, resolve_languages

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 3

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        handlers.append(file_handler)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lingualine")
    parser.add_argument("--version", action="store_true", help="Print version and exit")

    parser.add_argument(
        "--config",
        type=Path,
        default=default_settings_path(),
        help="Path to settings JSON (default: user config dir)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to a rotating file")
    parser.add_argument(
        "--provider",
        choices=[p.value for p in TranslationProviderName],
        default=None,
        help="Override the configured translation provider",
    )
    parser.add_argument("--source", default=None, help="Override the source language (e.g. es-ES)")
    parser.add_argument("--target", default=None, help="Override the target language (e.g. en-US)")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run-mic", help="Capture microphone audio (segment -> STT -> translate -> display)")
    sub.add_parser("run-stdin", help="Treat each stdin line as a final transcript and subtitle it")

    translate = sub.add_parser("translate", help="Translate a single piece of text and print it")
    translate.add_argument("text", help="Text to translate")

    sub.add_parser("list-languages", help="List supported language codes")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__

        print(__version__)
        return 0

    configure_logging(args.log_level, args.log_file)

    if args.command == "list-languages":
        for code, name in get_all_language_options():
            print(f"{code}\t{name}")
        return 0

    try:
        settings = _load_settings_or_default(args.config)
        _apply_overrides(settings, args)
    except ValueError as exc:
        print(f"Error: invalid settings: {exc}", flush=True)
        return 2

    if args.command == "translate":
        return asyncio.run(_translate_once(settings, args.text))

    if args.command == "run-stdin":
        try:
            runner = _make_stdin_runner(settings)
        except Exception as exc:
            print(f"Error: failed to initialize translation provider: {exc}", flush=True)
            return 2
        return asyncio.run(runner.run())

    if args.command == "run-mic":
        try:
            return asyncio.run(HeadlessMicRunner(settings=settings).run())
        except ValueError as exc:
            print(f"Error: failed to initialize pipeline: {exc}", flush=True)
            return 2

    parser.print_help()
    return 2


def _make_stdin_runner(settings: AppSettings) -> HeadlessStdinRunner:
    secrets = create_secret_store(settings.secrets)
    providers = create_translation_providers(settings, secrets=secrets)
    return HeadlessStdinRunner(settings=settings, providers=providers)


async def _translate_once(settings: AppSettings, text: str) -> int:
    try:
        secrets = create_secret_store(settings.secrets)
        provider = create_translation_provider(
            settings.provider.translation, settings, secrets=secrets
        )
    except Exception as exc:
        print(f"Error: failed to initialize translation provider: {exc}", flush=True)
        return 2

    detector = LangdetectLanguageDetector() if settings.translation.detect_language else None
    languages = resolve_languages(
        text, settings.languages.source_language, settings.languages.target_language, detector
    )

    try:
        translation = await provider.translate(
            item_id=0,
            text=text,
            system_prompt=settings.translation.system_prompt,
            source_language=languages.source_language,
            target_language=languages.target_language,
        )
    except Exception as exc:
        logger.error(f"[Translate] {exc}")
        return 1
    finally:
        await provider.close()

    print(translation.text, flush=True)
    return 0


def _apply_overrides(settings: AppSettings, args: argparse.Namespace) -> None:
    if args.provider:
        settings.provider.translation = TranslationProviderName(args.provider)
    if args.source:
        settings.languages.source_language = args.source
    if args.target:
        settings.languages.target_language = args.target
    settings.validate()


def _load_settings_or_default(path: Path) -> AppSettings:
    if path.exists():
        return load_settings(path)
    return AppSettings()


if __name__ == "__main__":
    raise SystemExit(main())
