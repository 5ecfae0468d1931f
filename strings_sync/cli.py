"""Command-line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from .config import PROVIDER_PRESETS, load_config, split_languages
from .errors import ConfigError, StringsSyncError
from .manager import TranslationManager
from .translator import create_translator


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="strings-sync",
        description=(
            "Detect changes in default strings.xml files with git and translate "
            "them into every locale folder."
        ),
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Android project root (defaults to ANDROID_PROJECT_ROOT or the current directory).",
    )
    parser.add_argument(
        "--languages",
        default=None,
        help="Comma-separated target languages (defaults to TRANSLATION_LANGUAGES or all supported).",
    )
    parser.add_argument("--source", default=None, help="Source language code of the default file.")
    parser.add_argument("--provider", choices=sorted(PROVIDER_PRESETS), default=None)
    parser.add_argument("--model", default=None, help="Override the provider's default model.")
    parser.add_argument("--max-workers", type=int, default=None, help="Languages translated concurrently.")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING).",
    )
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "translate-all",
        help="Translate changes of every default strings.xml under the project root.",
    )
    module_parser = subparsers.add_parser(
        "translate-module",
        help="Translate changes of one module's default strings.xml.",
    )
    module_parser.add_argument("module_path", type=Path, help="Path to the Android module directory.")
    subparsers.add_parser(
        "check-changes",
        help="Report uncommitted changes in default strings.xml files without translating.",
    )
    return parser.parse_args(argv)


def build_manager(args: argparse.Namespace) -> TranslationManager:
    config = load_config()
    overrides = {}
    if args.provider:
        overrides["provider"] = args.provider
    if args.model:
        overrides["model"] = args.model
    if overrides:
        config = replace(config, **overrides)
        config.validate()

    languages: List[str] = split_languages(args.languages) or config.translation_languages
    project_root = args.project_root or config.project_root
    return TranslationManager(
        project_root,
        create_translator(config),
        languages=languages,
        source_language=args.source or config.source_language,
        max_workers=args.max_workers,
        show_progress=not args.no_progress,
    )


def emit(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
    )

    try:
        manager = build_manager(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "translate-all":
            summaries = manager.translate_all_modules()
            emit({
                "total_modules": len(summaries),
                "total_strings_processed": sum(s.total_strings for s in summaries),
                "successful_modules": sum(1 for s in summaries if s.success),
                "failed_modules": sum(1 for s in summaries if not s.success),
                "modules": [s.to_dict() for s in summaries],
            })
            return 0 if all(s.success for s in summaries) else 1

        if args.command == "translate-module":
            summary = manager.translate_specific_module(args.module_path)
            emit(summary.to_dict())
            return 0 if summary.success else 1

        reports = manager.check_changes()
        failed = [report for report in reports if report.error]
        emit({
            "project_root": str(manager.project_root),
            "files_with_changes": len(reports) - len(failed),
            "failed_files": len(failed),
            "changes": [report.to_dict() for report in reports],
        })
        return 1 if failed else 0
    except StringsSyncError as exc:
        logging.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
