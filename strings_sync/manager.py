"""Discovers default strings files and fans their changes out to every locale."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from tqdm import tqdm

from .errors import NoStringsFilesError
from .git_diff import GitDiffAnalyzer, StringsDiff
from .locales import DEFAULT_CATALOG, LocaleCatalog
from .reconciler import reconcile
from .translator import TranslationProvider

DEFAULT_STRINGS_PATTERN = "**/src/main/res/values/strings.xml"
MODULE_STRINGS_PATH = Path("src/main/res/values/strings.xml")
STRINGS_FILE_NAME = "strings.xml"


@dataclass
class TranslationResult:
    language: str
    file_path: str
    translated_count: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class RunSummary:
    file_path: str = ""
    total_strings: int = 0
    added_strings: int = 0
    modified_strings: int = 0
    deleted_strings: int = 0
    order_changed: bool = False
    languages: List[TranslationResult] = field(default_factory=list)
    success: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ChangeReport:
    file: str
    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    order_changed: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class TranslationManager:
    def __init__(
        self,
        project_root: Union[str, Path],
        translator: TranslationProvider,
        languages: Optional[Sequence[str]] = None,
        source_language: str = "en",
        catalog: LocaleCatalog = DEFAULT_CATALOG,
        max_workers: Optional[int] = None,
        show_progress: bool = True,
    ):
        self.project_root = Path(project_root).resolve()
        self.translator = translator
        self.catalog = catalog
        self.languages = catalog.validate(languages)
        self.source_language = source_language
        self.max_workers = max_workers
        self.show_progress = show_progress

    def find_default_strings_files(self) -> List[Path]:
        return sorted(path.resolve() for path in self.project_root.glob(DEFAULT_STRINGS_PATTERN))

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_root).as_posix()
        except ValueError:
            return path.as_posix()

    def _analyzer(self) -> GitDiffAnalyzer:
        return GitDiffAnalyzer(self.project_root)

    def locale_strings_path(self, res_dir: Path, language: str) -> Path:
        return res_dir / self.catalog.folder(language) / STRINGS_FILE_NAME

    def translate_module(self, default_strings_path: Union[str, Path]) -> RunSummary:
        default_strings_path = Path(default_strings_path).resolve()
        summary = RunSummary(file_path=self._relative(default_strings_path))

        try:
            changes = self._analyzer().get_default_strings_changes(default_strings_path)
        except Exception as exc:
            logging.error("Error processing module %s: %s", default_strings_path, exc)
            summary.success = False
            return summary

        summary.added_strings = len(changes.added)
        summary.modified_strings = len(changes.modified)
        summary.deleted_strings = len(changes.deleted)
        summary.total_strings = summary.added_strings + summary.modified_strings
        summary.order_changed = changes.order_changed

        if not changes.has_changes:
            logging.info("No changes detected in %s", default_strings_path)
            return summary

        res_dir = default_strings_path.parent.parent
        summary.languages = self._translate_languages(res_dir, changes)
        summary.success = all(not result.errors for result in summary.languages)
        return summary

    def _translate_languages(self, res_dir: Path, changes: StringsDiff) -> List[TranslationResult]:
        strings_to_translate = changes.strings_to_translate()
        results: Dict[str, TranslationResult] = {}
        max_workers = self.max_workers or len(self.languages)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_language = {
                executor.submit(
                    self._translate_language,
                    res_dir,
                    language,
                    strings_to_translate,
                    changes,
                ): language
                for language in self.languages
            }
            for future in tqdm(
                as_completed(future_to_language),
                total=len(future_to_language),
                desc="Translating languages",
                unit="lang",
                disable=not self.show_progress,
            ):
                language = future_to_language[future]
                try:
                    results[language] = future.result()
                except Exception as exc:
                    logging.error("Unhandled error for %s: %s", language, exc)
                    results[language] = TranslationResult(
                        language=language,
                        file_path=str(self.locale_strings_path(res_dir, language)),
                        errors=[f"Failed to translate to {language}: {exc}"],
                    )

        return [results[language] for language in self.languages]

    def _translate_language(
        self,
        res_dir: Path,
        language: str,
        strings_to_translate: Mapping[str, str],
        changes: StringsDiff,
    ) -> TranslationResult:
        target_path = self.locale_strings_path(res_dir, language)
        result = TranslationResult(language=language, file_path=str(target_path))

        try:
            translations: Mapping[str, str] = {}
            if strings_to_translate:
                logging.info("Translating %s strings to %s...", len(strings_to_translate), language)
                batch = self.translator.translate_batch(
                    strings_to_translate,
                    language,
                    self.source_language,
                )
                translations = batch.translations
                result.translated_count = batch.translated_count
                if batch.failed_keys:
                    result.errors.append(
                        f"{len(batch.failed_keys)} key(s) failed to translate to {language}: "
                        + ", ".join(batch.failed_keys)
                    )

            reconcile(
                target_path,
                translations,
                changes.deleted,
                changes.current_order,
                force_order_sync=changes.order_changed,
            )
        except Exception as exc:
            result.errors.append(f"Failed to translate to {language}: {exc}")
            logging.error("Translation error for %s: %s", language, exc)

        return result

    def translate_all_modules(self) -> List[RunSummary]:
        default_files = self.find_default_strings_files()
        if not default_files:
            raise NoStringsFilesError(f"No default strings.xml files found in {self.project_root}")

        logging.info("Found %s modules to process", len(default_files))
        summaries: List[RunSummary] = []
        for default_file in default_files:
            logging.info("Processing: %s", self._relative(default_file))
            summaries.append(self.translate_module(default_file))
        return summaries

    def translate_specific_module(self, module_path: Union[str, Path]) -> RunSummary:
        module_path = Path(module_path)
        if not module_path.is_absolute():
            module_path = self.project_root / module_path
        return self.translate_module(module_path / MODULE_STRINGS_PATH)

    def check_changes(self) -> List[ChangeReport]:
        analyzer = self._analyzer()
        reports: List[ChangeReport] = []
        for default_file in self.find_default_strings_files():
            try:
                diff = analyzer.get_default_strings_changes(default_file)
            except Exception as exc:
                logging.error("Error checking %s: %s", default_file, exc)
                reports.append(ChangeReport(file=self._relative(default_file), error=str(exc)))
                continue
            if not diff.has_changes:
                continue
            reports.append(
                ChangeReport(
                    file=self._relative(default_file),
                    added=list(diff.added),
                    modified=list(diff.modified),
                    deleted=list(diff.deleted),
                    order_changed=diff.order_changed,
                )
            )
        return reports
