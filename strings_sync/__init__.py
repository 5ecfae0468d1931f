"""Keep Android strings.xml translations in sync with the default locale."""

from .config import TranslatorConfig, load_config
from .errors import (
    ConfigError,
    GitError,
    NoStringsFilesError,
    ResourceParseError,
    StringsSyncError,
    TranslationError,
)
from .git_diff import GitDiffAnalyzer, StringsDiff
from .locales import DEFAULT_CATALOG, LocaleCatalog, LocaleInfo
from .manager import ChangeReport, RunSummary, TranslationManager, TranslationResult
from .reconciler import reconcile
from .resources import (
    ResourceSet,
    StringResource,
    StringsDocument,
    load_strings,
    parse_strings,
    serialize_strings,
    write_strings,
)
from .translator import BatchTranslation, GeminiTranslator, TranslationProvider, create_translator

__version__ = "1.0.0"

__all__ = [
    "BatchTranslation",
    "ChangeReport",
    "ConfigError",
    "DEFAULT_CATALOG",
    "GeminiTranslator",
    "GitDiffAnalyzer",
    "GitError",
    "LocaleCatalog",
    "LocaleInfo",
    "NoStringsFilesError",
    "ResourceParseError",
    "ResourceSet",
    "RunSummary",
    "StringResource",
    "StringsDiff",
    "StringsDocument",
    "StringsSyncError",
    "TranslationError",
    "TranslationManager",
    "TranslationProvider",
    "TranslationResult",
    "TranslatorConfig",
    "create_translator",
    "load_config",
    "load_strings",
    "parse_strings",
    "reconcile",
    "serialize_strings",
    "write_strings",
]
