"""Supported locales, their display names and resource folders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class LocaleInfo:
    code: str
    name: str
    folder: str


# Display names used in prompts, including languages that are not targets.
LANGUAGE_NAMES: Mapping[str, str] = MappingProxyType({
    "zh-CN": "Simplified Chinese",
    "zh-TW": "Traditional Chinese (Taiwan)",
    "zh-SG": "Traditional Chinese (Singapore)",
    "zh-HK": "Traditional Chinese (Hong Kong)",
    "zh-MO": "Traditional Chinese (Macau)",
    "en": "English",
    "es": "Spanish",
    "hi": "Hindi",
    "fr": "French",
    "ar": "Arabic",
    "bn": "Bengali",
    "pt": "Portuguese",
    "ru": "Russian",
    "ur": "Urdu",
    "id": "Indonesian",
    "de": "German",
    "ja": "Japanese",
    "sw": "Swahili",
    "mr": "Marathi",
    "te": "Telugu",
    "tr": "Turkish",
    "ko": "Korean",
    "ta": "Tamil",
    "vi": "Vietnamese",
    "az": "Azerbaijani",
    "be": "Belarusian",
    "it": "Italian",
    "uk": "Ukrainian",
})

LOCALE_DIRECTIVES: Mapping[str, str] = MappingProxyType({
    "ko": "Use formal Korean (합니다/습니다 endings) appropriate for app interfaces.",
    "zh-TW": "Use Traditional Chinese characters specifically for Taiwan users. Avoid Simplified Chinese.",
    "zh-CN": "Use Simplified Chinese characters. Avoid Traditional Chinese.",
})


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def locale_directive(code: str) -> Optional[str]:
    """Extra prompt instruction for locales that share a script family."""
    return LOCALE_DIRECTIVES.get(code)


class LocaleCatalog:
    """Immutable, ordered catalog of target locales."""

    def __init__(self, entries: Iterable[LocaleInfo]):
        self._entries: Tuple[LocaleInfo, ...] = tuple(entries)
        self._by_code: Mapping[str, LocaleInfo] = MappingProxyType(
            {entry.code: entry for entry in self._entries}
        )

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def codes(self) -> List[str]:
        return [entry.code for entry in self._entries]

    def get(self, code: str) -> LocaleInfo:
        return self._by_code[code]

    def folder(self, code: str) -> str:
        return self._by_code[code].folder

    def validate(self, requested: Optional[Sequence[str]]) -> List[str]:
        """Keep the supported codes from ``requested``, in request order.

        Unknown codes are dropped with a warning. Nothing requested, or
        nothing left after filtering, selects the whole catalog.
        """
        if not requested:
            return self.codes

        valid: List[str] = []
        for code in requested:
            if code not in self._by_code:
                logging.warning(
                    "Unsupported language '%s' ignored. Supported: %s",
                    code,
                    ", ".join(self.codes),
                )
                continue
            if code not in valid:
                valid.append(code)

        if not valid:
            logging.warning("No supported languages requested; using all supported languages.")
            return self.codes
        return valid


def _catalog_entry(code: str, folder: str) -> LocaleInfo:
    return LocaleInfo(code=code, name=language_name(code), folder=folder)


DEFAULT_CATALOG = LocaleCatalog([
    _catalog_entry("az", "values-az"),
    _catalog_entry("be", "values-be"),
    _catalog_entry("en", "values-en"),
    _catalog_entry("es", "values-es"),
    _catalog_entry("id", "values-id"),
    _catalog_entry("it", "values-it"),
    _catalog_entry("ru", "values-ru"),
    _catalog_entry("tr", "values-tr"),
    _catalog_entry("uk", "values-uk"),
    _catalog_entry("zh-CN", "values-zh-rCN"),
    _catalog_entry("zh-TW", "values-zh-rTW"),
])
