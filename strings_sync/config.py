"""Environment-driven configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_PROVIDER = "gemini"
DEFAULT_SOURCE_LANGUAGE = "en"
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_RETRIES = 3


@dataclass(frozen=True)
class ProviderPreset:
    model: str
    base_url: Optional[str] = None


# Alternate configurations of the same Gemini client.
PROVIDER_PRESETS: Mapping[str, ProviderPreset] = {
    "gemini": ProviderPreset(model="gemini-2.5-flash"),
    "gemini-lite": ProviderPreset(model="gemini-2.5-flash-lite"),
    "gemini-pro": ProviderPreset(model="gemini-2.5-pro"),
}


@dataclass(frozen=True)
class TranslatorConfig:
    api_key: str
    provider: str = DEFAULT_PROVIDER
    model: Optional[str] = None
    base_url: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    translation_languages: List[str] = field(default_factory=list)
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    project_root: Path = field(default_factory=Path.cwd)

    def validate(self) -> None:
        if self.provider not in PROVIDER_PRESETS:
            raise ConfigError(
                f"Unknown provider: {self.provider}. "
                f"Choose one of: {', '.join(PROVIDER_PRESETS)}"
            )
        if self.max_retries < 0:
            raise ConfigError("TRANSLATION_MAX_RETRIES must not be negative")

    @property
    def preset(self) -> ProviderPreset:
        self.validate()
        return PROVIDER_PRESETS[self.provider]

    @property
    def resolved_model(self) -> str:
        return self.model or self.preset.model

    @property
    def resolved_base_url(self) -> Optional[str]:
        return self.base_url or self.preset.base_url


def split_languages(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [code.strip() for code in value.split(",") if code.strip()]


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_config(env: Optional[Mapping[str, str]] = None) -> TranslatorConfig:
    """Build a TranslatorConfig from ``env`` (defaults to os.environ + .env)."""
    if env is None:
        load_dotenv(override=False)
        env = os.environ

    api_key = env.get("TRANSLATION_API_KEY", "").strip()
    if not api_key:
        raise ConfigError("TRANSLATION_API_KEY environment variable is required")

    project_root = env.get("ANDROID_PROJECT_ROOT")
    config = TranslatorConfig(
        api_key=api_key,
        provider=env.get("TRANSLATION_PROVIDER", DEFAULT_PROVIDER).strip() or DEFAULT_PROVIDER,
        model=env.get("TRANSLATION_MODEL") or None,
        base_url=env.get("TRANSLATION_API_BASE_URL") or None,
        timeout_seconds=_number(env, "TRANSLATION_TIMEOUT", DEFAULT_TIMEOUT_SECONDS, float),
        max_retries=_number(env, "TRANSLATION_MAX_RETRIES", DEFAULT_MAX_RETRIES, int),
        translation_languages=split_languages(env.get("TRANSLATION_LANGUAGES")),
        source_language=env.get("SOURCE_LANGUAGE", DEFAULT_SOURCE_LANGUAGE).strip() or DEFAULT_SOURCE_LANGUAGE,
        project_root=Path(project_root) if project_root else Path.cwd(),
    )
    config.validate()
    return config
