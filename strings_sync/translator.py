"""Batch translation of string resources powered by Gemini."""

from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Protocol

from google import genai
from google.genai import types

from .config import TranslatorConfig
from .errors import TranslationError
from .locales import language_name, locale_directive

# Items per request; keeps prompts small and requests under the timeout.
MAX_BATCH_SIZE = 60
NEWLINE_PLACEHOLDER = "__NEWLINE__"
FAILURE_PREFIX = "[TRANSLATION_FAILED: "

# Per-key fallback: first attempt plus this many retries.
SINGLE_RETRIES = 2
SINGLE_BACKOFF_SECONDS = 1.0

BACKOFF_SECONDS = 1.0
BACKOFF_MAX_SECONDS = 30.0

TEMPERATURE = 0.3
SINGLE_MAX_OUTPUT_TOKENS = 500
BATCH_MAX_OUTPUT_TOKENS = 4000

# Passthrough check ignores very short sources such as "OK".
PASSTHROUGH_MIN_LENGTH = 3


@dataclass(frozen=True)
class PromptConfig:
    """Holds prompt templates for translation requests."""

    single_system: str
    batch_system: str
    single_template: str
    batch_template: str

    def _directive(self, target_lang: str) -> str:
        directive = locale_directive(target_lang)
        return f"\nIMPORTANT: {directive}" if directive else ""

    def build_single(self, text: str, source_lang: str, target_lang: str) -> str:
        return self.single_template.format(
            source_lang=language_name(source_lang),
            target_lang=language_name(target_lang),
            placeholder=NEWLINE_PLACEHOLDER,
            directive=self._directive(target_lang),
            text=text,
        )

    def build_batch(self, texts: Mapping[str, str], source_lang: str, target_lang: str) -> str:
        return self.batch_template.format(
            source_lang=language_name(source_lang),
            target_lang=language_name(target_lang),
            placeholder=NEWLINE_PLACEHOLDER,
            directive=self._directive(target_lang),
            input_json=json.dumps(dict(texts), ensure_ascii=False, indent=2),
        )


DEFAULT_PROMPT_CONFIG = PromptConfig(
    single_system=(
        "You are a professional translator specializing in mobile app localization. "
        "You preserve formatting placeholders and ensure translations are concise and "
        "appropriate for UI elements."
    ),
    batch_system=(
        "You are a professional translator specializing in mobile app localization. "
        "Return only valid JSON with translated values. Preserve all formatting placeholders."
    ),
    single_template=(
        "Translate the following Android app string resource from {source_lang} to {target_lang}.\n"
        "Keep the translation natural and appropriate for mobile UI.\n"
        "Preserve any placeholders like %s, %d, %1$s, etc.\n"
        "IMPORTANT: Preserve the placeholder {placeholder} exactly as it appears - "
        "do not translate or modify it.{directive}\n"
        "Only return the translated text without any explanation.\n"
        "\n"
        "Text to translate:\n"
        "{text}"
    ),
    batch_template=(
        "Translate the following Android app string resources from {source_lang} to {target_lang}.\n"
        "Keep translations natural and appropriate for mobile UI.\n"
        "Preserve any placeholders like %s, %d, %1$s, etc.\n"
        "IMPORTANT: Preserve the placeholder {placeholder} exactly as it appears - "
        "do not translate or modify it.{directive}\n"
        "Return ONLY a JSON object with the same keys and translated values.\n"
        "\n"
        "Input JSON:\n"
        "{input_json}"
    ),
)


@dataclass
class BatchTranslation:
    """Outcome of one translate_batch call.

    ``translations`` covers every requested key. Keys in ``failed_keys`` hold
    a failure sentinel instead of a translation.
    """

    translations: Dict[str, str] = field(default_factory=dict)
    failed_keys: List[str] = field(default_factory=list)
    untranslated_keys: List[str] = field(default_factory=list)

    @property
    def translated_count(self) -> int:
        return len(self.translations) - len(self.failed_keys)

    def merge(self, other: "BatchTranslation") -> None:
        self.translations.update(other.translations)
        self.failed_keys.extend(other.failed_keys)
        self.untranslated_keys.extend(other.untranslated_keys)


class TranslationProvider(Protocol):
    def translate(self, text: str, target_lang: str, source_lang: str = "en") -> str:
        ...

    def translate_batch(
        self,
        texts: Mapping[str, str],
        target_lang: str,
        source_lang: str = "en",
    ) -> BatchTranslation:
        ...


def escape_newlines(text: str) -> str:
    return text.replace("\\n", NEWLINE_PLACEHOLDER)


def unescape_newlines(text: str) -> str:
    return text.replace(NEWLINE_PLACEHOLDER, "\\n")


def failure_sentinel(target_lang: str, text: str) -> str:
    return f"{FAILURE_PREFIX}{target_lang}] {text}"


def is_failure_sentinel(value: str) -> bool:
    return value.startswith(FAILURE_PREFIX)


def clean_json_response(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def is_retryable_error(exc: Exception) -> bool:
    if isinstance(exc, TranslationError):
        return False

    transient_signals = (
        "rate limit",
        "resource exhausted",
        "temporarily unavailable",
        "try again",
        "deadline exceeded",
        "overloaded",
    )
    message = str(exc).lower()
    if any(signal in message for signal in transient_signals):
        return True
    return not isinstance(exc, ValueError)


def backoff_delay(attempt: int) -> float:
    delay = min(BACKOFF_SECONDS * (2 ** (attempt - 1)), BACKOFF_MAX_SECONDS)
    return delay + random.uniform(0, BACKOFF_SECONDS)


def chunk_texts(texts: Mapping[str, str], size: int = MAX_BATCH_SIZE) -> Iterator[Dict[str, str]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    keys = list(texts)
    for start in range(0, len(keys), size):
        yield {key: texts[key] for key in keys[start:start + size]}


def find_untranslated(
    sources: Mapping[str, str],
    translations: Mapping[str, str],
    target_lang: str,
    source_lang: str,
) -> List[str]:
    """Keys whose translation is byte-identical to a non-trivial source."""
    if target_lang == source_lang:
        return []
    suspects: List[str] = []
    for key, translated in translations.items():
        original = sources.get(key)
        if original and len(original) > PASSTHROUGH_MIN_LENGTH and translated == original:
            suspects.append(key)
    return suspects


def setup_gemini(config: TranslatorConfig) -> genai.Client:
    """Create a Google GenAI client (google-genai SDK)."""
    http_options = types.HttpOptions(
        base_url=config.resolved_base_url,
        timeout=int(config.timeout_seconds * 1000),
    )
    return genai.Client(api_key=config.api_key, http_options=http_options)


class GeminiTranslator:
    """TranslationProvider backed by ``client.models.generate_content``."""

    def __init__(
        self,
        config: TranslatorConfig,
        client=None,
        prompt_config: PromptConfig = DEFAULT_PROMPT_CONFIG,
        batch_size: int = MAX_BATCH_SIZE,
    ):
        self.config = config
        self.model = config.resolved_model
        self.client = client if client is not None else setup_gemini(config)
        self.prompt_config = prompt_config
        self.batch_size = batch_size

    def _generate(self, prompt: str, system: str, json_output: bool) -> str:
        generation_config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=TEMPERATURE,
            max_output_tokens=BATCH_MAX_OUTPUT_TOKENS if json_output else SINGLE_MAX_OUTPUT_TOKENS,
            response_mime_type="application/json" if json_output else None,
        )
        response = self.client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=generation_config,
        )
        response_text = getattr(response, "text", None)
        if not response_text or not response_text.strip():
            raise TranslationError("Empty response or no usable text returned.")
        return response_text

    def translate(self, text: str, target_lang: str, source_lang: str = "en") -> str:
        prompt = self.prompt_config.build_single(escape_newlines(text), source_lang, target_lang)
        response_text = self._generate(prompt, self.prompt_config.single_system, json_output=False)
        return unescape_newlines(response_text.strip())

    def _request_chunk(
        self,
        chunk: Mapping[str, str],
        target_lang: str,
        source_lang: str,
    ) -> Dict[str, str]:
        escaped = {key: escape_newlines(value) for key, value in chunk.items()}
        prompt = self.prompt_config.build_batch(escaped, source_lang, target_lang)
        response_text = self._generate(prompt, self.prompt_config.batch_system, json_output=True)

        cleaned_text = clean_json_response(response_text)
        try:
            payload = json.loads(cleaned_text)
        except json.JSONDecodeError as exc:
            raise TranslationError(f"Invalid JSON: {exc}. Received text: {cleaned_text[:120]}") from exc
        if not isinstance(payload, dict):
            raise TranslationError(f"Expected a JSON object, got {type(payload).__name__}.")

        results: Dict[str, str] = {}
        for key in chunk:
            value = payload.get(key)
            if isinstance(value, str):
                results[key] = unescape_newlines(value)
        return results

    def _request_chunk_with_retry(
        self,
        chunk: Mapping[str, str],
        target_lang: str,
        source_lang: str,
    ) -> Dict[str, str]:
        attempt = 0
        while True:
            try:
                return self._request_chunk(chunk, target_lang, source_lang)
            except Exception as exc:
                attempt += 1
                retryable = is_retryable_error(exc)
                logging.warning(
                    "Batch error for %s (attempt %s/%s, retry=%s): %s",
                    target_lang,
                    attempt,
                    self.config.max_retries + 1,
                    retryable,
                    exc,
                )
                if not retryable or attempt > self.config.max_retries:
                    raise
                time.sleep(backoff_delay(attempt))

    def _translate_single_with_retry(
        self,
        key: str,
        text: str,
        target_lang: str,
        source_lang: str,
    ) -> Optional[str]:
        attempts = SINGLE_RETRIES + 1
        for attempt in range(1, attempts + 1):
            try:
                return self.translate(text, target_lang, source_lang)
            except Exception as exc:
                if attempt < attempts:
                    logging.warning("Retry %s for key '%s' to %s: %s", attempt, key, target_lang, exc)
                    time.sleep(SINGLE_BACKOFF_SECONDS * attempt)
                else:
                    logging.error(
                        "Failed to translate key '%s' to %s after %s attempts: %s",
                        key,
                        target_lang,
                        attempts,
                        exc,
                    )
        return None

    def _translate_individually(
        self,
        texts: Mapping[str, str],
        target_lang: str,
        source_lang: str,
    ) -> BatchTranslation:
        outcome = BatchTranslation()
        for key, text in texts.items():
            translated = self._translate_single_with_retry(key, text, target_lang, source_lang)
            if translated is None:
                outcome.failed_keys.append(key)
                outcome.translations[key] = failure_sentinel(target_lang, text)
            else:
                outcome.translations[key] = translated
        if outcome.failed_keys:
            logging.error(
                "%s key(s) failed to translate to %s: %s",
                len(outcome.failed_keys),
                target_lang,
                ", ".join(outcome.failed_keys),
            )
        return outcome

    def _translate_chunk(
        self,
        chunk: Mapping[str, str],
        target_lang: str,
        source_lang: str,
    ) -> BatchTranslation:
        try:
            translated = self._request_chunk_with_retry(chunk, target_lang, source_lang)
        except Exception as exc:
            logging.error(
                "Batch translation failed for %s (%s items); translating one by one: %s",
                target_lang,
                len(chunk),
                exc,
            )
            return self._translate_individually(chunk, target_lang, source_lang)

        outcome = BatchTranslation(translations=translated)
        missing = {key: text for key, text in chunk.items() if key not in translated}
        if missing:
            logging.warning(
                "Response for %s is missing %s key(s); translating them one by one.",
                target_lang,
                len(missing),
            )
            outcome.merge(self._translate_individually(missing, target_lang, source_lang))
        # Keep the request order.
        outcome.translations = {key: outcome.translations[key] for key in chunk}
        return outcome

    def translate_batch(
        self,
        texts: Mapping[str, str],
        target_lang: str,
        source_lang: str = "en",
    ) -> BatchTranslation:
        result = BatchTranslation()
        for chunk in chunk_texts(texts, self.batch_size):
            result.merge(self._translate_chunk(chunk, target_lang, source_lang))

        succeeded = {
            key: value for key, value in result.translations.items() if key not in result.failed_keys
        }
        result.untranslated_keys = find_untranslated(texts, succeeded, target_lang, source_lang)
        for key in result.untranslated_keys:
            logging.warning(
                "Key '%s' appears untranslated for %s: %r", key, target_lang, result.translations[key]
            )
        if result.untranslated_keys:
            logging.error(
                "%s string(s) appear untranslated for %s. Consider retrying with a different model.",
                len(result.untranslated_keys),
                target_lang,
            )
        return result


def create_translator(config: TranslatorConfig, client=None) -> GeminiTranslator:
    config.validate()
    return GeminiTranslator(config, client=client)
