from __future__ import annotations

import json
import subprocess
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

import pytest

from strings_sync.config import TranslatorConfig
from strings_sync.resources import StringResource, write_strings
from strings_sync.translator import GeminiTranslator


def git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    git(root, "init", "-q")
    git(root, "config", "user.email", "dev@example.com")
    git(root, "config", "user.name", "Dev")
    git(root, "config", "commit.gpgsign", "false")
    return root


def commit_all(repo: Path, message: str = "update") -> None:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)


def write_set(path: Path, entries) -> None:
    """Write ``entries``: (name, value) or (name, value, translatable) tuples."""
    resources = {}
    for entry in entries:
        name, value = entry[0], entry[1]
        translatable = entry[2] if len(entry) > 2 else True
        resources[name] = StringResource(name=name, value=value, translatable=translatable)
    write_strings(path, resources)


def extract_batch(prompt: str) -> Dict[str, str]:
    return json.loads(prompt.split("Input JSON:\n", 1)[1])


def extract_single(prompt: str) -> str:
    return prompt.split("Text to translate:\n", 1)[1]


class FakeModels:
    """Stands in for ``genai.Client().models``.

    ``batch`` and ``single`` receive the decoded request and return the raw
    response text; raising simulates a provider failure.
    """

    def __init__(
        self,
        batch: Optional[Callable[[Dict[str, str], str], str]] = None,
        single: Optional[Callable[[str, str], str]] = None,
    ):
        self.batch = batch or (lambda texts, prompt: json.dumps({k: f"T:{v}" for k, v in texts.items()}))
        self.single = single or (lambda text, prompt: f"T:{text}")
        self.batch_calls: List[Dict[str, str]] = []
        self.single_calls: List[str] = []

    def generate_content(self, model, contents, config):
        if config.response_mime_type == "application/json":
            texts = extract_batch(contents)
            self.batch_calls.append(texts)
            return SimpleNamespace(text=self.batch(texts, contents))
        text = extract_single(contents)
        self.single_calls.append(text)
        return SimpleNamespace(text=self.single(text, contents))


class FakeClient:
    def __init__(self, models: FakeModels):
        self.models = models


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr("strings_sync.translator.time.sleep", lambda seconds: None)


@pytest.fixture
def make_translator(no_sleep):
    def factory(models: Optional[FakeModels] = None, batch_size: int = 60, max_retries: int = 0):
        models = models or FakeModels()
        config = TranslatorConfig(api_key="test-key", max_retries=max_retries)
        translator = GeminiTranslator(config, client=FakeClient(models), batch_size=batch_size)
        return translator, models

    return factory
