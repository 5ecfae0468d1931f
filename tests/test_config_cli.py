"""Tests for configuration loading, locale validation and the CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import commit_all, write_set
from strings_sync import cli
from strings_sync.config import load_config, split_languages
from strings_sync.errors import ConfigError
from strings_sync.locales import DEFAULT_CATALOG, language_name, locale_directive


def test_load_config_reads_environment(tmp_path: Path) -> None:
    config = load_config({
        "TRANSLATION_API_KEY": "secret",
        "TRANSLATION_PROVIDER": "gemini-pro",
        "TRANSLATION_LANGUAGES": "es, it,,ru",
        "TRANSLATION_TIMEOUT": "30",
        "TRANSLATION_MAX_RETRIES": "1",
        "ANDROID_PROJECT_ROOT": str(tmp_path),
    })
    assert config.api_key == "secret"
    assert config.resolved_model == "gemini-2.5-pro"
    assert config.translation_languages == ["es", "it", "ru"]
    assert config.timeout_seconds == 30.0
    assert config.max_retries == 1
    assert config.source_language == "en"
    assert config.project_root == tmp_path


def test_load_config_requires_api_key() -> None:
    with pytest.raises(ConfigError):
        load_config({})


@pytest.mark.parametrize(
    "env",
    [
        {"TRANSLATION_API_KEY": "k", "TRANSLATION_PROVIDER": "openai"},
        {"TRANSLATION_API_KEY": "k", "TRANSLATION_TIMEOUT": "soon"},
        {"TRANSLATION_API_KEY": "k", "TRANSLATION_MAX_RETRIES": "-1"},
    ],
)
def test_load_config_rejects_invalid_values(env) -> None:
    with pytest.raises(ConfigError):
        load_config(env)


def test_split_languages() -> None:
    assert split_languages(None) == []
    assert split_languages(" zh-CN ,zh-TW") == ["zh-CN", "zh-TW"]


def test_catalog_validation(caplog) -> None:
    assert DEFAULT_CATALOG.validate(["ru", "klingon", "ru", "zh-TW"]) == ["ru", "zh-TW"]
    assert "klingon" in caplog.text
    assert DEFAULT_CATALOG.validate([]) == DEFAULT_CATALOG.codes
    assert DEFAULT_CATALOG.validate(["klingon"]) == DEFAULT_CATALOG.codes
    assert DEFAULT_CATALOG.folder("zh-CN") == "values-zh-rCN"
    assert "en" in DEFAULT_CATALOG


def test_language_helpers() -> None:
    assert language_name("uk") == "Ukrainian"
    assert language_name("xx") == "xx"
    assert "Simplified" in locale_directive("zh-CN")
    assert locale_directive("es") is None


def test_cli_check_changes(repo: Path, monkeypatch, capsys) -> None:
    strings = Path("app/src/main/res/values/strings.xml")
    write_set(repo / strings, [("a", "One")])
    commit_all(repo)
    write_set(repo / strings, [("a", "One"), ("b", "Two")])

    monkeypatch.setenv("TRANSLATION_API_KEY", "test-key")
    monkeypatch.setattr(cli, "create_translator", lambda config: object())

    exit_code = cli.main(["--project-root", str(repo), "--no-progress", "check-changes"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["files_with_changes"] == 1
    assert payload["changes"][0]["added"] == ["b"]


def test_cli_missing_api_key(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("TRANSLATION_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    assert cli.main(["check-changes"]) == 2


def test_cli_check_changes_with_unreadable_file(repo: Path, monkeypatch, capsys) -> None:
    strings = Path("app/src/main/res/values/strings.xml")
    broken = Path("lib/src/main/res/values/strings.xml")
    write_set(repo / strings, [("a", "One")])
    (repo / broken).parent.mkdir(parents=True)
    (repo / broken).write_text("<resources><string name='x'>", encoding="utf-8")

    monkeypatch.setenv("TRANSLATION_API_KEY", "test-key")
    monkeypatch.setattr(cli, "create_translator", lambda config: object())

    exit_code = cli.main(["--project-root", str(repo), "--no-progress", "check-changes"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert payload["files_with_changes"] == 1
    assert payload["failed_files"] == 1
    assert payload["changes"][0]["added"] == ["a"]
    assert payload["changes"][1]["error"]
