"""Tests for diffing the default strings file against HEAD."""

from __future__ import annotations

from pathlib import Path

from conftest import commit_all, git, write_set
from strings_sync.git_diff import GitDiffAnalyzer, common_order_changed, compute_diff
from strings_sync.git_repo import GitRepository, parse_porcelain_status
from strings_sync.resources import StringResource

STRINGS = Path("app/src/main/res/values/strings.xml")


def resources(*entries):
    result = {}
    for entry in entries:
        name, value = entry[0], entry[1]
        translatable = entry[2] if len(entry) > 2 else True
        result[name] = StringResource(name, value, translatable)
    return result


def test_unchanged_file_has_no_changes(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "1"), ("b", "2")])
    commit_all(repo)

    diff = GitDiffAnalyzer(repo).get_default_strings_changes(STRINGS)
    assert diff.added == {}
    assert diff.modified == {}
    assert diff.deleted == []
    assert diff.order_changed is False
    assert diff.current_order == ["a", "b"]
    assert not diff.has_changes


def test_untracked_file_reports_everything_added(repo: Path) -> None:
    write_set(repo / "README.xml", [("x", "y")])
    commit_all(repo, "initial")
    write_set(repo / STRINGS, [("a", "1"), ("b", "2"), ("c", "3", False)])

    analyzer = GitDiffAnalyzer(repo)
    diff = analyzer.get_default_strings_changes(STRINGS)
    assert diff.added == {"a": "1", "b": "2"}
    assert diff.modified == {}
    assert diff.deleted == []
    assert diff.order_changed is False
    assert diff.current_order == ["a", "b", "c"]
    assert analyzer.has_uncommitted_changes(STRINGS)


def test_file_in_repository_without_commits_is_new(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "1"), ("b", "2")])
    git(repo, "add", "-A")

    diff = GitDiffAnalyzer(repo).get_default_strings_changes(STRINGS)
    assert diff.added == {"a": "1", "b": "2"}
    assert diff.modified == {}
    assert diff.deleted == []


def test_added_modified_deleted(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "1"), ("b", "2"), ("gone", "bye")])
    commit_all(repo)
    write_set(repo / STRINGS, [("a", "1"), ("b", "two"), ("new", "fresh")])

    analyzer = GitDiffAnalyzer(repo)
    diff = analyzer.get_default_strings_changes(STRINGS)
    assert diff.added == {"new": "fresh"}
    assert diff.modified == {"b": "two"}
    assert diff.deleted == ["gone"]
    assert diff.order_changed is False
    assert diff.strings_to_translate() == {"new": "fresh", "b": "two"}
    assert analyzer.has_uncommitted_changes(STRINGS)


def test_swapped_order_sets_order_changed_only(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "1"), ("b", "2")])
    commit_all(repo)
    write_set(repo / STRINGS, [("b", "2"), ("a", "1")])

    diff = GitDiffAnalyzer(repo).get_default_strings_changes(STRINGS)
    assert diff.added == {}
    assert diff.modified == {}
    assert diff.deleted == []
    assert diff.order_changed is True
    assert diff.current_order == ["b", "a"]


def test_non_translatable_entries_are_ignored(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "1"), ("old_code", "X", False)])
    commit_all(repo)
    write_set(repo / STRINGS, [("a", "1"), ("b", "2"), ("c", "3", False)])

    diff = GitDiffAnalyzer(repo).get_default_strings_changes(STRINGS)
    assert diff.added == {"b": "2"}
    assert "c" not in diff.added
    assert diff.deleted == []


def test_analyzer_from_subdirectory_resolves_repository_paths(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "1")])
    commit_all(repo)
    write_set(repo / STRINGS, [("a", "1"), ("b", "2")])

    analyzer = GitDiffAnalyzer(repo / "app")
    diff = analyzer.get_default_strings_changes(Path("src/main/res/values/strings.xml"))
    assert diff.added == {"b": "2"}
    assert diff.modified == {}


def test_recreated_file_without_head_entry_is_not_an_error(repo: Path) -> None:
    write_set(repo / "other.xml", [("x", "y")])
    commit_all(repo)
    write_set(repo / STRINGS, [("a", "1")])
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "add strings")
    git(repo, "rm", "-q", "--cached", str(STRINGS))
    git(repo, "commit", "-q", "-m", "untrack")
    git(repo, "add", "-A")

    diff = GitDiffAnalyzer(repo).get_default_strings_changes(STRINGS)
    assert diff.added == {"a": "1"}


def test_show_head_returns_none_for_unknown_path(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "1")])
    commit_all(repo)
    git_repo = GitRepository(repo)
    assert git_repo.show_head("does/not/exist.xml") is None
    assert git_repo.show_head(STRINGS.as_posix()) is not None


def test_compute_diff_insertions_do_not_set_order_changed() -> None:
    previous = resources(("a", "1"), ("b", "2"))
    current = resources(("new", "0"), ("a", "1"), ("mid", "x"), ("b", "2"))
    diff = compute_diff(previous, current)
    assert diff.added == {"new": "0", "mid": "x"}
    assert diff.order_changed is False


def test_compute_diff_key_becoming_non_translatable_is_excluded() -> None:
    previous = resources(("a", "1"), ("b", "2"))
    current = resources(("a", "1"), ("b", "changed", False))
    diff = compute_diff(previous, current)
    assert diff.modified == {}
    assert diff.deleted == []


def test_common_order_changed_ignores_removed_keys() -> None:
    assert common_order_changed(["a", "b", "c"], ["a", "c"]) is False
    assert common_order_changed(["a", "b", "c"], ["c", "a"]) is True


def test_parse_porcelain_status_normalizes_paths() -> None:
    output = "?? res\\values\\strings.xml\0A  added.xml\0 M changed.xml\0R  new.xml\0old.xml\0"
    status = parse_porcelain_status(output)
    assert status.untracked == {"res/values/strings.xml"}
    assert status.added == {"added.xml"}
    assert status.modified == {"changed.xml", "new.xml"}
    assert status.is_new("res/values/strings.xml")
    assert status.is_dirty("changed.xml")
    assert not status.is_dirty("old.xml")


def test_markup_change_is_reported_with_full_value(repo: Path) -> None:
    write_set(repo / STRINGS, [("a", "Hello <b>world</b>!")])
    commit_all(repo)
    write_set(repo / STRINGS, [("a", "Hello <b>there</b>!")])

    diff = GitDiffAnalyzer(repo).get_default_strings_changes(STRINGS)
    assert diff.modified == {"a": "Hello <b>there</b>!"}
