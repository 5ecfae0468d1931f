"""Diff of the default strings.xml against its last committed version."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .git_repo import GitRepository, PathLike
from .resources import ResourceSet, load_strings, parse_strings


@dataclass
class StringsDiff:
    added: Dict[str, str] = field(default_factory=dict)
    modified: Dict[str, str] = field(default_factory=dict)
    deleted: List[str] = field(default_factory=list)
    order_changed: bool = False
    current_order: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.deleted or self.order_changed)

    def strings_to_translate(self) -> Dict[str, str]:
        merged = dict(self.added)
        merged.update(self.modified)
        return merged


def common_order_changed(previous_order: List[str], current_order: List[str]) -> bool:
    """Compare the relative order of the keys both sequences share."""
    previous_keys = set(previous_order)
    current_keys = set(current_order)
    current_filtered = [key for key in current_order if key in previous_keys]
    previous_filtered = [key for key in previous_order if key in current_keys]
    if len(current_filtered) != len(previous_filtered):
        return False
    return any(a != b for a, b in zip(current_filtered, previous_filtered))


def compute_diff(previous: ResourceSet, current: ResourceSet) -> StringsDiff:
    diff = StringsDiff(current_order=list(current))

    for name, resource in current.items():
        if not resource.translatable:
            continue
        before = previous.get(name)
        if before is None:
            diff.added[name] = resource.value
        elif not before.translatable:
            # Was marked do-not-translate in the baseline.
            continue
        elif before.value != resource.value:
            diff.modified[name] = resource.value

    for name, resource in previous.items():
        if not resource.translatable:
            continue
        now = current.get(name)
        if now is None:
            diff.deleted.append(name)

    if previous:
        diff.order_changed = common_order_changed(list(previous), diff.current_order)
    return diff


class GitDiffAnalyzer:
    def __init__(self, working_dir: PathLike, repo: Optional[GitRepository] = None):
        self.working_dir = Path(working_dir).resolve()
        self.repo = repo or GitRepository(self.working_dir)

    def _absolute(self, strings_path: PathLike) -> Path:
        path = Path(strings_path)
        return path if path.is_absolute() else self.working_dir / path

    def get_default_strings_changes(self, strings_path: PathLike) -> StringsDiff:
        """Classify changes of ``strings_path`` since HEAD.

        ``strings_path`` is relative to the working directory, which may be a
        subdirectory of the repository. Reading the current file may raise;
        a missing committed version only means there is no baseline.
        """
        absolute_path = self._absolute(strings_path)
        repo_path = self.repo.relative_to_root(absolute_path)
        current = load_strings(absolute_path)

        status = self.repo.status([repo_path])
        if status.is_new(repo_path):
            logging.info("%s is not committed yet; every string is new.", repo_path)
            diff = StringsDiff(current_order=list(current))
            for name, resource in current.items():
                if resource.translatable:
                    diff.added[name] = resource.value
            return diff

        head_content = self.repo.show_head(repo_path)
        previous = parse_strings(head_content) if head_content else {}
        return compute_diff(previous, current)

    def has_uncommitted_changes(self, strings_path: PathLike) -> bool:
        repo_path = self.repo.relative_to_root(self._absolute(strings_path))
        return self.repo.status([repo_path]).is_dirty(repo_path)
