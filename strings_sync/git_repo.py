"""Minimal git access: working-tree status, HEAD blobs and the repository root."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import List, Optional, Sequence, Set, Union

from .errors import GitError

PathLike = Union[str, PurePath]


def to_posix(path: PathLike) -> str:
    """Normalize separators so paths compare equal to git's output."""
    return str(path).replace("\\", "/")


@dataclass
class WorkingTreeStatus:
    untracked: Set[str] = field(default_factory=set)
    added: Set[str] = field(default_factory=set)
    modified: Set[str] = field(default_factory=set)

    def is_new(self, path: str) -> bool:
        return path in self.untracked or path in self.added

    def is_dirty(self, path: str) -> bool:
        return self.is_new(path) or path in self.modified


def parse_porcelain_status(output: str) -> WorkingTreeStatus:
    """Parse ``git status --porcelain=v1 -z`` output."""
    status = WorkingTreeStatus()
    entries = output.split("\0")
    idx = 0
    while idx < len(entries):
        entry = entries[idx]
        idx += 1
        if len(entry) < 4:
            continue
        code, path = entry[:2], to_posix(entry[3:])
        if code == "??":
            status.untracked.add(path)
            continue
        if "R" in code or "C" in code:
            # The next entry is the source path of the rename/copy.
            idx += 1
        if code[0] == "A":
            status.added.add(path)
        else:
            status.modified.add(path)
    return status


class GitRepository:
    """Runs git commands against the repository containing ``working_dir``."""

    def __init__(self, working_dir: PathLike):
        self.working_dir = Path(working_dir).resolve()
        self._root: Optional[Path] = None

    def run(self, args: Sequence[str], check: bool = True) -> subprocess.CompletedProcess:
        command = ["git", *args]
        try:
            completed = subprocess.run(
                command,
                cwd=self.working_dir,
                capture_output=True,
            )
        except OSError as exc:
            raise GitError(f"Unable to run git: {exc}") from exc
        if check and completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise GitError(f"{' '.join(command)} failed: {stderr or 'unknown error'}")
        return completed

    def root(self) -> Path:
        if self._root is None:
            completed = self.run(["rev-parse", "--show-toplevel"])
            self._root = Path(completed.stdout.decode("utf-8").strip()).resolve()
        return self._root

    def relative_to_root(self, path: PathLike) -> str:
        """Return ``path`` relative to the repository root, POSIX separators."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.working_dir / candidate
        try:
            rel = candidate.resolve().relative_to(self.root())
        except ValueError as exc:
            raise GitError(f"{path} is outside repository {self.root()}") from exc
        return rel.as_posix()

    def status(self, repo_paths: Sequence[str] = ()) -> WorkingTreeStatus:
        """Working-tree status; porcelain paths are relative to the root."""
        args: List[str] = ["status", "--porcelain=v1", "-z", "--untracked-files=all"]
        if repo_paths:
            args.append("--")
            args.extend(f":(top){path}" for path in repo_paths)
        completed = self.run(args)
        return parse_porcelain_status(completed.stdout.decode("utf-8", errors="replace"))

    def show_head(self, repo_path: str) -> Optional[bytes]:
        """Content of ``repo_path`` at HEAD, or None when there is none."""
        completed = self.run(["show", f"HEAD:{repo_path}"], check=False)
        if completed.returncode != 0:
            logging.info(
                "No committed version of %s: %s",
                repo_path,
                completed.stderr.decode("utf-8", errors="replace").strip(),
            )
            return None
        return completed.stdout
