"""Sources of the changed-file list for a pull request.

The analyzer only needs "given two refs, return the changed paths", so that
question sits behind :class:`ChangedFilesSource`. Production code asks git;
tests and ``--changed-files`` runs supply a fixed list.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from diffcov.utils.git import diff_name_only

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import TextIO

logger = logging.getLogger(__name__)


class ChangedFilesSource(ABC):
    """Returns the ordered list of files changed between two refs."""

    @abstractmethod
    def changed_files(self, base_ref: str, head_ref: str) -> list[str]:
        """Return repository-relative paths changed on head_ref since base_ref."""


class GitDiffSource(ChangedFilesSource):
    """Changed files from ``git diff --name-only base...head``."""

    def __init__(self, repo_path: Path | str) -> None:
        self._repo_path = Path(repo_path)

    def changed_files(self, base_ref: str, head_ref: str) -> list[str]:
        return diff_name_only(self._repo_path, base_ref, head_ref)


class StaticChangedFiles(ChangedFilesSource):
    """A fixed list of changed files, independent of the refs asked for."""

    def __init__(self, paths: Iterable[str]) -> None:
        self._paths = [p.strip() for p in paths if p.strip()]

    @classmethod
    def from_stream(cls, stream: TextIO) -> StaticChangedFiles:
        """Read one path per line, e.g. the saved output of ``git diff --name-only``."""
        return cls(stream.read().splitlines())

    def changed_files(self, base_ref: str, head_ref: str) -> list[str]:
        logger.debug("Using %d pre-computed changed file(s)", len(self._paths))
        return list(self._paths)
