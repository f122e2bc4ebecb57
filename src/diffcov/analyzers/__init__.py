"""Analyzers that turn raw inputs into changed-file coverage results."""

from diffcov.analyzers.changed_coverage import (
    ChangedCoverageAnalyzer,
    ChangedCoverageResult,
    FileCoverageEntry,
    analyze_changed_coverage,
)
from diffcov.analyzers.diff import ChangedFilesSource, GitDiffSource, StaticChangedFiles

__all__ = [
    "ChangedCoverageAnalyzer",
    "ChangedCoverageResult",
    "ChangedFilesSource",
    "FileCoverageEntry",
    "GitDiffSource",
    "StaticChangedFiles",
    "analyze_changed_coverage",
]
