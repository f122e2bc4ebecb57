"""Coverage of the files changed in a pull request.

Joins a parsed coverage report with the changed-file list:

1. Reconstructs each class entry's source path from the module path, the
   source root, the package name and the class's source file name
2. Scores the entries whose path is in the changed-file list
3. Averages the per-file percentages (each file weighs the same, regardless
   of how many instructions it holds)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from diffcov.adapters.coverage.base import ClassCoverage, CoverageReport
    from diffcov.config import DiffCovConfig

logger = logging.getLogger(__name__)


# ── Data models ──────────────────────────────────────────────────


@dataclass
class FileCoverageEntry:
    """Coverage of one changed file, as scored from one class entry."""

    file_path: str
    """Repository-relative path of the source file."""

    source_filename: str
    """Bare source file name (e.g. ``Foo.java``)."""

    class_name: str
    """Class entry the counters came from."""

    missed: int
    """Missed items of the scored counter kind."""

    covered: int
    """Covered items of the scored counter kind."""

    meets_threshold: bool
    """Whether the percentage is at or above the threshold."""

    @property
    def percentage(self) -> float:
        """Return covered / (missed + covered) as a percentage."""
        return self.covered / (self.missed + self.covered) * 100.0


@dataclass
class ChangedCoverageResult:
    """Outcome of one changed-files coverage run."""

    changed_files: list[str]
    """Changed files, in the order the diff reported them."""

    threshold: float
    """Threshold the entries were compared against."""

    entries: list[FileCoverageEntry] = field(default_factory=list)
    """Scored entries, in report order."""

    skipped: list[str] = field(default_factory=list)
    """Changed files present in the report without any counter data."""

    @property
    def file_count(self) -> int:
        """Return the number of scored entries."""
        return len(self.entries)

    @property
    def total_coverage(self) -> float:
        """Return the sum of the per-entry percentages."""
        return sum(entry.percentage for entry in self.entries)

    @property
    def average_coverage(self) -> float | None:
        """Return the mean of the per-entry percentages, or None with no entries."""
        if not self.entries:
            return None
        return self.total_coverage / len(self.entries)

    @property
    def meets_threshold(self) -> bool:
        """Return False only when there is an average and it is below the threshold."""
        average = self.average_coverage
        return average is None or average >= self.threshold


# ── Helpers ──────────────────────────────────────────────────────


def expected_source_path(
    module_path: str, source_root: str, package_name: str, source_filename: str
) -> str:
    """Rebuild the repository-relative path of a class's source file.

    ``("mod/", "src/main/java/", "com.acme.util", "Foo.java")`` becomes
    ``mod/src/main/java/com/acme/util/Foo.java``.
    """
    return module_path + source_root + package_name.replace(".", "/") + "/" + source_filename


def counter_totals(class_cov: ClassCoverage, counter_type: str) -> tuple[int, int]:
    """Return ``(missed, covered)`` summed over every counter of *counter_type*."""
    missed = 0
    covered = 0
    for counter in class_cov.counters_of(counter_type):
        missed += counter.missed
        covered += counter.covered
    return missed, covered


def class_coverage_percentage(class_cov: ClassCoverage, counter_type: str) -> float | None:
    """Return the coverage percentage of a class, or None if it has nothing to count."""
    missed, covered = counter_totals(class_cov, counter_type)
    if missed + covered > 0:
        return covered / (missed + covered) * 100.0
    return None


# ── Analyzer ─────────────────────────────────────────────────────


class ChangedCoverageAnalyzer:
    """Scores the changed files found in a coverage report."""

    def __init__(self, config: DiffCovConfig) -> None:
        self._module_path = config.paths.module_path
        self._source_root = config.paths.source_root
        self._counter_type = config.coverage.counter_type
        self._threshold = config.coverage.threshold

    def analyze(
        self, report: CoverageReport, changed_files: Sequence[str]
    ) -> ChangedCoverageResult:
        """Join *report* with *changed_files* and score every match."""
        changed = set(changed_files)
        result = ChangedCoverageResult(
            changed_files=list(changed_files), threshold=self._threshold
        )

        for package, class_cov in report.iter_classes():
            if not class_cov.source_filename:
                continue
            file_path = expected_source_path(
                self._module_path, self._source_root, package.name, class_cov.source_filename
            )
            if file_path not in changed:
                continue

            percentage = class_coverage_percentage(class_cov, self._counter_type)
            if percentage is None:
                logger.warning(
                    "No %s coverage found for %s", self._counter_type.lower(), file_path
                )
                result.skipped.append(file_path)
                continue

            missed, covered = counter_totals(class_cov, self._counter_type)
            result.entries.append(
                FileCoverageEntry(
                    file_path=file_path,
                    source_filename=class_cov.source_filename,
                    class_name=class_cov.name,
                    missed=missed,
                    covered=covered,
                    meets_threshold=percentage >= self._threshold,
                )
            )

        logger.info(
            "Scored %d of %d changed file(s) against %.2f%%",
            result.file_count,
            len(changed),
            self._threshold,
        )
        return result


def analyze_changed_coverage(
    report: CoverageReport, changed_files: Sequence[str], config: DiffCovConfig
) -> ChangedCoverageResult:
    """Convenience wrapper around :class:`ChangedCoverageAnalyzer`."""
    return ChangedCoverageAnalyzer(config).analyze(report, changed_files)
