"""Base classes and data models for coverage adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class CoverageReportError(Exception):
    """Exception raised when a coverage report cannot be read or parsed."""


@dataclass
class CoverageCounter:
    """A single named counter (e.g. INSTRUCTION, LINE, BRANCH)."""

    type: str
    missed: int
    covered: int

    @property
    def total(self) -> int:
        """Return the number of countable items (missed + covered)."""
        return self.missed + self.covered


@dataclass
class ClassCoverage:
    """Coverage counters for a single class entry in a report."""

    name: str
    """Class name as written in the report (e.g. ``com/acme/Foo``)."""

    source_filename: str
    """Source file the class was compiled from; empty for synthetic classes."""

    counters: list[CoverageCounter] = field(default_factory=list)
    """Counters attached to the class."""

    def counters_of(self, counter_type: str) -> list[CoverageCounter]:
        """Return every counter of the given kind."""
        return [c for c in self.counters if c.type == counter_type]


@dataclass
class PackageCoverage:
    """A package entry and the classes it contains."""

    name: str
    """Package name as written in the report (``com/acme`` or ``com.acme``)."""

    classes: list[ClassCoverage] = field(default_factory=list)


@dataclass
class CoverageReport:
    """Package → class → counter tree parsed from a coverage report."""

    packages: list[PackageCoverage] = field(default_factory=list)

    def iter_classes(self) -> Iterator[tuple[PackageCoverage, ClassCoverage]]:
        """Yield ``(package, class)`` pairs in document order."""
        for package in self.packages:
            for class_cov in package.classes:
                yield package, class_cov

    @property
    def class_count(self) -> int:
        """Return the total number of class entries."""
        return sum(len(p.classes) for p in self.packages)


class CoverageAdapter(ABC):
    """Abstract base class for coverage report adapters.

    Each concrete adapter knows how to locate and parse one tool's native
    report format into the unified CoverageReport tree.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Coverage tool identifier (e.g. 'jacoco')."""

    @abstractmethod
    def detect(self, project_path: Path) -> Path | None:
        """Return the path of an existing report under project_path, if any."""

    @abstractmethod
    def parse_coverage_file(self, coverage_file: Path) -> CoverageReport:
        """Parse a coverage report file into unified format.

        Args:
            coverage_file: Path to the native coverage report file.

        Returns:
            A CoverageReport with parsed coverage data.

        Raises:
            CoverageReportError: If the file is missing or not well-formed.
        """
