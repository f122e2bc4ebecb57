"""Coverage adapters for unified coverage reporting."""

from diffcov.adapters.coverage.base import (
    ClassCoverage,
    CoverageAdapter,
    CoverageCounter,
    CoverageReport,
    CoverageReportError,
    PackageCoverage,
)
from diffcov.adapters.coverage.jacoco import JaCoCoAdapter

__all__ = [
    "ClassCoverage",
    "CoverageAdapter",
    "CoverageCounter",
    "CoverageReport",
    "CoverageReportError",
    "JaCoCoAdapter",
    "PackageCoverage",
]
