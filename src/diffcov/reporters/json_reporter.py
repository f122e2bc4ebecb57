"""JSON reporter — machine-readable changed-file coverage.

Used by ``--json-output`` and the global ``--ci`` flag in place of the rich
terminal report.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from diffcov.reporters.github_output import file_url

if TYPE_CHECKING:
    from diffcov.analyzers.changed_coverage import ChangedCoverageResult


class JSONReporter:
    """Serialize a ChangedCoverageResult into a single JSON document."""

    def __init__(self, repository: str = "", head_ref: str = "") -> None:
        self._repository = repository
        self._head_ref = head_ref

    def build(self, result: ChangedCoverageResult) -> dict[str, Any]:
        """Return the report as plain JSON-compatible data."""
        average = result.average_coverage
        return {
            "overall": round(average, 2) if average is not None else None,
            "changedFiles": result.file_count,
            "threshold": result.threshold,
            "passed": result.meets_threshold,
            "files": [
                {
                    "path": entry.file_path,
                    "className": entry.class_name,
                    "missed": entry.missed,
                    "covered": entry.covered,
                    "coverage": round(entry.percentage, 2),
                    "meetsThreshold": entry.meets_threshold,
                    "url": file_url(self._repository, self._head_ref, entry.file_path),
                }
                for entry in result.entries
            ],
            "skipped": list(result.skipped),
            "diff": list(result.changed_files),
        }

    def generate_string(self, result: ChangedCoverageResult) -> str:
        """Return the JSON report as a string."""
        return json.dumps(self.build(result), indent=2, ensure_ascii=False)
