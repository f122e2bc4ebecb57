"""GitHub Actions output reporter.

Publishes the changed-file coverage as step outputs:

- ``overall``: average coverage (``80.00%``)
- ``changed-files``: number of scored files
- ``file-coverage``: a markdown table, one row per file

The values are printed as ``::set-output`` workflow commands and, when the
runner provides them, appended to the ``$GITHUB_OUTPUT`` and
``$GITHUB_STEP_SUMMARY`` files.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

import click

from diffcov.reporters.terminal import format_percentage, status_glyph

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from diffcov.analyzers.changed_coverage import ChangedCoverageResult, FileCoverageEntry

logger = logging.getLogger(__name__)

GITHUB_URL = "https://github.com"

# Row separator inside the single-line ``file-coverage`` value.
NEWLINE_TOKEN = "::newline::"

OUTPUT_OVERALL = "overall"
OUTPUT_CHANGED_FILES = "changed-files"
OUTPUT_FILE_COVERAGE = "file-coverage"


def file_url(repository: str, head_ref: str, file_path: str) -> str | None:
    """Return the GitHub blob URL of *file_path* on *head_ref*, if both are known."""
    if not repository or not head_ref:
        return None
    return f"{GITHUB_URL}/{repository}/blob/{head_ref}/{file_path}"


def overall_value(result: ChangedCoverageResult) -> str:
    """Return the average as ``X.XX%``; ``0.00%`` when nothing was scored."""
    average = result.average_coverage
    return format_percentage(average if average is not None else 0.0)


class GitHubOutputReporter:
    """Writes changed-file coverage in the formats GitHub Actions consumes."""

    def __init__(
        self,
        repository: str = "",
        head_ref: str = "",
        *,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        """Initialize the reporter.

        Args:
            repository: ``owner/repo`` used to link each file; empty disables links.
            head_ref: Branch the links point at.
            echo: Line writer for workflow commands.
        """
        self._repository = repository
        self._head_ref = head_ref
        self._echo = echo

    def _file_cell(self, entry: FileCoverageEntry) -> str:
        url = file_url(self._repository, self._head_ref, entry.file_path)
        if url is None:
            return entry.source_filename
        return f"[{entry.source_filename}]({url})"

    def table_rows(self, result: ChangedCoverageResult) -> list[str]:
        """Return one markdown row per scored entry."""
        return [
            f"| {self._file_cell(entry)} | {format_percentage(entry.percentage)} "
            f"| {status_glyph(entry.meets_threshold)} |"
            for entry in result.entries
        ]

    def format_table_rows(self, result: ChangedCoverageResult) -> str:
        """Return every row followed by the ``::newline::`` token, on a single line."""
        return "".join(row + NEWLINE_TOKEN for row in self.table_rows(result))

    def outputs(self, result: ChangedCoverageResult) -> dict[str, str]:
        """Return the step outputs as ``{name: value}``."""
        return {
            OUTPUT_OVERALL: overall_value(result),
            OUTPUT_CHANGED_FILES: str(result.file_count),
            OUTPUT_FILE_COVERAGE: self.format_table_rows(result),
        }

    def emit_set_output(self, result: ChangedCoverageResult) -> None:
        """Print the table and the ``::set-output`` workflow commands."""
        outputs = self.outputs(result)
        self._echo(f"Table results : {outputs[OUTPUT_FILE_COVERAGE]}")
        for name, value in outputs.items():
            self._echo(f"::set-output name={name}::{value}")

    def write_github_output(self, result: ChangedCoverageResult, output_file: Path) -> None:
        """Append the step outputs to a ``$GITHUB_OUTPUT`` file.

        The table is written with real newlines using the multi-line
        ``name<<DELIMITER`` syntax.
        """
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        table = "\n".join(self.table_rows(result))
        lines = [
            f"{OUTPUT_OVERALL}={overall_value(result)}",
            f"{OUTPUT_CHANGED_FILES}={result.file_count}",
            f"{OUTPUT_FILE_COVERAGE}<<{delimiter}",
            table,
            delimiter,
        ]
        with output_file.open("a", encoding="utf-8") as fh:
            fh.write("\n".join(lines) + "\n")
        logger.info("Wrote step outputs to %s", output_file)

    def build_step_summary(self, result: ChangedCoverageResult) -> str:
        """Return a markdown summary of the run."""
        lines = ["### Coverage of changed files", ""]
        average = result.average_coverage
        if average is None:
            lines.append("No changed files found.")
            return "\n".join(lines) + "\n"

        lines.extend(["| File | Coverage | Status |", "|---|---:|:---:|"])
        lines.extend(self.table_rows(result))
        lines.append("")
        verdict = status_glyph(average >= result.threshold)
        lines.append(
            f"**Average:** {format_percentage(average)} {verdict} "
            f"(threshold {result.threshold}%)"
        )
        return "\n".join(lines) + "\n"

    def write_step_summary(self, result: ChangedCoverageResult, summary_file: Path) -> None:
        """Append the markdown summary to a ``$GITHUB_STEP_SUMMARY`` file."""
        with summary_file.open("a", encoding="utf-8") as fh:
            fh.write(self.build_step_summary(result))
        logger.info("Wrote step summary to %s", summary_file)
