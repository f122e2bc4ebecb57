"""Tests for the GitHub Actions output reporter."""

from __future__ import annotations

from pathlib import Path

import pytest

from diffcov.analyzers.changed_coverage import ChangedCoverageResult, FileCoverageEntry
from diffcov.reporters.github_output import (
    NEWLINE_TOKEN,
    GitHubOutputReporter,
    file_url,
    overall_value,
)

FOO = "common/artifact-manager/src/main/java/com/acme/Foo.java"
BAR = "common/artifact-manager/src/main/java/com/acme/Bar.java"


def _entry(path: str, missed: int, covered: int, threshold: float = 50.0) -> FileCoverageEntry:
    pct = covered / (missed + covered) * 100
    return FileCoverageEntry(
        file_path=path,
        source_filename=Path(path).name,
        class_name=Path(path).stem,
        missed=missed,
        covered=covered,
        meets_threshold=pct >= threshold,
    )


@pytest.fixture
def result() -> ChangedCoverageResult:
    return ChangedCoverageResult(
        changed_files=[FOO, BAR, "README.md"],
        threshold=50.0,
        entries=[_entry(FOO, 10, 40), _entry(BAR, 3, 1)],
    )


@pytest.fixture
def empty_result() -> ChangedCoverageResult:
    return ChangedCoverageResult(changed_files=["README.md"], threshold=50.0)


@pytest.fixture
def lines() -> list[str]:
    return []


@pytest.fixture
def gh(lines: list[str]) -> GitHubOutputReporter:
    return GitHubOutputReporter("acme/repo", "feature/x", echo=lines.append)


# ── helpers ──────────────────────────────────────────────────────


class TestHelpers:
    def test_file_url(self) -> None:
        assert file_url("acme/repo", "feature/x", FOO) == (
            f"https://github.com/acme/repo/blob/feature/x/{FOO}"
        )

    def test_file_url_needs_repository_and_ref(self) -> None:
        assert file_url("", "feature/x", FOO) is None
        assert file_url("acme/repo", "", FOO) is None

    def test_overall_value(self, result: ChangedCoverageResult) -> None:
        # mean of 80% and 25%
        assert overall_value(result) == "52.50%"

    def test_overall_value_without_files(self, empty_result: ChangedCoverageResult) -> None:
        assert overall_value(empty_result) == "0.00%"


# ── table rows ───────────────────────────────────────────────────


class TestTableRows:
    def test_rows_link_each_file(
        self, gh: GitHubOutputReporter, result: ChangedCoverageResult
    ) -> None:
        rows = gh.table_rows(result)
        assert rows == [
            f"| [Foo.java](https://github.com/acme/repo/blob/feature/x/{FOO}) | 80.00% | ✅ |",
            f"| [Bar.java](https://github.com/acme/repo/blob/feature/x/{BAR}) | 25.00% | ❌ |",
        ]

    def test_rows_without_links(self, result: ChangedCoverageResult) -> None:
        rows = GitHubOutputReporter().table_rows(result)
        assert rows[0] == "| Foo.java | 80.00% | ✅ |"

    def test_single_line_table(
        self, gh: GitHubOutputReporter, result: ChangedCoverageResult
    ) -> None:
        table = gh.format_table_rows(result)
        assert "\n" not in table
        assert table.count(NEWLINE_TOKEN) == 2
        assert table.endswith(f"| ❌ |{NEWLINE_TOKEN}")

    def test_empty_table(
        self, gh: GitHubOutputReporter, empty_result: ChangedCoverageResult
    ) -> None:
        assert gh.format_table_rows(empty_result) == ""


# ── ::set-output lines ───────────────────────────────────────────


class TestSetOutput:
    def test_outputs(self, gh: GitHubOutputReporter, result: ChangedCoverageResult) -> None:
        outputs = gh.outputs(result)
        assert list(outputs) == ["overall", "changed-files", "file-coverage"]
        assert outputs["overall"] == "52.50%"
        assert outputs["changed-files"] == "2"

    def test_emit_set_output(
        self, gh: GitHubOutputReporter, lines: list[str], result: ChangedCoverageResult
    ) -> None:
        gh.emit_set_output(result)
        table = gh.format_table_rows(result)
        assert lines == [
            f"Table results : {table}",
            "::set-output name=overall::52.50%",
            "::set-output name=changed-files::2",
            f"::set-output name=file-coverage::{table}",
        ]

    def test_emit_set_output_without_files(
        self, gh: GitHubOutputReporter, lines: list[str], empty_result: ChangedCoverageResult
    ) -> None:
        gh.emit_set_output(empty_result)
        assert "::set-output name=overall::0.00%" in lines
        assert "::set-output name=changed-files::0" in lines


# ── $GITHUB_OUTPUT / $GITHUB_STEP_SUMMARY ────────────────────────


class TestOutputFiles:
    def test_write_github_output(
        self, tmp_path: Path, gh: GitHubOutputReporter, result: ChangedCoverageResult
    ) -> None:
        output_file = tmp_path / "output"
        output_file.write_text("existing=1\n", encoding="utf-8")

        gh.write_github_output(result, output_file)

        lines = output_file.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "existing=1"
        assert lines[1] == "overall=52.50%"
        assert lines[2] == "changed-files=2"
        assert lines[3].startswith("file-coverage<<ghadelimiter_")
        delimiter = lines[3].split("<<", 1)[1]
        assert lines[4:6] == gh.table_rows(result)
        assert lines[6] == delimiter

    def test_step_summary(
        self, tmp_path: Path, gh: GitHubOutputReporter, result: ChangedCoverageResult
    ) -> None:
        summary_file = tmp_path / "summary.md"
        gh.write_step_summary(result, summary_file)

        text = summary_file.read_text(encoding="utf-8")
        assert text.startswith("### Coverage of changed files\n")
        assert "| File | Coverage | Status |" in text
        assert "**Average:** 52.50% ✅ (threshold 50.0%)" in text

    def test_step_summary_without_files(
        self, gh: GitHubOutputReporter, empty_result: ChangedCoverageResult
    ) -> None:
        summary = gh.build_step_summary(empty_result)
        assert "No changed files found." in summary
        assert "| File |" not in summary
