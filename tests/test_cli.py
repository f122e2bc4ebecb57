"""Tests for the diffcov CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner, Result

from diffcov.cli import _config_to_dict, _fail_under_override, cli
from diffcov.config import load_config
from diffcov.utils.git import GitOperationError

MODULE = "common/artifact-manager"
FOO = f"{MODULE}/src/main/java/com/acme/Foo.java"
BAR = f"{MODULE}/src/main/java/com/acme/util/Bar.java"

_REPORT = """\
<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<!DOCTYPE report PUBLIC "-//JACOCO//DTD Report 1.1//EN" "report.dtd">
<report name="artifact-manager">
  <package name="com/acme">
    <class name="com/acme/Foo" sourcefilename="Foo.java">
      <counter type="INSTRUCTION" missed="10" covered="40"/>
    </class>
  </package>
  <package name="com/acme/util">
    <class name="com/acme/util/Bar" sourcefilename="Bar.java">
      <counter type="INSTRUCTION" missed="9" covered="1"/>
    </class>
  </package>
</report>
"""


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A checkout with a JaCoCo report at the default location."""
    report = tmp_path / MODULE / "target" / "site" / "jacoco" / "jacoco.xml"
    report.parent.mkdir(parents=True)
    report.write_text(_REPORT, encoding="utf-8")
    return tmp_path


def _changed(root: Path, *paths: str) -> str:
    listing = root / "changed.txt"
    listing.write_text("\n".join(paths) + "\n", encoding="utf-8")
    return str(listing)


def _check(root: Path, *args: str, env: dict[str, str] | None = None) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["check", "--path", str(root), *args], env=env)


# ── top level ────────────────────────────────────────────────────


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "check" in result.output
    assert "config" in result.output


# ── check ────────────────────────────────────────────────────────


class TestCheckCommand:
    def test_passing_file(self, repo: Path) -> None:
        result = _check(
            repo,
            "--changed-files",
            _changed(repo, FOO, "README.md"),
            "--repository",
            "acme/repo",
            "--head-ref",
            "topic",
        )
        assert result.exit_code == 0, result.output
        assert "Average coverage for changed files: 80.00%" in result.output
        assert "::set-output name=overall::80.00%" in result.output
        assert "::set-output name=changed-files::1" in result.output
        assert (
            f"| [Foo.java](https://github.com/acme/repo/blob/topic/{FOO}) | 80.00% | ✅ |"
            "::newline::"
        ) in result.output
        assert "Bar.java" not in result.output

    def test_below_threshold_fails(self, repo: Path) -> None:
        result = _check(repo, "--changed-files", _changed(repo, BAR))
        assert result.exit_code == 1
        assert "ERROR: Coverage for changed files (10.00%)" in result.output
        assert "::set-output name=overall::10.00%" in result.output

    def test_warn_only_exits_zero(self, repo: Path) -> None:
        result = _check(repo, "--changed-files", _changed(repo, BAR), "--warn-only")
        assert result.exit_code == 0
        assert "ERROR: Coverage for changed files" in result.output

    def test_threshold_option(self, repo: Path) -> None:
        result = _check(repo, "--changed-files", _changed(repo, FOO), "--threshold", "90")
        assert result.exit_code == 1

    def test_mean_of_percentages(self, repo: Path) -> None:
        result = _check(repo, "--changed-files", _changed(repo, FOO, BAR), "--warn-only")
        # (80 + 10) / 2
        assert "::set-output name=overall::45.00%" in result.output
        assert "::set-output name=changed-files::2" in result.output

    def test_no_matching_files(self, repo: Path) -> None:
        result = _check(repo, "--changed-files", _changed(repo, "README.md"))
        assert result.exit_code == 0, result.output
        assert "No changed files found." in result.output
        assert "::set-output name=overall::0.00%" in result.output
        assert "::set-output name=changed-files::0" in result.output

    def test_no_set_output(self, repo: Path) -> None:
        result = _check(repo, "--changed-files", _changed(repo, FOO), "--no-set-output")
        assert result.exit_code == 0
        assert "::set-output" not in result.output

    def test_runs_git_diff_with_refs(self, repo: Path) -> None:
        with patch("diffcov.cli.GitDiffSource") as source_cls:
            source_cls.return_value.changed_files.return_value = [FOO]
            result = _check(repo, "--base-ref", "main", "--head-ref", "topic")

        assert result.exit_code == 0, result.output
        source_cls.assert_called_once_with(str(repo.resolve()))
        source_cls.return_value.changed_files.assert_called_once_with("main", "topic")
        assert "80.00%" in result.output

    def test_refs_from_environment(self, repo: Path) -> None:
        env = {"GITHUB_BASE_REF": "main", "GITHUB_HEAD_REF": "topic"}
        with patch("diffcov.cli.GitDiffSource") as source_cls:
            source_cls.return_value.changed_files.return_value = []
            result = _check(repo, env=env)

        assert result.exit_code == 0, result.output
        source_cls.return_value.changed_files.assert_called_once_with("main", "topic")

    def test_missing_refs_is_config_error(self, repo: Path) -> None:
        result = _check(repo)
        assert result.exit_code == 2
        assert "git.base_ref is required" in result.output

    def test_git_failure_is_fatal(self, repo: Path) -> None:
        with patch("diffcov.cli.GitDiffSource") as source_cls:
            source_cls.return_value.changed_files.side_effect = GitOperationError("boom")
            result = _check(repo, "--base-ref", "main", "--head-ref", "topic")

        assert result.exit_code == 1
        assert "Error: boom" in result.output

    def test_missing_report_is_fatal(self, tmp_path: Path) -> None:
        result = _check(tmp_path, "--changed-files", _changed(tmp_path, FOO))
        assert result.exit_code == 1
        assert "Cannot read JaCoCo report" in result.output

    def test_report_and_module_options(self, tmp_path: Path) -> None:
        report = tmp_path / "reports" / "jacoco.xml"
        report.parent.mkdir()
        report.write_text(_REPORT, encoding="utf-8")
        changed = _changed(tmp_path, "api/src/main/java/com/acme/Foo.java")

        result = _check(
            tmp_path,
            "--changed-files",
            changed,
            "--report",
            str(report),
            "--module-path",
            "api",
        )
        assert result.exit_code == 0, result.output
        assert "::set-output name=overall::80.00%" in result.output

    def test_json_output(self, repo: Path) -> None:
        result = _check(repo, "--changed-files", _changed(repo, FOO, BAR), "--json-output")
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["overall"] == 45.0
        assert data["changedFiles"] == 2
        assert data["passed"] is False

    def test_global_ci_flag_outputs_json(self, repo: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--ci", "check", "--path", str(repo), "--changed-files", _changed(repo, FOO)]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["overall"] == 80.0

    def test_writes_github_output_files(self, repo: Path) -> None:
        output_file = repo / "gh_output"
        summary_file = repo / "gh_summary"
        env = {"GITHUB_OUTPUT": str(output_file), "GITHUB_STEP_SUMMARY": str(summary_file)}

        result = _check(repo, "--changed-files", _changed(repo, FOO), env=env)

        assert result.exit_code == 0, result.output
        assert "overall=80.00%" in output_file.read_text(encoding="utf-8")
        assert "changed-files=1" in output_file.read_text(encoding="utf-8")
        assert "**Average:** 80.00%" in summary_file.read_text(encoding="utf-8")

    def test_conflicting_exit_flags(self, repo: Path) -> None:
        result = _check(
            repo, "--changed-files", _changed(repo, FOO), "--fail-under", "--warn-only"
        )
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output


class TestFailUnderOverride:
    def test_defaults_to_config(self) -> None:
        assert _fail_under_override(fail_under=False, warn_only=False) is None

    def test_flags(self) -> None:
        assert _fail_under_override(fail_under=True, warn_only=False) is True
        assert _fail_under_override(fail_under=False, warn_only=True) is False


# ── config ───────────────────────────────────────────────────────


class TestConfigCommands:
    def test_config_to_dict_drops_raw(self, tmp_path: Path) -> None:
        data = _config_to_dict(load_config(tmp_path))
        assert "raw" not in data
        assert data["coverage"]["threshold"] == 50.0

    def test_show_json(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "--path", str(tmp_path), "--json-output"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["paths"]["module_path"] == "common/artifact-manager/"

    def test_show_yaml(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "--path", str(tmp_path)])
        assert result.exit_code == 0
        assert "counter_type: INSTRUCTION" in result.output

    def test_validate_empty_threshold_fails_cleanly(self, tmp_path: Path) -> None:
        (tmp_path / ".diffcov.yml").write_text("coverage:\n  threshold:\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "--path", str(tmp_path)])
        assert result.exit_code == 1
        assert "Failed to load configuration" in result.output
        assert not isinstance(result.exception, TypeError)

    def test_validate_reports_errors(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "--path", str(tmp_path)])
        assert result.exit_code == 1
        assert "git.base_ref is required" in result.output

    def test_validate_ok(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["config", "validate", "--path", str(tmp_path)],
            env={"GITHUB_BASE_REF": "main", "GITHUB_HEAD_REF": "topic"},
        )
        assert result.exit_code == 0
        assert "Configuration is valid!" in result.output
