"""diffcov CLI — top-level command group."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, TextIO, TypedDict, Unpack

import click
import yaml
from rich.console import Console

from diffcov import __version__
from diffcov.adapters.coverage import CoverageReportError, JaCoCoAdapter
from diffcov.adapters.coverage.jacoco import COUNTER_TYPES
from diffcov.analyzers.changed_coverage import ChangedCoverageAnalyzer, ChangedCoverageResult
from diffcov.analyzers.diff import ChangedFilesSource, GitDiffSource, StaticChangedFiles
from diffcov.config import DiffCovConfig, apply_overrides, load_config, validate_config
from diffcov.reporters.github_output import GitHubOutputReporter
from diffcov.reporters.json_reporter import JSONReporter
from diffcov.reporters.terminal import reporter
from diffcov.utils.git import GitOperationError

logger = logging.getLogger(__name__)
console = Console()

EXIT_BELOW_THRESHOLD = 1
EXIT_CONFIG_ERROR = 2


class _CheckKwargs(TypedDict):
    """Keyword arguments for the check CLI command."""

    path: str
    base_ref: str | None
    head_ref: str | None
    repository: str | None
    report: str | None
    module_path: str | None
    source_root: str | None
    threshold: float | None
    counter: str | None
    fail_under: bool
    warn_only: bool
    changed_files: TextIO | None
    as_json: bool
    no_set_output: bool


def _config_to_dict(config: DiffCovConfig) -> dict[str, Any]:
    """Convert DiffCovConfig to dictionary for display."""
    result = asdict(config)
    # Remove the raw field as it's redundant
    result.pop("raw", None)
    return result


def _load_config_or_abort(path: str) -> DiffCovConfig:
    try:
        return load_config(path)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e


def _fail_under_override(*, fail_under: bool, warn_only: bool) -> bool | None:
    """Map the two flags to a config override; None keeps the configured value."""
    if fail_under and warn_only:
        raise click.UsageError("--fail-under and --warn-only are mutually exclusive.")
    if warn_only:
        return False
    if fail_under:
        return True
    return None


def _changed_files_source(config: DiffCovConfig, stream: TextIO | None) -> ChangedFilesSource:
    if stream is not None:
        return StaticChangedFiles.from_stream(stream)
    return GitDiffSource(config.root)


def _resolve_report_file(config: DiffCovConfig) -> Path:
    report_file = config.report_file
    if not report_file.is_file():
        module_dir = Path(config.root) / config.paths.module_path
        found = JaCoCoAdapter().detect(module_dir)
        if found is not None:
            logger.warning(
                "No coverage report at %s, but %s exists; pass --report to use it",
                report_file,
                found,
            )
    return report_file


def _publish_outputs(
    config: DiffCovConfig, result: ChangedCoverageResult, *, print_lines: bool
) -> None:
    """Write the CI step outputs the runner understands."""
    gh = GitHubOutputReporter(config.git.repository, config.git.head_ref)

    if print_lines and config.output.set_output_lines:
        gh.emit_set_output(result)

    github_output = os.environ.get("GITHUB_OUTPUT", "")
    if config.output.github_output and github_output:
        gh.write_github_output(result, Path(github_output))

    step_summary = os.environ.get("GITHUB_STEP_SUMMARY", "")
    if config.output.step_summary and step_summary:
        gh.write_step_summary(result, Path(step_summary))


@click.group()
@click.option(
    "--ci",
    is_flag=True,
    help="CI mode: machine-readable JSON output instead of the rich report.",
)
@click.version_option(version=__version__, prog_name="diffcov")
@click.pass_context
def cli(ctx: click.Context, *, ci: bool) -> None:
    """diffcov — coverage of the files changed in a pull request."""
    ctx.ensure_object(dict)
    ctx.obj["ci"] = ci


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Repository root directory.",
)
@click.option("--base-ref", default=None, help="Target branch (default: $GITHUB_BASE_REF).")
@click.option("--head-ref", default=None, help="Source branch (default: $GITHUB_HEAD_REF).")
@click.option(
    "--repository",
    default=None,
    help="owner/repo used for file links (default: $GITHUB_REPOSITORY).",
)
@click.option(
    "--report",
    default=None,
    help="JaCoCo XML report (default: <module-path>target/site/jacoco/jacoco.xml).",
)
@click.option("--module-path", default=None, help="Module directory prefixed to source paths.")
@click.option("--source-root", default=None, help="Source directory inside the module.")
@click.option("--threshold", type=float, default=None, help="Minimum coverage percentage.")
@click.option(
    "--counter",
    type=click.Choice(sorted(COUNTER_TYPES), case_sensitive=False),
    default=None,
    help="JaCoCo counter kind to score (default: INSTRUCTION).",
)
@click.option(
    "--fail-under",
    is_flag=True,
    help="Exit non-zero when the average is below the threshold (the default).",
)
@click.option(
    "--warn-only",
    is_flag=True,
    help="Report a low average but exit 0.",
)
@click.option(
    "--changed-files",
    type=click.File("r"),
    default=None,
    help="Read changed paths from FILE ('-' for stdin) instead of running git diff.",
)
@click.option("--json-output", "as_json", is_flag=True, help="Output JSON instead of tables.")
@click.option("--no-set-output", is_flag=True, help="Do not print ::set-output lines.")
def check(**kwargs: Unpack[_CheckKwargs]) -> None:
    """Report coverage of the files changed between two branches.

    Runs `git diff --name-only BASE...HEAD`, matches the changed files
    against the JaCoCo report and averages their coverage.

    Example:
      diffcov check --base-ref main --head-ref feature/x --threshold 60
    """
    ctx = click.get_current_context()
    ci_mode = (ctx.obj.get("ci", False) if ctx.obj else False) or kwargs["as_json"]

    config = apply_overrides(
        _load_config_or_abort(kwargs["path"]),
        base_ref=kwargs["base_ref"],
        head_ref=kwargs["head_ref"],
        repository=kwargs["repository"],
        report_path=kwargs["report"],
        module_path=kwargs["module_path"],
        source_root=kwargs["source_root"],
        threshold=kwargs["threshold"],
        counter_type=kwargs["counter"],
        fail_under_threshold=_fail_under_override(
            fail_under=kwargs["fail_under"], warn_only=kwargs["warn_only"]
        ),
    )

    stream = kwargs["changed_files"]
    errors = validate_config(config, require_refs=stream is None)
    if errors:
        reporter.print_error(f"Found {len(errors)} configuration error(s):")
        for idx, error in enumerate(errors, start=1):
            console.print(f"  {idx}. [red]{error}[/red]")
        raise SystemExit(EXIT_CONFIG_ERROR)

    source = _changed_files_source(config, stream)
    try:
        changed_files = source.changed_files(config.git.base_ref, config.git.head_ref)
    except GitOperationError as e:
        raise click.ClickException(str(e)) from e

    try:
        report = JaCoCoAdapter().parse_coverage_file(_resolve_report_file(config))
    except CoverageReportError as e:
        raise click.ClickException(str(e)) from e

    result = ChangedCoverageAnalyzer(config).analyze(report, changed_files)

    if ci_mode:
        click.echo(
            JSONReporter(config.git.repository, config.git.head_ref).generate_string(result)
        )
    else:
        reporter.print_coverage_result(result)

    _publish_outputs(config, result, print_lines=not ci_mode and not kwargs["no_set_output"])

    if not result.meets_threshold and config.coverage.fail_under_threshold:
        raise SystemExit(EXIT_BELOW_THRESHOLD)


@cli.group("config")
def config_group() -> None:
    """Inspect `.diffcov.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Repository root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration.

    Shows the configuration after `.diffcov.yml`, `${VAR}` placeholders and
    CI environment variables have been applied.
    """
    config_dict = _config_to_dict(_load_config_or_abort(path))

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Repository root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.diffcov.yml` and the CI environment.

    Example:
      diffcov config validate
    """
    errors = validate_config(_load_config_or_abort(path))

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()

    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")

    console.print()
    console.print("[dim]Fix these errors and run 'diffcov config validate' again.[/dim]")
    raise click.Abort
