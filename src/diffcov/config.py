"""Configuration parsing from ``.diffcov.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from diffcov.adapters.coverage.jacoco import COUNTER_TYPES
from diffcov.utils.ci_context import detect_ci_context

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".diffcov.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

DEFAULT_THRESHOLD = 50.0
DEFAULT_COUNTER_TYPE = "INSTRUCTION"
DEFAULT_MODULE_PATH = "common/artifact-manager/"
DEFAULT_SOURCE_ROOT = "src/main/java/"
DEFAULT_REPORT_SUFFIX = "target/site/jacoco/jacoco.xml"


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def normalize_dir(path: str) -> str:
    """Return *path* with exactly one trailing slash, or ``""`` for an empty path."""
    path = path.strip()
    if not path:
        return ""
    return path.rstrip("/") + "/"


@dataclass
class CoverageConfig:
    """Coverage threshold and scoring configuration."""

    threshold: float = DEFAULT_THRESHOLD
    """Minimum acceptable coverage percentage per file and on average (default: 50%)."""

    counter_type: str = DEFAULT_COUNTER_TYPE
    """JaCoCo counter kind used for scoring (default: INSTRUCTION)."""

    fail_under_threshold: bool = True
    """Exit non-zero when the average is below the threshold."""


@dataclass
class PathsConfig:
    """Where sources and the coverage report live, relative to the repository root."""

    module_path: str = DEFAULT_MODULE_PATH
    """Module directory prefixed to every reconstructed source path."""

    source_root: str = DEFAULT_SOURCE_ROOT
    """Source directory inside the module."""

    report_path: str = ""
    """JaCoCo XML report; defaults to ``<module_path>target/site/jacoco/jacoco.xml``."""

    def __post_init__(self) -> None:
        self.module_path = normalize_dir(self.module_path)
        self.source_root = normalize_dir(self.source_root)
        if not self.report_path:
            self.report_path = self.module_path + DEFAULT_REPORT_SUFFIX


@dataclass
class GitConfig:
    """Refs compared by the diff and the repository used for links."""

    base_ref: str = ""
    """Target branch of the pull request."""

    head_ref: str = ""
    """Source branch of the pull request."""

    repository: str = ""
    """Repository identifier (``owner/repo``) used for file links."""


@dataclass
class OutputConfig:
    """CI output configuration."""

    set_output_lines: bool = True
    """Print ``::set-output`` workflow command lines."""

    github_output: bool = True
    """Append outputs to the ``$GITHUB_OUTPUT`` file when it is set."""

    step_summary: bool = True
    """Append a markdown table to ``$GITHUB_STEP_SUMMARY`` when it is set."""


@dataclass
class DiffCovConfig:
    """Complete diffcov configuration."""

    root: str
    """Repository root directory."""

    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    """Coverage threshold configuration."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    """Source and report locations."""

    git: GitConfig = field(default_factory=GitConfig)
    """Git refs configuration."""

    output: OutputConfig = field(default_factory=OutputConfig)
    """CI output configuration."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""

    @property
    def report_file(self) -> Path:
        """Return the absolute path of the coverage report."""
        report = Path(self.paths.report_path)
        if report.is_absolute():
            return report
        return Path(self.root) / report


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        return {}
    return value


_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def _as_float(value: Any, key: str) -> float:
    """Convert a config value to float, raising ValueError for non-numbers."""
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise ValueError(f"{key} must be a number (got: {value!r})")
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{key} must be a number (got: {value!r})") from e


def _as_bool(value: Any, key: str) -> bool:
    """Convert a config value to bool; quoted ``"false"``/``"no"`` are False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"{key} must be true or false (got: {value!r})")


def _parse_coverage_config(raw: dict[str, Any]) -> CoverageConfig:
    """Parse coverage configuration from raw YAML and the environment.

    ``DIFFCOV_THRESHOLD`` takes precedence over the YAML threshold.
    """
    coverage_raw = _section(raw, "coverage")
    env_threshold = os.environ.get("DIFFCOV_THRESHOLD")
    if env_threshold:
        threshold = _as_float(env_threshold, "DIFFCOV_THRESHOLD")
    else:
        threshold = _as_float(
            coverage_raw.get("threshold", DEFAULT_THRESHOLD), "coverage.threshold"
        )
    return CoverageConfig(
        threshold=threshold,
        counter_type=str(coverage_raw.get("counter_type", DEFAULT_COUNTER_TYPE)).upper(),
        fail_under_threshold=_as_bool(
            coverage_raw.get("fail_under_threshold", True), "coverage.fail_under_threshold"
        ),
    )


def _parse_paths_config(raw: dict[str, Any]) -> PathsConfig:
    """Parse path configuration from raw YAML."""
    paths_raw = _section(raw, "paths")
    return PathsConfig(
        module_path=str(paths_raw.get("module_path", DEFAULT_MODULE_PATH)),
        source_root=str(paths_raw.get("source_root", DEFAULT_SOURCE_ROOT)),
        report_path=str(paths_raw.get("report_path", "")),
    )


def _parse_git_config(raw: dict[str, Any]) -> GitConfig:
    """Parse git configuration, falling back to the detected CI context."""
    git_raw = _section(raw, "git")
    ci = detect_ci_context()
    return GitConfig(
        base_ref=str(git_raw.get("base_ref") or ci.base_ref or ""),
        head_ref=str(git_raw.get("head_ref") or ci.head_ref or ""),
        repository=str(git_raw.get("repository") or ci.repository or ""),
    )


def _parse_output_config(raw: dict[str, Any]) -> OutputConfig:
    """Parse CI output configuration from raw YAML."""
    output_raw = _section(raw, "output")
    return OutputConfig(
        set_output_lines=_as_bool(
            output_raw.get("set_output_lines", True), "output.set_output_lines"
        ),
        github_output=_as_bool(output_raw.get("github_output", True), "output.github_output"),
        step_summary=_as_bool(output_raw.get("step_summary", True), "output.step_summary"),
    )


def load_config(root: str | Path) -> DiffCovConfig:
    """Load and parse the complete ``.diffcov.yml`` configuration.

    Falls back to sensible defaults and environment variables when
    the YAML file is missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_yml = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_yml.is_file():
        parsed = yaml.safe_load(config_yml.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        logger.debug("Loaded configuration from %s", config_yml)

    return DiffCovConfig(
        root=str(root_path),
        coverage=_parse_coverage_config(raw),
        paths=_parse_paths_config(raw),
        git=_parse_git_config(raw),
        output=_parse_output_config(raw),
        raw=raw,
    )


def apply_overrides(  # noqa: PLR0913
    config: DiffCovConfig,
    *,
    base_ref: str | None = None,
    head_ref: str | None = None,
    repository: str | None = None,
    report_path: str | None = None,
    module_path: str | None = None,
    source_root: str | None = None,
    threshold: float | None = None,
    counter_type: str | None = None,
    fail_under_threshold: bool | None = None,
) -> DiffCovConfig:
    """Apply command-line overrides on top of a loaded configuration.

    ``None`` leaves a value untouched. When the module path changes and no
    report path was given explicitly (here or in ``.diffcov.yml``), the report
    path is derived again from the new module path.
    """
    if base_ref is not None:
        config.git.base_ref = base_ref
    if head_ref is not None:
        config.git.head_ref = head_ref
    if repository is not None:
        config.git.repository = repository

    if threshold is not None:
        config.coverage.threshold = threshold
    if counter_type is not None:
        config.coverage.counter_type = counter_type.upper()
    if fail_under_threshold is not None:
        config.coverage.fail_under_threshold = fail_under_threshold

    explicit_report = report_path or str(_section(config.raw, "paths").get("report_path", ""))
    config.paths = PathsConfig(
        module_path=module_path if module_path is not None else config.paths.module_path,
        source_root=source_root if source_root is not None else config.paths.source_root,
        report_path=explicit_report,
    )
    return config


def _validate_coverage_config(coverage: CoverageConfig) -> list[str]:
    """Validate coverage threshold settings."""
    max_percentage = 100.0
    errors: list[str] = []

    if not 0.0 <= coverage.threshold <= max_percentage:
        errors.append(f"coverage.threshold must be between 0 and 100 (got: {coverage.threshold})")

    if coverage.counter_type not in COUNTER_TYPES:
        errors.append(
            f"coverage.counter_type must be one of {', '.join(sorted(COUNTER_TYPES))} "
            f"(got: {coverage.counter_type})"
        )

    return errors


def _validate_git_config(git: GitConfig) -> list[str]:
    """Validate that both refs of the diff are known."""
    errors: list[str] = []

    if not git.base_ref:
        errors.append("git.base_ref is required (set GITHUB_BASE_REF or pass --base-ref)")

    if not git.head_ref:
        errors.append("git.head_ref is required (set GITHUB_HEAD_REF or pass --head-ref)")

    return errors


def validate_config(config: DiffCovConfig, *, require_refs: bool = True) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.root:
        errors.append("root is required")

    if not config.paths.report_path:
        errors.append("paths.report_path is required")

    errors.extend(_validate_coverage_config(config.coverage))
    if require_refs:
        errors.extend(_validate_git_config(config.git))

    return errors
