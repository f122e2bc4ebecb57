"""Shared fixtures for diffcov tests."""

from __future__ import annotations

import pytest

_CI_ENV_VARS = (
    "CI",
    "GITHUB_ACTIONS",
    "GITHUB_BASE_REF",
    "GITHUB_HEAD_REF",
    "GITHUB_REPOSITORY",
    "GITHUB_OUTPUT",
    "GITHUB_STEP_SUMMARY",
    "GITLAB_CI",
    "CI_MERGE_REQUEST_ID",
    "CI_MERGE_REQUEST_TARGET_BRANCH_NAME",
    "CI_MERGE_REQUEST_SOURCE_BRANCH_NAME",
    "CI_PROJECT_PATH",
    "DIFFCOV_THRESHOLD",
)


@pytest.fixture(autouse=True)
def _clean_ci_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test as if outside CI, whatever runner executes the suite."""
    for var in _CI_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
