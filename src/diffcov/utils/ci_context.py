"""CI and PR context detection utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class CIContext:
    """Detected CI/PR execution context."""

    is_ci: bool
    """Running in CI environment."""

    is_pr: bool
    """Running in context of a pull (merge) request."""

    base_ref: str | None
    """Base/target branch for PR."""

    head_ref: str | None
    """Source branch of the PR."""

    repository: str | None
    """Repository identifier in ``owner/repo`` form."""


def detect_ci_context() -> CIContext:
    """Detect CI and PR context from environment variables.

    Supports GitHub Actions, GitLab CI, and generic CI detection.

    Returns:
        CIContext with detected values.
    """
    # GitHub Actions
    if os.getenv("GITHUB_ACTIONS") == "true":
        base_ref = os.getenv("GITHUB_BASE_REF") or None
        return CIContext(
            is_ci=True,
            is_pr=base_ref is not None,
            base_ref=base_ref,
            head_ref=os.getenv("GITHUB_HEAD_REF") or None,
            repository=os.getenv("GITHUB_REPOSITORY") or None,
        )

    # GitLab CI
    if os.getenv("GITLAB_CI") == "true":
        is_pr = bool(os.getenv("CI_MERGE_REQUEST_ID"))
        return CIContext(
            is_ci=True,
            is_pr=is_pr,
            base_ref=os.getenv("CI_MERGE_REQUEST_TARGET_BRANCH_NAME") if is_pr else None,
            head_ref=os.getenv("CI_MERGE_REQUEST_SOURCE_BRANCH_NAME") if is_pr else None,
            repository=os.getenv("CI_PROJECT_PATH") or None,
        )

    # Outside a recognised provider the GitHub variables may still be exported by hand.
    return CIContext(
        is_ci=os.getenv("CI") == "true",
        is_pr=False,
        base_ref=os.getenv("GITHUB_BASE_REF") or None,
        head_ref=os.getenv("GITHUB_HEAD_REF") or None,
        repository=os.getenv("GITHUB_REPOSITORY") or None,
    )
