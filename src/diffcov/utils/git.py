"""Git utilities for diffcov.

Thin wrappers around the ``git`` binary. Every helper raises
:class:`GitOperationError` on failure so callers only need one except clause.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def _git_executable() -> str:
    """Resolve the full path to the ``git`` executable."""
    return shutil.which("git") or "git"


class GitOperationError(Exception):
    """Exception raised when git operations fail."""


_GIT_REF_MAX_LENGTH = 255
# Characters `git check-ref-format` rejects. Refs are passed in an argv list,
# never through a shell, so shell metacharacters such as `#` or `(` are fine.
_GIT_REF_UNSAFE = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]")


def _validate_git_ref(ref: str) -> None:
    """Validate a git ref against git's ref-name rules and option injection.

    Raises:
        GitOperationError: If the ref is invalid.
    """
    if not ref:
        raise GitOperationError("Git ref must not be empty")
    if len(ref) > _GIT_REF_MAX_LENGTH:
        raise GitOperationError(f"Git ref exceeds {_GIT_REF_MAX_LENGTH} characters")
    if _GIT_REF_UNSAFE.search(ref):
        raise GitOperationError(f"Git ref contains unsafe characters: {ref!r}")
    if "@{" in ref:
        raise GitOperationError("Git ref must not contain '@{'")
    if ref.startswith("-"):
        raise GitOperationError("Git ref must not start with a dash")
    if ".." in ref:
        raise GitOperationError("Git ref must not contain '..'")


def diff_name_only(repo_path: Path | str, base_ref: str, head_ref: str) -> list[str]:
    """List files changed on head_ref since it diverged from base_ref.

    Runs ``git diff --name-only base_ref...head_ref`` with stderr merged into
    stdout and returns the output lines in the order git emits them.

    Args:
        repo_path: Path to git repository.
        base_ref: Target branch of the pull request (e.g. ``main``).
        head_ref: Source branch of the pull request.

    Returns:
        Repository-relative paths of the changed files.

    Raises:
        GitOperationError: If git cannot be started or exits non-zero.
    """
    _validate_git_ref(base_ref)
    _validate_git_ref(head_ref)
    cmd = [_git_executable(), "diff", "--name-only", f"{base_ref}...{head_ref}"]
    logger.debug("Running %s in %s", " ".join(cmd), repo_path)
    try:
        result = subprocess.run(  # noqa: S603
            cmd,
            cwd=Path(repo_path),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        output = (exc.stdout or "").strip()
        msg = f"git diff {base_ref}...{head_ref} failed with exit code {exc.returncode}"
        if output:
            msg = f"{msg}: {output}"
        raise GitOperationError(msg) from exc
    except OSError as exc:
        raise GitOperationError(f"Failed to run git: {exc}") from exc

    changed = [line for line in result.stdout.splitlines() if line.strip()]
    logger.info(
        "git reported %d changed file(s) between %s and %s", len(changed), base_ref, head_ref
    )
    return changed
