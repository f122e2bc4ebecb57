"""Reporters for changed-file coverage results."""

from diffcov.reporters.github_output import GitHubOutputReporter
from diffcov.reporters.json_reporter import JSONReporter
from diffcov.reporters.terminal import CLIReporter, reporter

__all__ = ["CLIReporter", "GitHubOutputReporter", "JSONReporter", "reporter"]
