"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from diffcov.analyzers.changed_coverage import ChangedCoverageResult

console = Console()

PASS_GLYPH = "✅"
FAIL_GLYPH = "❌"


def format_percentage(value: float) -> str:
    """Format a percentage with two decimals, as every diffcov output does."""
    return f"{value:.2f}%"


def status_glyph(passed: bool) -> str:
    """Return the check mark or cross shown next to a file."""
    return PASS_GLYPH if passed else FAIL_GLYPH


class CLIReporter:
    """Rich terminal output reporter for changed-file coverage."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    # ── Changed-file coverage ──────────────────────────────────────────

    def print_changed_files(self, changed_files: list[str]) -> None:
        """Print the files reported by the diff."""
        self.print_header(f"Changed files ({len(changed_files)})")
        if not changed_files:
            self.print_info("git reported no changed files")
            return
        for path in changed_files:
            self.console.print(f"  {escape(path)}")

    def print_file_coverage(self, result: ChangedCoverageResult) -> None:
        """Print a table of the scored files."""
        if not result.entries:
            return

        table = Table(title="Coverage of changed files", show_lines=False)
        table.add_column("File", style="cyan")
        table.add_column("Coverage", justify="right")
        table.add_column("Status", justify="center")

        for entry in result.entries:
            color = "green" if entry.meets_threshold else "red"
            table.add_row(
                escape(entry.file_path),
                f"[{color}]{format_percentage(entry.percentage)}[/{color}]",
                status_glyph(entry.meets_threshold),
            )

        self.console.print()
        self.console.print(table)

    def print_summary(self, result: ChangedCoverageResult) -> None:
        """Print the average, or the no-files notice, and the threshold verdict."""
        for path in result.skipped:
            self.print_warning(f"Warning: No line coverage found for {escape(path)}")

        average = result.average_coverage
        if average is None:
            self.console.print("\nNo changed files found.")
            return

        self.console.print(
            f"\nAverage coverage for changed files: [bold]{format_percentage(average)}[/bold]"
        )
        if average < result.threshold:
            self.console.print(
                f"[bold red]ERROR:[/bold red] Coverage for changed files "
                f"({format_percentage(average)}) is below the threshold of {result.threshold}%"
            )
        else:
            self.print_success(f"Coverage meets the threshold of {result.threshold}%")

    def print_coverage_result(self, result: ChangedCoverageResult) -> None:
        """Print the complete human-readable report."""
        self.print_changed_files(result.changed_files)
        self.print_file_coverage(result)
        self.print_summary(result)


reporter = CLIReporter()
