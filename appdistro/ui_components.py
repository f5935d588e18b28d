"""
appdistro - UI Components & Branding
Standardized headers and result tables
"""

from typing import List
from rich.console import Console
from rich.table import Table

from appdistro.models import DistributionResult, ResultStatus

BRAND = "appdistro"

# Color scheme
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"

STATUS_STYLES = {
    ResultStatus.SUCCESS: f"[{SUCCESS_COLOR}]✓ distributed[/{SUCCESS_COLOR}]",
    ResultStatus.FAILURE: f"[{ERROR_COLOR}]✗ failed[/{ERROR_COLOR}]",
    ResultStatus.SKIPPED: f"[{WARNING_COLOR}]⊘ skipped[/{WARNING_COLOR}]",
}


def show_header(
    title: str,
    subtitle: str = None,
    project: str = None,
    details: dict = None,
    console: Console = None,
):
    """
    Display a standardized appdistro command header.

    Args:
        title: Main title (e.g., "Distribute", "Build")
        subtitle: Optional subtitle line
        project: Project name (if applicable)
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Distribute",
            project="myapp",
            details={"Targets": "android, ios", "Backend": "cli"}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{BRAND}[/bold color(214)] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if project:
        console.print(f"{prefix} Project: [cyan]{project}[/cyan]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [cyan]{value}[/cyan]")

    console.print()


def results_table(results: List[DistributionResult]) -> Table:
    """Build the summary table printed after a distribution run."""
    table = Table(title="Distribution Summary", title_justify="left", padding=(0, 1))
    table.add_column("Platform", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Artifact", style="dim")
    table.add_column("Details", style="dim")

    for result in results:
        details = result.testing_uri or result.console_uri or result.message
        table.add_row(
            result.platform,
            STATUS_STYLES[result.status],
            result.artifact or "-",
            details or "",
        )

    return table
