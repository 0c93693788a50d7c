"""
shipit - UI Components
Standardized headers and result panels
"""

from typing import Optional

from rich.console import Console
from rich.table import Table

from shipit.models.results import DeploymentResult
from shipit.utils import format_size

BRAND = "shipit"

# Color scheme
BRAND_COLOR = "cyan"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Deploy", "Init")
        subtitle: Optional subtitle line
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{BRAND}[/bold color(214)] [dim]›[/dim]"
    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    console.print()


def show_deployment_summary(result: DeploymentResult, console: Optional[Console] = None):
    """Print uploaded files as a table."""
    if console is None:
        console = Console()

    if not result.transfers:
        console.print(f"[{WARNING_COLOR}]Nothing was uploaded[/{WARNING_COLOR}]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Local")
    table.add_column("Remote", style=BRAND_COLOR)
    table.add_column("Size", justify="right", style="dim")

    for transfer in result.transfers:
        table.add_row(transfer.local_path, transfer.remote_path, format_size(transfer.size))

    console.print()
    console.print(table)
    console.print(
        f"\n[{SUCCESS_COLOR}]✓ Deployed {len(result.transfers)} file(s) "
        f"({format_size(result.total_bytes)}) to {result.host} "
        f"in {result.duration_seconds:.1f}s[/{SUCCESS_COLOR}]"
    )
