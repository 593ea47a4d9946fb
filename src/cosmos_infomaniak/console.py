"""Console output helpers shared by the upload and infrastructure commands"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

CONSOLE: Console = Console()

_DEBUG: bool = False


def set_debug(enabled: bool) -> None:
    """Toggle output of debug messages"""
    global _DEBUG
    _DEBUG = enabled


def print_info(message: str) -> None:
    """Print status message"""
    CONSOLE.print(f"[blue][INFO][/blue] {escape(message)}")


def print_success(message: str) -> None:
    """Print success message"""
    CONSOLE.print(f"[green][SUCCESS][/green] {escape(message)}")


def print_warning(message: str) -> None:
    """Print warning message"""
    CONSOLE.print(f"[yellow][WARNING][/yellow] {escape(message)}")


def print_error(message: str) -> None:
    """Print error message"""
    CONSOLE.print(f"[red][ERROR][/red] {escape(message)}")


def print_debug(message: str) -> None:
    """Print debug message"""
    if _DEBUG:
        CONSOLE.print(f"[cyan][DEBUG][/cyan] {escape(message)}")


def print_header(title: str) -> None:
    """Print header"""
    CONSOLE.print()
    CONSOLE.print(Panel(escape(title), style="bold magenta", expand=False))
    CONSOLE.print()


def print_raw(text: str) -> None:
    """Print command output verbatim"""
    CONSOLE.print(text, markup=False, highlight=False)


def display_results(results: dict[str, dict[str, Any]], title: str = "Results") -> None:
    """Display stage results in a table"""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=10)
    table.add_column("Details", style="white")

    for component, details in results.items():
        status = "✅ Success" if details.get("success", False) else "❌ Failed"
        table.add_row(
            component.replace("_", " ").title(),
            status,
            escape(str(details.get("details", ""))),
        )

    CONSOLE.print()
    CONSOLE.print(table)
