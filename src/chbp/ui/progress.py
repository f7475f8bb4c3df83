"""
Progress reporter implementations for different output contexts.

Provides three implementations:
- RichProgressReporter: Interactive terminal with spinners, colors, progress bars
- CIProgressReporter: CI-friendly with simple lines, no spinners/ANSI
- NullProgressReporter: Silent for tests
"""

import sys
from typing import Any

from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table
from rich.text import Text

from .console import console, err_console, BRAND_BORDER


class RichProgressReporter:
    """
    Interactive terminal reporter using Rich library.

    Provides spinners, colors, and progress bars for a rich CLI experience.
    """

    def __init__(self):
        self._progress: Progress | None = None

    def banner(self, name: str, version: str) -> None:
        """Display a styled application banner."""
        title = Text()
        title.append(name, style=f"bold {BRAND_BORDER}")
        title.append(f" v{version}", style="dim")
        console.print(Panel(title, border_style=BRAND_BORDER, padding=(0, 2)))

    def info(self, message: str) -> None:
        console.print(f"[info]{escape(message)}[/info]")

    def warning(self, message: str) -> None:
        console.print(f"[warning]{escape(message)}[/warning]")

    def success(self, message: str) -> None:
        console.print(f"[success]{escape(message)}[/success]")

    def error(self, message: str) -> None:
        err_console.print(f"[error]{escape(message)}[/error]")

    def start_progress(self, description: str, total: int) -> Any:
        """Start a progress bar and return a task handle."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(complete_style=BRAND_BORDER),
            TaskProgressColumn(),
            console=console,
        )
        self._progress.start()
        return self._progress.add_task(f"[info]{escape(description)}[/info]", total=total)

    def advance_progress(self, task: Any, steps: int = 1) -> None:
        if self._progress:
            self._progress.advance(task, steps)

    def stop_progress(self) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        """Render rows as a bordered Rich table."""
        table = Table(title=title, border_style=BRAND_BORDER, title_style="brand")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*[escape(cell) for cell in row])
        console.print(table)


class CIProgressReporter:
    """
    CI-friendly reporter with simple line output.

    Uses plain print() without ANSI codes or spinners for compatibility
    with CI/CD systems like GitHub Actions.
    """

    def banner(self, name: str, version: str) -> None:
        print(f"=== {name} v{version} ===")

    def info(self, message: str) -> None:
        print(f"[INFO] {message}")

    def warning(self, message: str) -> None:
        print(f"[WARNING] {message}")

    def success(self, message: str) -> None:
        print(f"[SUCCESS] {message}")

    def error(self, message: str) -> None:
        print(f"[ERROR] {message}", file=sys.stderr)

    def start_progress(self, description: str, total: int) -> Any:
        """Start a progress counter (just prints the description in CI mode)."""
        print(f"[INFO] {description} (0/{total})")
        return {"description": description, "total": total, "current": 0}

    def advance_progress(self, task: Any, steps: int = 1) -> None:
        if isinstance(task, dict):
            task["current"] = min(task["current"] + steps, task["total"])
            print(f"[INFO] {task['description']} ({task['current']}/{task['total']})")

    def stop_progress(self) -> None:
        """No-op in CI mode."""
        pass

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        """Render rows as a fixed-width text table."""
        widths = [len(column) for column in columns]
        for row in rows:
            widths = [max(width, len(cell)) for width, cell in zip(widths, row)]

        def line(cells: list[str]) -> str:
            return "| " + " | ".join(cell.ljust(width) for cell, width in zip(cells, widths)) + " |"

        separator = "+-" + "-+-".join("-" * width for width in widths) + "-+"
        print(title)
        print(separator)
        print(line(columns))
        print(separator)
        for row in rows:
            print(line(row))
        print(separator)


class NullProgressReporter:
    """
    Silent reporter for tests.

    All methods are no-ops, useful for unit testing business logic
    without any console output.
    """

    def banner(self, name: str, version: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def start_progress(self, description: str, total: int) -> Any:
        return None

    def advance_progress(self, task: Any, steps: int = 1) -> None:
        pass

    def stop_progress(self) -> None:
        pass

    def table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        pass


def default_reporter():
    """Pick the Rich reporter for terminals, plain lines otherwise."""
    if sys.stdout.isatty():
        return RichProgressReporter()
    return CIProgressReporter()
