"""Rich-based logger with nnetrain theming.

Training runs produce a steady stream of objective values. This logger keeps
them readable with:
- Semantic colors (cyan=info, green=success, amber=warning, red=error)
- Key-value blocks for configs and network summaries
- A progress bar for passes over an examples file
- Objective-specific helpers so phase and total lines always look the same
"""
from __future__ import annotations

import math
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text
from rich.theme import Theme


NNETRAIN_THEME = Theme(
    {
        "info": "bold #7dcfff",
        "success": "bold #9ece6a",
        "warning": "bold #e0af68",
        "error": "bold #f7768e",
        "highlight": "bold #bb9af7",
        "muted": "dim #565f89",
        "metric": "#7aa2f7",
        "path": "italic #73daca",
        "step": "#ff9e64",
    }
)


def _format_value(value: float) -> str:
    """Format an objective value, keeping undefined averages visible."""
    if math.isnan(value):
        return "nan"
    return f"{value:.6g}"


class Logger:
    """Unified logging interface with rich console output.

    Wraps a Rich Console to provide semantic log levels, structured data
    display and progress tracking, all with consistent theming.
    """

    def __init__(self) -> None:
        """Initialize with the nnetrain theme."""
        self.console = Console(theme=NNETRAIN_THEME)

    # ─────────────────────────────────────────────────────────────────────
    # Basic Logging
    # ─────────────────────────────────────────────────────────────────────

    def log(self, message: str) -> None:
        """Log a generic message."""
        self.console.print(message)

    def info(self, message: str) -> None:
        """Log an informational message (cyan ℹ)."""
        self.console.print(f"[info]ℹ[/info] {message}")

    def success(self, message: str) -> None:
        """Log a success message (green ✓)."""
        self.console.print(f"[success]✓[/success] {message}")

    def warning(self, message: str) -> None:
        """Log a warning message (amber ⚠)."""
        self.console.print(f"[warning]⚠[/warning] {message}")

    def error(self, message: str) -> None:
        """Log an error message (red ✗)."""
        self.console.print(f"[error]✗[/error] {message}")

    # ─────────────────────────────────────────────────────────────────────
    # Structured Output
    # ─────────────────────────────────────────────────────────────────────

    def header(self, title: str, subtitle: str | None = None) -> None:
        """Print a prominent section header."""
        header_text = Text()
        header_text.append("━" * 3 + " ", style="muted")
        header_text.append(title, style="highlight")
        if subtitle:
            header_text.append(f" • {subtitle}", style="muted")
        header_text.append(" " + "━" * 40, style="muted")
        self.console.print()
        self.console.print(header_text)
        self.console.print()

    def subheader(self, text: str) -> None:
        """Print a subtle subheader for subsections."""
        self.console.print(f"[muted]──[/muted] [highlight]{text}[/highlight]")

    def key_value(self, data: dict[str, Any], title: str | None = None) -> None:
        """Display key-value pairs in a clean format."""
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="muted")
        table.add_column("Value", style="metric")

        for key, value in data.items():
            table.add_row(f"{key}:", str(value))

        if title:
            self.subheader(title)
        self.console.print(table)

    def path(self, filepath: str, label: str = "") -> None:
        """Display a file path with optional label."""
        if label:
            self.console.print(f"  [muted]{label}:[/muted] [path]{filepath}[/path]")
        else:
            self.console.print(f"  [path]{filepath}[/path]")

    # ─────────────────────────────────────────────────────────────────────
    # Progress Tracking
    # ─────────────────────────────────────────────────────────────────────

    def progress_bar(self) -> Progress:
        """Create a rich progress bar for fine-grained control.

        Usage:
            with logger.progress_bar() as progress:
                task = progress.add_task("Training...", total=len(egs))
                for eg in egs:
                    progress.update(task, advance=1)
        """
        return Progress(
            SpinnerColumn(style="info"),
            TextColumn("[info]{task.description}[/info]"),
            BarColumn(bar_width=40, style="muted", complete_style="success"),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Objective-Function Helpers
    # ─────────────────────────────────────────────────────────────────────

    def objective_phase(
        self,
        output_name: str,
        start_minibatch: int,
        end_minibatch: int,
        average: float,
        weight: float,
    ) -> None:
        """Log the average objective of one completed phase of minibatches."""
        self.console.print(
            f"[step]{output_name}[/step] minibatches "
            f"[metric]{start_minibatch}-{end_minibatch}[/metric]: "
            f"average objective [metric]{_format_value(average)}[/metric] "
            f"over [metric]{weight:g}[/metric] frames"
        )

    def objective_total(self, output_name: str, average: float, weight: float) -> None:
        """Log the overall average objective of an output."""
        self.console.print(
            f"[highlight]{output_name}[/highlight] overall: "
            f"average objective [metric]{_format_value(average)}[/metric] "
            f"over [metric]{weight:g}[/metric] frames"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Module-Level Singleton
# ─────────────────────────────────────────────────────────────────────────────

_logger: Logger | None = None


def get_logger() -> Logger:
    """Get or create the singleton Logger instance.

    Using a singleton ensures consistent theming and avoids creating
    multiple Console instances.
    """
    global _logger
    if _logger is None:
        _logger = Logger()
    return _logger
