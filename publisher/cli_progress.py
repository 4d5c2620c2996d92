"""Console rendering and progress helpers for the publisher CLI."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

console = Console()


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]ig-publish[/bold green]",
        subtitle="[dim]publisher CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


class PublishProgress:
    """
    Progress renderer for one publish command.

    Photos only print start/finish lines; video chunks drive a transfer bar
    through the callback from get_callback().
    """

    def __init__(self, label: str):
        self.label = label
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None

    def start(self) -> None:
        console.print(f"[cyan]Publishing:[/cyan] {self.label}")

    def update(self, bytes_sent: int, total_bytes: int) -> None:
        if total_bytes <= 0:
            return
        if self._progress is None:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold cyan]{task.fields[filename]}", justify="left"),
                BarColumn(bar_width=42),
                TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
                DownloadColumn(),
                TransferSpeedColumn(),
                TimeRemainingColumn(),
                expand=False,
                console=console,
            )
            self._progress.start()

        # album uploads get one bar per video
        if self._task_id is None:
            self._task_id = self._progress.add_task(
                "transfer", filename=self.label[:60], total=total_bytes
            )
        self._progress.update(self._task_id, completed=bytes_sent, total=total_bytes)
        if bytes_sent >= total_bytes:
            self._task_id = None

    def complete(self, success: bool = True, error: Optional[str] = None) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

        if success:
            console.print(f"[green]Published:[/green] {self.label}")
            return

        suffix = f" - {error}" if error else ""
        console.print(f"[red]Failed:[/red] {self.label}{suffix}")

    def get_callback(self):
        def callback(bytes_sent: int, total_bytes: int) -> None:
            self.update(bytes_sent, total_bytes)

        return callback


def describe_source(path: Path) -> str:
    try:
        return f"{path} ({_human_size(path.stat().st_size)})"
    except OSError:
        return str(path)
