"""Rich progress display for a comparison run."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

console = Console()


class PipelineProgress:
    """One spinner line per pipeline stage (variant A, variant B, reasoning)."""

    def __init__(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_ids: dict[str, int] = {}

    def __enter__(self) -> "PipelineProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def update_stage(self, stage: str, status: str) -> None:
        """Start tracking ``stage`` on first sight, then update its status text."""
        if stage not in self._task_ids:
            self._task_ids[stage] = self._progress.add_task(f"[cyan]{stage}[/]", total=None)
        self._progress.update(
            self._task_ids[stage],
            description=f"[cyan]{stage}[/] — {status}",
        )

    def finish_all(self) -> None:
        """Mark every tracked stage as complete."""
        for stage, tid in self._task_ids.items():
            self._progress.update(tid, description=f"[green]✓ {stage}[/]", completed=True)

    def fail_all(self, error: str) -> None:
        for stage, tid in self._task_ids.items():
            self._progress.update(tid, description=f"[red]✗ {stage}: {error}[/]", completed=True)

    def print_phase(self, label: str) -> None:
        """Print a phase header outside the progress display."""
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))
