"""Rich progress renderer for archive packaging."""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class RichProgressRenderer:
    """Renders packaging progress callbacks with a Rich progress bar."""

    def __init__(self, console: Optional[Console] = None, description: str = "Packaging photos..."):
        self.console = console or Console()
        self.description = description
        self.progress: Optional[Progress] = None
        self.task: Optional[TaskID] = None

    def __enter__(self) -> "RichProgressRenderer":
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("•"),
            TimeElapsedColumn(),
            TextColumn("{task.fields[current]}"),
            console=self.console,
            transient=True
        )
        self.progress.start()
        self.task = self.progress.add_task(self.description, total=None, current="")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.progress:
            self.progress.stop()
        self.progress = None
        self.task = None

    def render(self, completed: int, total: int, current_file: str) -> None:
        """Progress callback: ``(completed, total, current file name)``."""
        if self.progress is None or self.task is None:
            return
        self.progress.update(self.task, completed=completed, total=total, current=current_file)
