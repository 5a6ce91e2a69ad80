"""Textual TUI application for the notarization tool.

Provides a terminal interface with:
- Title with the pipeline mode and an elapsed-time indicator (polling can
  take the better part of an hour)
- Step progress table with status indicators
- Scrolling output log with preserved ANSI colors
- Terminal restoration on exit (prints full log to scrollback)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import DataTable, Footer, Header, RichLog, Static

from notarize_app.steps.base import StepStatus
from notarize_app.utils.logging import strip_ansi
from notarize_app.utils.terminal import OutputProcessor

if TYPE_CHECKING:
    from notarize_app.utils.logging import RunLogger


CYAN = "\033[0;36m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
DIM = "\033[2m"
NC = "\033[0m"

STATUS_STYLES = {
    StepStatus.SUCCESS: ("[SUCCESS]", "green", GREEN),
    StepStatus.FAILED: ("[FAILED ]", "red", RED),
    StepStatus.RUNNING: ("[RUNNING]", "yellow", YELLOW),
    StepStatus.PENDING: ("[PENDING]", "dim", DIM),
}


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as M:SS or H:MM:SS."""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class NotarizeApp(App):
    """Textual TUI for a notarization run.

    On exit, restores the terminal and prints accumulated output
    for full scrollback history.
    """

    CSS = """
    #header-container {
        height: auto;
        max-height: 50%;
    }

    #title {
        text-align: center;
        text-style: bold;
        padding: 1 1 0 1;
        background: $primary;
    }

    #elapsed {
        text-align: center;
        padding: 0 1 1 1;
        background: $primary;
    }

    #steps-table {
        height: auto;
        max-height: 12;
        margin: 0 1;
    }

    #output-container {
        height: 1fr;
        margin: 0 1 1 1;
        border: solid $primary;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("ctrl+c", "quit", "Quit"),
    ]

    def __init__(
        self,
        description: str,
        step_names: list[str],
        on_ready: Callable[[], None] | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        """Initialize the app.

        Args:
            description: Human-readable pipeline description
            step_names: Names of the steps that will run
            on_ready: Callback to invoke once the UI is mounted
            logger: Optional run logger for saving output to file
        """
        super().__init__()
        self.description = description
        self.step_names = list(step_names)
        self._on_ready = on_ready
        self.logger = logger

        # Raw output kept for reprinting after the TUI exits
        self.output_buffer: list[str] = []
        self.output_processor = OutputProcessor()

        self._started_at = time.monotonic()
        self._mounted = False
        self._summary: list[str] = []

    def compose(self) -> ComposeResult:
        """Compose the UI layout."""
        yield Header()
        with Container(id="header-container"):
            yield Static(f"Notarization ({self.description})", id="title")
            yield Static("Elapsed 0:00", id="elapsed")
            yield DataTable(id="steps-table")
        with Vertical(id="output-container"):
            yield RichLog(id="output-log", highlight=False, markup=False, wrap=True)
        yield Footer()

    def on_mount(self) -> None:
        """Fill the steps table and start the clock."""
        if self._mounted:
            return

        table = self.query_one("#steps-table", DataTable)
        table.add_column("Status", key="status")
        table.add_column("Step", key="step")
        table.add_column("Details", key="details")
        total = len(self.step_names)
        for i, name in enumerate(self.step_names):
            table.add_row(
                Text(STATUS_STYLES[StepStatus.PENDING][0], style="dim"),
                f"[{i + 1}/{total}]",
                name,
                key=str(i),
            )

        self._mounted = True
        self.set_interval(1.0, self._tick)

        # Let the first frame render before starting work
        if self._on_ready:
            self.set_timer(0.1, self._on_ready)

    def _tick(self) -> None:
        elapsed = format_elapsed(time.monotonic() - self._started_at)
        self.query_one("#elapsed", Static).update(f"Elapsed {elapsed}")

    def _write_log(self, line: str) -> None:
        if self._mounted:
            self.query_one("#output-log", RichLog).write(Text.from_ansi(line))

    def _record(self, text: str) -> None:
        self.output_buffer.append(text)
        if self.logger:
            self.logger.write(text)

    async def log_output(self, text: str) -> None:
        """Log step or command output."""
        self._record(text)
        for line in self.output_processor.process(text):
            self._write_log(line)

    async def log_step(self, step_num: int, total: int, name: str) -> None:
        """Log step header."""
        # Previous step may have ended without a trailing newline
        remaining = self.output_processor.flush()
        if remaining:
            self._write_log(remaining)
        self._record(f"\n{CYAN}[{step_num}/{total}] {name}{NC}\n")
        self._write_log(f"{CYAN}[{step_num}/{total}] {name}{NC}")

    async def update_step_status(self, step_num: int, status: StepStatus) -> None:
        """Update status of a step in the table."""
        if not self._mounted or not 1 <= step_num <= len(self.step_names):
            return
        label, style, _ = STATUS_STYLES[status]
        table = self.query_one("#steps-table", DataTable)
        table.update_cell(str(step_num - 1), "status", Text(label, style=style))

    def log_error(self, message: str) -> None:
        """Log error message."""
        self._record(f"  {RED}✗ ERROR: {message}{NC}\n")
        self._write_log(f"  {RED}✗ ERROR: {message}{NC}")

    def log_info(self, message: str) -> None:
        """Log info message."""
        self._record(f"{message}\n")
        self._write_log(message)

    def print_summary(
        self,
        steps: list[tuple[str, StepStatus]],
        success: bool,
        output_path: str | None = None,
        description: str | None = None,
    ) -> None:
        """Prepare the summary; it is printed once the TUI has exited."""
        lines = [f"\n{CYAN}=== Notarization Summary ==={NC}"]
        max_len = max((len(name) for name, _ in steps), default=0)
        for i, (name, status) in enumerate(steps, 1):
            label, _, color = STATUS_STYLES[status]
            lines.append(f"{color}{label}{NC} [{i}/{len(steps)}] {name:<{max_len}}")
        lines.append("")
        if success:
            lines.append(f"{GREEN}=== Notarization Complete ==={NC}")
            if output_path:
                lines.append(f"Output: {output_path}")
        else:
            lines.append(f"{RED}=== Notarization Failed ==={NC}")
        if description:
            lines.append(f"Mode: {description}")
        elapsed = format_elapsed(time.monotonic() - self._started_at)
        lines.append(f"Elapsed: {elapsed}")

        self._summary = lines
        if self.logger:
            for line in lines:
                self.logger.write_line(strip_ansi(line))

    def on_unmount(self) -> None:
        """Reprint buffered output and the summary to the real terminal."""
        for chunk in self.output_buffer:
            print(chunk, end="")
        for line in self._summary:
            print(line)
