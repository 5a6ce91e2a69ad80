"""Simple colored output UI for --simple mode and CI."""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from notarize_app.steps.base import StepStatus
from notarize_app.utils.logging import strip_ansi

if TYPE_CHECKING:
    from notarize_app.utils.logging import RunLogger


# ANSI color codes
BLUE = "\033[0;34m"
CYAN = "\033[0;36m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
DIM = "\033[2m"
NC = "\033[0m"  # No color

STATUS_LABELS = {
    StepStatus.SUCCESS: ("[SUCCESS]", GREEN),
    StepStatus.FAILED: ("[FAILED ]", RED),
    StepStatus.RUNNING: ("[RUNNING]", YELLOW),
    StepStatus.PENDING: ("[PENDING]", DIM),
}


def escape_workflow_data(text: str) -> str:
    """Escape a message for a single-line GitHub workflow command."""
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class SimpleUI:
    """Non-TUI output handler with colored step headers.

    Used for:
    - --simple mode (TTY with colors)
    - CI mode (non-TTY, no colors)

    Under GitHub Actions each step is wrapped in a collapsible log group and
    errors are emitted as workflow annotations.
    """

    def __init__(self, logger: RunLogger | None = None, github_actions: bool | None = None) -> None:
        """Initialize the simple UI.

        Args:
            logger: Optional run logger for saving output to file
            github_actions: Force GitHub Actions workflow commands on/off
                (detected from GITHUB_ACTIONS when None)
        """
        self.is_tty = sys.stdout.isatty()
        self.logger = logger
        if github_actions is None:
            github_actions = os.environ.get("GITHUB_ACTIONS") == "true"
        self.github_actions = github_actions
        self._group_open = False

    def _color(self, code: str) -> str:
        """Return color code if TTY, empty string otherwise."""
        return code if self.is_tty else ""

    def _print(self, text: str, log_text: str | None = None) -> None:
        """Print a line and mirror it into the log file."""
        print(text, flush=True)
        if self.logger:
            self.logger.write_line(strip_ansi(text) if log_text is None else log_text)

    def _end_group(self) -> None:
        if self._group_open:
            print("::endgroup::", flush=True)
            self._group_open = False

    async def log_output(self, text: str) -> None:
        """Print output directly to stdout (preserves ANSI from PTY)."""
        if not self.is_tty:
            text = strip_ansi(text)
        print(text, end="", flush=True)
        if self.logger:
            self.logger.write(text)

    async def log_step(self, step_num: int, total: int, name: str) -> None:
        """Print colored step header."""
        header = f"[{step_num}/{total}] {name}"
        if self.github_actions:
            self._end_group()
            print(f"::group::{header}", flush=True)
            self._group_open = True
        else:
            print()
        self._print(f"{self._color(CYAN)}{header}{self._color(NC)}", header)

    async def update_step_status(self, step_num: int, status: StepStatus) -> None:
        """Close the step's log group once it finishes."""
        if status in (StepStatus.SUCCESS, StepStatus.FAILED):
            self._end_group()

    def log_error(self, message: str) -> None:
        """Print error message."""
        if self.github_actions:
            print(f"::error::{escape_workflow_data(strip_ansi(message))}", flush=True)
        self._print(f"  {self._color(RED)}✗ ERROR: {message}{self._color(NC)}", f"  ✗ ERROR: {message}")

    def log_info(self, message: str) -> None:
        """Print info message."""
        self._print(f"{self._color(BLUE)}{message}{self._color(NC)}", message)

    def print_summary(
        self,
        steps: list[tuple[str, StepStatus]],
        success: bool,
        output_path: str | None = None,
        description: str | None = None,
    ) -> None:
        """Print final pipeline summary."""
        self._end_group()
        print()
        self._print(f"{self._color(CYAN)}=== Notarization Summary ==={self._color(NC)}")

        max_len = max((len(name) for name, _ in steps), default=0)
        for i, (name, status) in enumerate(steps, 1):
            label, color = STATUS_LABELS[status]
            self._print(
                f"{self._color(color)}{label}{self._color(NC)} [{i}/{len(steps)}] {name:<{max_len}}",
                f"{label} [{i}/{len(steps)}] {name}",
            )
        print()

        if success:
            self._print(f"{self._color(GREEN)}=== Notarization Complete ==={self._color(NC)}")
            if output_path:
                self._print(f"{self._color(BLUE)}Output: {output_path}{self._color(NC)}")
        else:
            self._print(f"{self._color(RED)}=== Notarization Failed ==={self._color(NC)}")
        if description:
            self._print(f"{self._color(BLUE)}Mode: {description}{self._color(NC)}")
