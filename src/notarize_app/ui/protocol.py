"""Protocol definition for pipeline UI."""

from typing import Protocol

from notarize_app.steps.base import StepStatus


class PipelineUI(Protocol):
    """Protocol for pipeline UI implementations.

    Both NotarizeApp (TUI) and SimpleUI implement this protocol,
    allowing the runner to work with either transparently.
    """

    async def log_output(self, text: str) -> None:
        """Log step or command output (may contain ANSI escape codes)."""
        ...

    async def log_step(self, step_num: int, total: int, name: str) -> None:
        """Log step header.

        Args:
            step_num: Current step number (1-indexed)
            total: Total number of steps
            name: Step name
        """
        ...

    async def update_step_status(self, step_num: int, status: StepStatus) -> None:
        """Update status of a step (1-indexed)."""
        ...

    def log_error(self, message: str) -> None:
        """Log error message."""
        ...

    def log_info(self, message: str) -> None:
        """Log info message."""
        ...

    def print_summary(
        self,
        steps: list[tuple[str, StepStatus]],
        success: bool,
        output_path: str | None = None,
        description: str | None = None,
    ) -> None:
        """Print final pipeline summary.

        Args:
            steps: List of (step_name, status) tuples
            success: Whether the pipeline succeeded
            output_path: Verified product path (if successful)
            description: Description of the pipeline mode
        """
        ...
