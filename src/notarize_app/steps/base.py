"""Base class for pipeline steps and the state threaded between them."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notarize_app.config import NotarizeConfig
    from notarize_app.notary.models import SubmissionRecord
    from notarize_app.notary.poller import PollResult
    from notarize_app.notary.service import NotaryService
    from notarize_app.utils.process import ProcessRunner


class StepStatus(Enum):
    """Status of a pipeline step."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class PipelineContext:
    """Collaborators and per-run state shared by the steps.

    The pipeline is strictly sequential, so the state fields are written by
    one step and read by the ones after it; nothing runs concurrently.

    Attributes:
        runner: Process runner for external tools
        service: Notary service client
        sleep: Coroutine used for every wait (injectable for tests)
        archive_path: Archive created for submission
        submission: Record returned by the submission
        poll_result: Final result of status polling
        stapled: Whether the ticket was stapled in this run
    """

    runner: ProcessRunner
    service: NotaryService
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep
    archive_path: Path | None = None
    submission: SubmissionRecord | None = None
    poll_result: PollResult | None = None
    stapled: bool = False

    def require_submission(self) -> SubmissionRecord:
        """Return the submission record, which must exist before polling."""
        if self.submission is None:
            raise RuntimeError("No submission record: the submit step must run before polling")
        return self.submission

    def require_verified(self) -> None:
        """Ensure polling ended with a verified verdict before stapling."""
        if self.poll_result is None or not self.poll_result.verified:
            raise RuntimeError("Cannot staple: notarization has not been verified in this run")


class PipelineStep(ABC):
    """Abstract base class for pipeline steps.

    Each step is one stage of the notarization pipeline (archive, submit,
    poll, staple, ...). Steps report progress through ``on_output`` and
    signal failure by raising.
    """

    def __init__(self, name: str) -> None:
        """Initialize the step.

        Args:
            name: Human-readable name for the step
        """
        self.name = name
        self.status = StepStatus.PENDING

    @abstractmethod
    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        """Execute the step.

        Args:
            config: Pipeline configuration
            context: Collaborators and state shared between steps
            on_output: Async callback for progress output

        Raises:
            StepError: If the step fails
        """
        ...

    def should_run(self, config: NotarizeConfig) -> bool:
        """Determine if this step should run for the given config.

        Override in subclasses to conditionally skip steps.
        """
        return True


class StepError(Exception):
    """Exception raised when a pipeline step fails."""

    def __init__(self, step_name: str, message: str, exit_code: int | None = None) -> None:
        """Initialize the error.

        Args:
            step_name: Name of the failed step
            message: Error message
            exit_code: Process exit code (if applicable)
        """
        self.step_name = step_name
        self.message = message
        self.exit_code = exit_code
        super().__init__(f"{step_name}: {message}")
