"""Notarization steps: submit, wait for registration, poll for the verdict."""

from collections.abc import Awaitable, Callable

from notarize_app.config import NotarizeConfig
from notarize_app.notary.models import SubmissionRecord
from notarize_app.notary.poller import StatusPoller
from notarize_app.notary.submission import submit
from notarize_app.steps.base import PipelineContext, PipelineStep, StepError


class SubmitStep(PipelineStep):
    """Submit the archive for notarization."""

    def __init__(self) -> None:
        """Initialize the submission step."""
        super().__init__("Submitting for notarization...")

    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        """Submit the archive created by the archive step.

        Raises:
            StepError: If the service rejected the submission
            ConfigurationError: If no bundle id could be resolved
            ToolInvocationError: If the notary tool did not run
        """
        if context.archive_path is None:
            raise RuntimeError("No archive: the archive step must run before submission")

        record = await submit(
            context.service,
            context.archive_path,
            config.product_path,
            config.primary_bundle_id,
            config.credentials,
            on_output,
        )
        if record is None:
            raise StepError(self.name, "Submission was rejected by the notary service")

        context.submission = record

    def should_run(self, config: NotarizeConfig) -> bool:
        """Run only when a new submission is made."""
        return config.mode == "notarize"


class RegisterWaitStep(PipelineStep):
    """Give the service time to register a fresh submission before polling."""

    def __init__(self) -> None:
        """Initialize the wait step."""
        super().__init__("Waiting for submission to register...")

    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        seconds = config.initial_wait_seconds
        await on_output(f"Waiting {seconds:.0f}s before the first status check...\n")
        await context.sleep(seconds)

    def should_run(self, config: NotarizeConfig) -> bool:
        """Run only after a new submission."""
        return config.mode == "notarize"


class PollStep(PipelineStep):
    """Poll the notary service until a terminal verdict."""

    def __init__(self) -> None:
        """Initialize the polling step."""
        super().__init__("Waiting for notarization status...")

    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        """Poll for the verdict of the current submission.

        In resume mode the tracking id comes from the configuration instead
        of a submission made in this run.

        Raises:
            StepError: On rejection, unexpected verdict, query failure or timeout
            ToolInvocationError: If the notary tool did not run
        """
        if config.mode == "resume" and context.submission is None and config.request_id:
            context.submission = SubmissionRecord(tracking_id=config.request_id)
        submission = context.require_submission()

        await on_output(f"Request id: {submission.tracking_id}\n")
        poller = StatusPoller(
            context.service,
            sleep=context.sleep,
            interval=config.poll_interval,
            on_output=on_output,
        )
        result = await poller.wait_for_verdict(
            submission.tracking_id, config.credentials, config.timeout_minutes
        )
        context.poll_result = result

        if not result.verified:
            raise StepError(self.name, f"Notarization failed: {result.describe()}")

    def should_run(self, config: NotarizeConfig) -> bool:
        """Run whenever there is a submission to wait for."""
        return config.mode in ("notarize", "resume")
