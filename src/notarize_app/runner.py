"""Pipeline runner that sequences the notarization steps."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from notarize_app.config import NotarizeConfig
from notarize_app.exceptions import ConfigurationError, ToolInvocationError
from notarize_app.notary.service import NotaryService, create_service
from notarize_app.steps.archive import ArchiveStep, ArtifactArchiveStep
from notarize_app.steps.base import PipelineContext, PipelineStep, StepError, StepStatus
from notarize_app.steps.gatekeeper import GatekeeperVerifyStep
from notarize_app.steps.notarize import PollStep, RegisterWaitStep, SubmitStep
from notarize_app.steps.staple import StapleStep
from notarize_app.ui.protocol import PipelineUI
from notarize_app.utils.process import ProcessRunner


@dataclass(frozen=True)
class PipelineResult:
    """Aggregate outcome of a pipeline run.

    Attributes:
        success: Whether every step succeeded
        output_path: Verified product path (None on failure)
        failed_step: Name of the step that failed, if any
        message: Diagnostic text of the failure, if any
    """

    success: bool
    output_path: Path | None = None
    failed_step: str | None = None
    message: str | None = None


def get_steps(config: NotarizeConfig) -> list[PipelineStep]:
    """Get list of pipeline steps for the given configuration.

    Args:
        config: Pipeline configuration

    Returns:
        List of steps to execute
    """
    # All possible steps in order
    all_steps: list[PipelineStep] = [
        ArchiveStep(),
        SubmitStep(),
        RegisterWaitStep(),
        PollStep(),
        StapleStep(),
        GatekeeperVerifyStep(),
        ArtifactArchiveStep(),
    ]

    return [step for step in all_steps if step.should_run(config)]


def describe_failure(error: Exception) -> str:
    """Turn a step failure into its surfaced message."""
    if isinstance(error, StepError):
        return error.message
    if isinstance(error, ConfigurationError):
        return f"Configuration error: {error}"
    if isinstance(error, ToolInvocationError):
        return f"Unrecoverable tool invocation failure: {error}"
    return f"Unexpected error: {error}"


async def run_pipeline(
    config: NotarizeConfig,
    ui: PipelineUI,
    service: NotaryService | None = None,
    runner: ProcessRunner | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    use_pty: bool = True,
) -> PipelineResult:
    """Run the complete notarization pipeline.

    Steps run strictly in order; the first failure stops the run and every
    later step is left pending.

    Args:
        config: Pipeline configuration
        ui: UI for output and status updates
        service: Notary service client (built from config.tool if None)
        runner: Process runner (created if None)
        sleep: Coroutine used for every wait
        use_pty: Whether to use PTY for streamed subprocess output

    Returns:
        Aggregate pipeline result
    """
    steps = get_steps(config)
    runner = runner or ProcessRunner(use_pty=use_pty)

    step_results: list[tuple[str, StepStatus]] = []
    failed_step: str | None = None
    message: str | None = None

    try:
        if service is None:
            service = create_service(config.tool, runner, config.verbose, ui.log_output)
    except ConfigurationError as e:
        ui.log_error(describe_failure(e))
        ui.print_summary(steps=[], success=False, description=config.description)
        return PipelineResult(success=False, message=describe_failure(e))

    context = PipelineContext(runner=runner, service=service, sleep=sleep)

    for i, step in enumerate(steps, 1):
        if failed_step is not None:
            step_results.append((step.name, StepStatus.PENDING))
            continue

        step.status = StepStatus.RUNNING
        await ui.log_step(i, len(steps), step.name)
        await ui.update_step_status(i, StepStatus.RUNNING)

        try:
            await step.execute(config, context, ui.log_output)
        except Exception as e:
            step.status = StepStatus.FAILED
            await ui.update_step_status(i, StepStatus.FAILED)
            failed_step = step.name
            message = describe_failure(e)
            ui.log_error(f"{step.name} {message}")
            step_results.append((step.name, StepStatus.FAILED))
            continue

        step.status = StepStatus.SUCCESS
        await ui.update_step_status(i, StepStatus.SUCCESS)
        step_results.append((step.name, StepStatus.SUCCESS))

    success = failed_step is None
    ui.print_summary(
        steps=step_results,
        success=success,
        output_path=str(config.output_path) if success else None,
        description=config.description,
    )

    if not success:
        return PipelineResult(success=False, failed_step=failed_step, message=message)
    return PipelineResult(success=True, output_path=config.output_path)
