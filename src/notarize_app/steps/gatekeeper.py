"""Gatekeeper verification step."""

from collections.abc import Awaitable, Callable
from pathlib import Path

from notarize_app.config import NotarizeConfig
from notarize_app.steps.base import PipelineContext, PipelineStep, StepError
from notarize_app.utils.process import ProcessRunner

GATEKEEPER_STEP_NAME = "Verifying with Gatekeeper..."


class GatekeeperError(StepError):
    """spctl rejected the product."""

    def __init__(self, exit_code: int) -> None:
        super().__init__(
            GATEKEEPER_STEP_NAME,
            f"Gatekeeper assessment failed with exit code {exit_code}",
            exit_code=exit_code,
        )


async def verify(
    product_path: Path,
    runner: ProcessRunner,
    on_output: Callable[[str], Awaitable[None]],
) -> None:
    """Assess the product against the local execution policy.

    Raises:
        GatekeeperError: If spctl exits non-zero
        ToolInvocationError: If spctl could not be run
    """
    exit_code = await runner.run(
        cmd=["spctl", "--assess", "--type", "execute", "--verbose=2", str(product_path)],
        on_output=on_output,
    )
    if exit_code != 0:
        raise GatekeeperError(exit_code)


class GatekeeperVerifyStep(PipelineStep):
    """Confirm the stapled product is accepted by Gatekeeper."""

    def __init__(self) -> None:
        """Initialize the verification step."""
        super().__init__(GATEKEEPER_STEP_NAME)

    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        if not context.stapled:
            raise RuntimeError("Cannot verify: the ticket was not stapled in this run")

        await verify(config.product_path, context.runner, on_output)
        await on_output("\033[32m✓ Accepted by Gatekeeper\033[0m\n")

    def should_run(self, config: NotarizeConfig) -> bool:
        """Run only after stapling."""
        return config.staple
