"""Stapling step.

Attaches the notarization ticket to the product with ``xcrun stapler``.
Stapler exit codes come from sysexits.h and are described in stapler(1); any
code outside that table is reported as unknown rather than treated as success.
Stapling is never retried: a failed staple may have written partially.
"""

from collections.abc import Awaitable, Callable
from pathlib import Path

from notarize_app.config import NotarizeConfig
from notarize_app.steps.base import PipelineContext, PipelineStep, StepError
from notarize_app.utils.process import ProcessRunner

STAPLE_STEP_NAME = "Stapling notarization ticket..."

STAPLER_EXIT_CODES: dict[int, str] = {
    # EX_USAGE
    64: "Options appear malformed or are missing.",
    # EX_DATAERR
    65: "The ticket data is invalid.",
    # EX_NOINPUT
    66: (
        "The path cannot be found, is not code-signed, or is not of a supported "
        "file format, or, if the validate option is passed, the existing ticket "
        "is missing or invalid."
    ),
    # EX_NOHOST
    68: (
        "The path has not been previously notarized or the ticketing service "
        "returns an unexpected response."
    ),
    # EX_CANTCREAT
    73: (
        "The ticket has been retrieved from the ticketing service and was properly "
        "validated but the ticket could not be written out to disk."
    ),
    # EX_NOPERM
    77: "The ticket has been revoked by the ticketing service.",
}


def staple_failure_reason(exit_code: int) -> str:
    """Map a stapler exit code to a human-readable reason."""
    return STAPLER_EXIT_CODES.get(exit_code, f"Unknown exit code {exit_code}")


class StapleError(StepError):
    """Stapler exited with a non-zero code."""

    def __init__(self, exit_code: int) -> None:
        """Initialize the error.

        Args:
            exit_code: Stapler exit code
        """
        self.reason = staple_failure_reason(exit_code)
        super().__init__(STAPLE_STEP_NAME, f"Staple failed: {self.reason}", exit_code=exit_code)


async def staple(
    product_path: Path,
    runner: ProcessRunner,
    on_output: Callable[[str], Awaitable[None]],
    verbose: bool = False,
) -> None:
    """Staple the notarization ticket to a product.

    Args:
        product_path: Product to staple
        runner: Process runner for executing stapler
        on_output: Async callback for command output
        verbose: Run stapler with --verbose instead of --quiet

    Raises:
        StapleError: If stapler exits non-zero
        ToolInvocationError: If stapler could not be run
    """
    option = "--verbose" if verbose else "--quiet"
    exit_code = await runner.run(
        cmd=["xcrun", "stapler", "staple", option, str(product_path)],
        on_output=on_output,
    )
    if exit_code != 0:
        raise StapleError(exit_code)


class StapleStep(PipelineStep):
    """Staple the notarization ticket to the product."""

    def __init__(self) -> None:
        """Initialize the stapling step."""
        super().__init__(STAPLE_STEP_NAME)

    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        """Staple the ticket to config.product_path.

        Raises:
            StapleError: If stapling fails
        """
        if config.mode != "staple-only":
            context.require_verified()

        await staple(config.product_path, context.runner, on_output, verbose=config.verbose)
        context.stapled = True
        await on_output("\033[32m✓ Stapling successful!\033[0m\n")

    def should_run(self, config: NotarizeConfig) -> bool:
        """Run only when stapling is enabled."""
        return config.staple
