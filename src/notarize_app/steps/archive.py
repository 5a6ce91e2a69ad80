"""Archive steps: zip the product for upload, and for the final artifact."""

from collections.abc import Awaitable, Callable
from pathlib import Path

from notarize_app.config import NotarizeConfig
from notarize_app.exceptions import ToolInvocationError
from notarize_app.steps.base import PipelineContext, PipelineStep, StepError
from notarize_app.utils.process import ProcessRunner


async def archive(
    product_path: Path,
    destination: Path,
    runner: ProcessRunner,
    on_output: Callable[[str], Awaitable[None]],
) -> Path | None:
    """Package a product directory into a PKZip archive with ditto.

    The bundle directory itself is kept as the top-level entry
    (``--keepParent``). Any existing file at destination is replaced.
    Failures are reported through on_output and returned as None so the
    caller decides whether to abort.

    Args:
        product_path: Product to archive
        destination: Archive path to write
        runner: Process runner for executing ditto
        on_output: Async callback for command output

    Returns:
        destination on success, None on failure
    """
    if not product_path.exists():
        await on_output(f"\033[31m✗ No product found at {product_path}\033[0m\n")
        return None

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.exists():
            destination.unlink()
            await on_output(f"Removed existing archive: {destination}\n")

        exit_code = await runner.run(
            cmd=["ditto", "-c", "-k", "--keepParent", str(product_path), str(destination)],
            on_output=on_output,
        )
    except (OSError, ToolInvocationError) as e:
        await on_output(f"\033[31m✗ Could not archive {product_path}: {e}\033[0m\n")
        return None

    if exit_code != 0:
        await on_output(f"\033[31m✗ ditto failed with exit code {exit_code}\033[0m\n")
        return None

    return destination


class ArchiveStep(PipelineStep):
    """Archive the product for submission."""

    def __init__(self) -> None:
        """Initialize the archive step."""
        super().__init__("Archiving application...")

    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        """Create the upload archive in the configured temp directory.

        Raises:
            StepError: If the archive could not be created
        """
        archive_path = await archive(
            config.product_path, config.archive_path, context.runner, on_output
        )
        if archive_path is None:
            raise StepError(self.name, f"Failed to archive {config.product_path}")

        context.archive_path = archive_path
        await on_output(f"\033[32m✓ Created application archive at {archive_path}\033[0m\n")

    def should_run(self, config: NotarizeConfig) -> bool:
        """Run only when a new submission is made."""
        return config.mode == "notarize"


class ArtifactArchiveStep(PipelineStep):
    """Archive the final (stapled) product to the requested artifact path."""

    def __init__(self) -> None:
        """Initialize the artifact step."""
        super().__init__("Archiving notarized product...")

    async def execute(
        self,
        config: NotarizeConfig,
        context: PipelineContext,
        on_output: Callable[[str], Awaitable[None]],
    ) -> None:
        """Write the artifact archive.

        Raises:
            StepError: If the archive could not be created
        """
        if config.artifact_path is None:
            raise StepError(self.name, "No artifact path configured")

        artifact = await archive(
            config.product_path, config.artifact_path, context.runner, on_output
        )
        if artifact is None:
            raise StepError(self.name, f"Failed to archive product to {config.artifact_path}")

        await on_output(f"\033[32m✓ Artifact written: {artifact}\033[0m\n")

    def should_run(self, config: NotarizeConfig) -> bool:
        """Run only when an artifact path was requested."""
        return config.artifact_path is not None
