"""Entry point for the notarization tool.

Usage:
    notarize-app MyApp.app                     Notarize, staple and verify
    notarize-app MyApp.app --no-staple         Notarize only
    notarize-app MyApp.app --staple-only       Staple an already notarized app
    notarize-app MyApp.app --resume <id>       Continue polling a submission
    notarize-app MyApp.app --simple            Use simple output instead of TUI
"""

import asyncio
import os
import sys
from pathlib import Path

from notarize_app.cli import get_mode, parse_args, should_use_tui
from notarize_app.config import NotarizeConfig, load_config
from notarize_app.exceptions import ConfigurationError
from notarize_app.runner import PipelineResult, get_steps, run_pipeline
from notarize_app.utils.logging import RunLogger


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = parse_args(argv)
    project_dir = Path(args.project_dir or Path.cwd()).resolve()
    mode = get_mode(args)

    try:
        config = load_config(args, project_dir, mode)
    except (ConfigurationError, OSError) as e:
        print(f"\033[31mError loading configuration: {e}\033[0m", file=sys.stderr)
        return 1

    errors = config.validate()
    if errors:
        print("\033[31mConfiguration errors:\033[0m", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    # Rotates previous logs on start
    logger = RunLogger(config.log_dir, max_logs=config.max_log_files)

    if should_use_tui(args):
        result = run_with_tui(config, logger)
    else:
        result = run_with_simple_ui(config, logger)

    if result.success and result.output_path is not None:
        write_github_output("product-path", str(result.output_path))

    return 0 if result.success else 1


def write_github_output(name: str, value: str) -> None:
    """Expose a step output to GitHub Actions, if running there."""
    output_file = os.environ.get("GITHUB_OUTPUT")
    if not output_file:
        return
    with open(output_file, "a", encoding="utf-8") as f:
        f.write(f"{name}={value}\n")


def run_with_tui(config: NotarizeConfig, logger: RunLogger) -> PipelineResult:
    """Run the pipeline with the Textual TUI.

    Args:
        config: Pipeline configuration
        logger: Run logger for saving output to file

    Returns:
        Pipeline result
    """
    from notarize_app.ui.app import NotarizeApp

    steps = get_steps(config)
    outcome: dict[str, PipelineResult] = {}
    app: NotarizeApp | None = None

    logger.start()
    logger.write_line(f"=== Notarization ({config.description}) ===\n")

    def start_pipeline() -> None:
        """Start the pipeline once the UI is ready."""
        asyncio.create_task(do_pipeline())

    async def do_pipeline() -> None:
        """Run the pipeline and exit when done."""
        if app is None:
            return
        try:
            outcome["result"] = await run_pipeline(config, app, use_pty=True)
        except Exception as e:
            app.log_error(f"Notarization failed: {e}")
            outcome["result"] = PipelineResult(success=False, message=str(e))
        finally:
            app.exit()

    app = NotarizeApp(
        description=config.description,
        step_names=[step.name for step in steps],
        on_ready=start_pipeline,
        logger=logger,
    )
    app.run()

    logger.close()

    # Quitting before the pipeline finished counts as failure
    return outcome.get("result", PipelineResult(success=False, message="Interrupted"))


def run_with_simple_ui(config: NotarizeConfig, logger: RunLogger) -> PipelineResult:
    """Run the pipeline with simple colored output.

    Args:
        config: Pipeline configuration
        logger: Run logger for saving output to file

    Returns:
        Pipeline result
    """
    from notarize_app.ui.simple import SimpleUI

    with logger:
        ui = SimpleUI(logger=logger)
        ui.log_info(f"=== Notarization ({config.description}) ===")
        return asyncio.run(run_pipeline(config, ui, use_pty=sys.stdout.isatty()))


if __name__ == "__main__":
    sys.exit(main())
