"""Command-line interface for the notarization tool."""

import argparse
import sys

from notarize_app.config import Mode
from notarize_app.notary.service import SERVICES


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Every option defaults to None so that environment variables and
    pyproject settings can fill in whatever is not given here.

    Args:
        args: Arguments to parse, or None to use sys.argv

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="notarize-app",
        description="Notarize, staple and verify a signed macOS application",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  notarize-app build/MyApp.app                      Notarize and staple
  notarize-app build/MyApp.app --artifact-path out/MyApp.zip
  notarize-app build/MyApp.app --staple-only        Staple an already notarized app
  notarize-app build/MyApp.app --resume 2efe2717-...  Continue polling a submission

Credentials are read from APPLE_ID, APPLE_APP_SPECIFIC_PASSWORD and APPLE_TEAM_ID.
        """,
    )

    parser.add_argument(
        "product_path",
        nargs="?",
        default=None,
        help="Path to the signed .app bundle (or NOTARIZE_PRODUCT_PATH)",
    )
    parser.add_argument(
        "--artifact-path",
        default=None,
        help="Archive the stapled product to this path when done",
    )
    parser.add_argument(
        "--primary-bundle-id",
        default=None,
        help="Bundle id to submit with (default: CFBundleIdentifier from Info.plist)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Maximum number of status checks, roughly minutes (default: 60)",
    )
    parser.add_argument(
        "--staple",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Staple the ticket and verify with Gatekeeper (default: on)",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show raw tool output",
    )
    parser.add_argument(
        "--tool",
        choices=sorted(SERVICES),
        default=None,
        help="Notary tool to use (default: notarytool)",
    )
    parser.add_argument(
        "--temp-dir",
        default=None,
        help="Directory for intermediate archives (default: system temp dir)",
    )
    parser.add_argument(
        "--project-dir",
        default=None,
        help="Directory with pyproject.toml and .env (default: current directory)",
    )

    # Pipeline mode (mutually exclusive)
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--staple-only",
        action="store_true",
        help="Only staple and verify an already notarized product",
    )
    group.add_argument(
        "--resume",
        metavar="REQUEST_ID",
        default=None,
        help="Skip submission and poll an existing request id",
    )

    # UI mode
    parser.add_argument(
        "--simple",
        action="store_true",
        help="Use simple output instead of TUI (colors preserved)",
    )

    return parser.parse_args(args)


def get_mode(args: argparse.Namespace) -> Mode:
    """Determine the pipeline mode from parsed arguments."""
    if args.staple_only:
        return "staple-only"
    if args.resume:
        return "resume"
    return "notarize"


def should_use_tui(args: argparse.Namespace) -> bool:
    """Determine whether to use the Textual TUI.

    Returns False if:
    - User requested simple output (--simple)
    - Not running in a TTY (CI, piped output)
    """
    if args.simple:
        return False
    if not sys.stdout.isatty():
        return False
    return True
