"""Configuration management for the notarization tool.

Values are resolved once, lowest precedence first, from:
- pyproject.toml: optional [tool.notarize-app] table with project defaults
- Environment variables: CI inputs and Apple credentials (a local .env is
  loaded first if present)
- Command-line arguments

The result is a frozen NotarizeConfig passed to every step; nothing else reads
process-wide state.
"""

import argparse
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import tomllib
from dotenv import load_dotenv

from notarize_app.exceptions import ConfigurationError
from notarize_app.notary.poller import DEFAULT_INTERVAL
from notarize_app.notary.service import SERVICES

Mode = Literal["notarize", "staple-only", "resume"]

TRUE_STRINGS = {"1", "true", "yes", "on"}
FALSE_STRINGS = {"0", "false", "no", "off"}


def parse_bool(value: Any, name: str) -> bool:
    """Parse a boolean setting from TOML or the environment."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ConfigurationError(f"{name} must be a boolean (true/false), got {value!r}")


def parse_int(value: Any, name: str) -> int:
    """Parse an integer setting from TOML or the environment."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def parse_float(value: Any, name: str) -> float:
    """Parse a number of seconds from TOML or the environment."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        return float(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class Credentials:
    """Notary service credentials from environment variables.

    Loaded from:
    - Local: .env file in the project directory
    - CI: environment variables / secrets
    """

    apple_id: str | None = None
    password: str | None = None
    team_id: str | None = None

    @classmethod
    def from_env(cls) -> "Credentials":
        """Load from environment (works for both .env and CI)."""
        return cls(
            apple_id=os.environ.get("APPLE_ID") or None,
            password=os.environ.get("APPLE_APP_SPECIFIC_PASSWORD") or None,
            team_id=os.environ.get("APPLE_TEAM_ID") or None,
        )

    def validate(self, tool: str) -> list[str]:
        """Validate credentials for the given notary tool. Returns list of missing vars."""
        missing: list[str] = []
        if not self.apple_id:
            missing.append("APPLE_ID")
        if not self.password:
            missing.append("APPLE_APP_SPECIFIC_PASSWORD")
        # notarytool refuses an Apple ID without a team
        if tool == "notarytool" and not self.team_id:
            missing.append("APPLE_TEAM_ID")
        return missing


@dataclass(frozen=True)
class ProjectSettings:
    """Project defaults from the [tool.notarize-app] table of pyproject.toml."""

    primary_bundle_id: str | None = None
    timeout: int = 60
    staple: bool = True
    verbose: bool = False
    tool: str = "notarytool"
    temp_dir: Path | None = None
    initial_wait: float = 30.0
    poll_interval: tuple[float, float] = DEFAULT_INTERVAL
    log_dir: Path = Path("log")
    max_log_files: int = 5

    @classmethod
    def from_pyproject(cls, project_dir: Path) -> "ProjectSettings":
        """Load settings from pyproject.toml, falling back to defaults."""
        pyproject_path = project_dir / "pyproject.toml"
        if not pyproject_path.is_file():
            return cls()

        try:
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid {pyproject_path}: {e}") from e

        table = data.get("tool", {}).get("notarize-app")
        if not table:
            return cls()

        interval = table.get("poll_interval", DEFAULT_INTERVAL)
        if not isinstance(interval, (list, tuple)) or len(interval) != 2:
            raise ConfigurationError("poll_interval must be a [min, max] pair of seconds")

        temp_dir = table.get("temp_dir")
        return cls(
            primary_bundle_id=table.get("primary_bundle_id") or None,
            timeout=parse_int(table.get("timeout", 60), "timeout"),
            staple=parse_bool(table.get("staple", True), "staple"),
            verbose=parse_bool(table.get("verbose", False), "verbose"),
            tool=str(table.get("tool", "notarytool")),
            temp_dir=Path(temp_dir) if temp_dir else None,
            initial_wait=parse_float(table.get("initial_wait", 30.0), "initial_wait"),
            poll_interval=(
                parse_float(interval[0], "poll_interval"),
                parse_float(interval[1], "poll_interval"),
            ),
            log_dir=Path(table.get("log_dir", "log")),
            max_log_files=parse_int(table.get("max_log_files", 5), "max_log_files"),
        )


@dataclass(frozen=True)
class NotarizeConfig:
    """Runtime configuration combining project settings, environment and CLI args."""

    product_path: Path
    credentials: Credentials
    mode: Mode = "notarize"
    artifact_path: Path | None = None
    primary_bundle_id: str | None = None
    request_id: str | None = None
    timeout_minutes: int = 60
    staple: bool = True
    verbose: bool = False
    tool: str = "notarytool"
    temp_dir: Path = Path(tempfile.gettempdir())
    initial_wait_seconds: float = 30.0
    poll_interval: tuple[float, float] = DEFAULT_INTERVAL
    log_dir: Path = Path("log")
    max_log_files: int = 5

    @property
    def archive_path(self) -> Path:
        """Path of the intermediate archive uploaded for notarization."""
        return self.temp_dir / f"{self.product_path.stem}.zip"

    @property
    def output_path(self) -> Path:
        """The verified product path reported on success."""
        return self.product_path

    @property
    def description(self) -> str:
        """Human-readable pipeline description."""
        if self.mode == "staple-only":
            return "Staple only"
        if self.mode == "resume":
            return f"Resume {self.request_id}"
        if self.staple:
            return "Notarize + Staple"
        return "Notarize (no staple)"

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of error messages."""
        errors: list[str] = []

        if not self.product_path.exists():
            errors.append(f"Product path {self.product_path} does not exist")

        if self.tool not in SERVICES:
            errors.append(f"Unknown notary tool {self.tool!r} (expected one of: {', '.join(SERVICES)})")

        if self.mode != "staple-only":
            missing = self.credentials.validate(self.tool)
            if missing:
                errors.append(f"Missing required environment variables: {', '.join(missing)}")

        if self.timeout_minutes < 1:
            errors.append(f"Timeout must be a positive number of minutes, got {self.timeout_minutes}")

        low, high = self.poll_interval
        if low < 0 or high < low:
            errors.append(f"Invalid poll interval {self.poll_interval}")

        if self.initial_wait_seconds < 0:
            errors.append("Initial wait must not be negative")

        if self.mode == "resume" and not self.request_id:
            errors.append("Resuming requires a request id")

        if self.mode == "staple-only" and not self.staple:
            errors.append("--staple-only cannot be combined with --no-staple")

        if self.max_log_files < 1:
            errors.append("max_log_files must be at least 1")

        return errors


def _pick(*values: Any) -> Any:
    """Return the first value that is not None or an empty string."""
    for value in values:
        if value is not None and value != "":
            return value
    return None


def load_config(args: argparse.Namespace, project_dir: Path, mode: Mode) -> NotarizeConfig:
    """Load all configuration - .env file for local, env vars for CI.

    Args:
        args: Parsed command-line arguments
        project_dir: Directory holding pyproject.toml / .env
        mode: Pipeline mode

    Returns:
        Complete NotarizeConfig

    Raises:
        ConfigurationError: If a required value is missing or malformed
    """
    # No-op in CI where env vars are set directly
    env_path = project_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    settings = ProjectSettings.from_pyproject(project_dir)
    env = os.environ

    product = _pick(args.product_path, env.get("NOTARIZE_PRODUCT_PATH"))
    if product is None:
        raise ConfigurationError(
            "Missing product path (pass it as an argument or set NOTARIZE_PRODUCT_PATH)"
        )

    artifact = _pick(args.artifact_path, env.get("NOTARIZE_ARTIFACT_PATH"))
    temp_dir = _pick(args.temp_dir, env.get("NOTARIZE_TEMP_DIR"), settings.temp_dir)

    timeout = _pick(args.timeout, env.get("NOTARIZE_TIMEOUT"))
    staple = _pick(args.staple, env.get("NOTARIZE_STAPLE"))
    verbose = _pick(args.verbose, env.get("NOTARIZE_VERBOSE"))

    log_dir = settings.log_dir
    if not log_dir.is_absolute():
        log_dir = project_dir / log_dir

    return NotarizeConfig(
        product_path=Path(product),
        credentials=Credentials.from_env(),
        mode=mode,
        artifact_path=Path(artifact) if artifact else None,
        primary_bundle_id=_pick(
            args.primary_bundle_id,
            env.get("NOTARIZE_PRIMARY_BUNDLE_ID"),
            settings.primary_bundle_id,
        ),
        request_id=args.resume,
        timeout_minutes=(
            parse_int(timeout, "timeout") if timeout is not None else settings.timeout
        ),
        staple=parse_bool(staple, "staple") if staple is not None else settings.staple,
        verbose=parse_bool(verbose, "verbose") if verbose is not None else settings.verbose,
        tool=_pick(args.tool, env.get("NOTARIZE_TOOL"), settings.tool),
        temp_dir=Path(temp_dir) if temp_dir else Path(tempfile.gettempdir()),
        initial_wait_seconds=settings.initial_wait,
        poll_interval=settings.poll_interval,
        log_dir=log_dir,
        max_log_files=settings.max_log_files,
    )
