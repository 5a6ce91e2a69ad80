"""Notary service clients.

The pipeline talks to Apple's notary service through two operations, submit
and query, captured by the NotaryService protocol. Two implementations drive
``xcrun`` with JSON output:

- NotarytoolService: ``xcrun notarytool`` (current tooling, default)
- AltoolService: ``xcrun altool`` (legacy flow, sends a primary bundle id)

Both raise NotaryServiceError when the tool answers with a structured error
list and ToolInvocationError when the tool could not be run at all.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from notarize_app.exceptions import ConfigurationError, NotaryServiceError, ToolInvocationError
from notarize_app.notary.models import (
    NotarizationState,
    ProductError,
    StatusReport,
    SubmissionRecord,
)
from notarize_app.utils.process import ProcessResult, ProcessRunner, mask_command

if TYPE_CHECKING:
    from notarize_app.config import Credentials


class NotaryService(Protocol):
    """Remote submission and status service."""

    async def submit(
        self, archive_path: Path, bundle_id: str, credentials: Credentials
    ) -> SubmissionRecord:
        """Upload an archive and return its tracking record."""
        ...

    async def query(self, tracking_id: str, credentials: Credentials) -> StatusReport:
        """Fetch the current verdict for a tracking id."""
        ...


class XcrunNotaryService(ABC):
    """Shared plumbing for the xcrun-based notary tools."""

    tool: str = ""
    states: dict[str, NotarizationState] = {}

    def __init__(
        self,
        runner: ProcessRunner,
        verbose: bool = False,
        on_output: Callable[[str], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            runner: Process runner used to invoke xcrun
            verbose: Pass --verbose and echo raw responses
            on_output: Async callback for verbose output
        """
        self.runner = runner
        self.verbose = verbose
        self.on_output = on_output

    def normalize_status(self, status: str) -> NotarizationState:
        """Map a raw status string onto a NotarizationState."""
        return self.states.get(status.strip().casefold(), NotarizationState.UNKNOWN)

    async def _emit(self, text: str) -> None:
        if self.on_output:
            await self.on_output(text)

    async def _invoke(self, args: list[str], credentials: Credentials) -> dict[str, Any]:
        """Run ``xcrun <tool> <args>`` and return the parsed JSON response.

        Raises:
            ToolInvocationError: If xcrun could not be run
            NotaryServiceError: On a non-zero exit or unreadable response
        """
        cmd = ["xcrun", self.tool, *args, "--output-format", "json"]
        if self.verbose:
            cmd.append("--verbose")
        masked = mask_command(cmd, [credentials.password])

        if self.verbose:
            await self._emit(f"$ {' '.join(masked)}\n")

        try:
            result = await self.runner.capture(cmd)
        except ToolInvocationError as e:
            raise ToolInvocationError(masked, e.reason) from e

        response = self._parse(result)

        if self.verbose:
            await self._emit(json.dumps(response, indent=2) + "\n")
            if result.stderr.strip():
                await self._emit(result.stderr)

        if result.exit_code != 0:
            errors = self.product_errors(response) or [
                ProductError(str(result.exit_code), f"{self.tool} exited with code {result.exit_code}")
            ]
            raise NotaryServiceError(errors)
        return response

    def _parse(self, result: ProcessResult) -> dict[str, Any]:
        """Decode the tool's JSON output."""
        try:
            response = json.loads(result.stdout)
        except json.JSONDecodeError:
            response = None

        if isinstance(response, dict):
            return response

        detail = result.stderr.strip() or result.stdout.strip() or "no output"
        code = str(result.exit_code) if result.exit_code != 0 else "malformed-response"
        raise NotaryServiceError(
            [ProductError(code, f"Unreadable {self.tool} response: {detail}")]
        )

    @abstractmethod
    def product_errors(self, response: dict[str, Any]) -> list[ProductError]:
        """Extract structured errors from a failed response."""
        ...

    @abstractmethod
    async def submit(
        self, archive_path: Path, bundle_id: str, credentials: Credentials
    ) -> SubmissionRecord:
        ...

    @abstractmethod
    async def query(self, tracking_id: str, credentials: Credentials) -> StatusReport:
        ...


class NotarytoolService(XcrunNotaryService):
    """Client for ``xcrun notarytool``.

    notarytool identifies uploads by content, so the bundle id is not sent;
    it is still resolved up front so a misconfigured product fails early.
    """

    tool = "notarytool"
    states = {
        "in progress": NotarizationState.PENDING,
        "accepted": NotarizationState.VERIFIED,
        "invalid": NotarizationState.REJECTED,
        "rejected": NotarizationState.REJECTED,
    }

    @staticmethod
    def _auth_args(credentials: Credentials) -> list[str]:
        args = ["--apple-id", credentials.apple_id or "", "--password", credentials.password or ""]
        if credentials.team_id:
            args.extend(["--team-id", credentials.team_id])
        return args

    def product_errors(self, response: dict[str, Any]) -> list[ProductError]:
        errors = [
            ProductError(str(issue.get("code", "error")), str(issue.get("message", "")))
            for issue in response.get("issues") or []
            if isinstance(issue, dict)
        ]
        if not errors and response.get("message"):
            errors.append(ProductError("error", str(response["message"])))
        return errors

    async def submit(
        self, archive_path: Path, bundle_id: str, credentials: Credentials
    ) -> SubmissionRecord:
        response = await self._invoke(
            ["submit", str(archive_path), *self._auth_args(credentials)], credentials
        )
        tracking_id = response.get("id")
        if not tracking_id:
            raise NotaryServiceError(
                [ProductError("malformed-response", "notarytool did not return a submission id")]
            )
        return SubmissionRecord(tracking_id=str(tracking_id))

    async def query(self, tracking_id: str, credentials: Credentials) -> StatusReport:
        response = await self._invoke(
            ["info", tracking_id, *self._auth_args(credentials)], credentials
        )
        status = str(response.get("status", ""))
        return StatusReport(
            state=self.normalize_status(status),
            message=str(response.get("message", "")),
            status=status,
        )


class AltoolService(XcrunNotaryService):
    """Client for the legacy ``xcrun altool`` notarization commands."""

    tool = "altool"
    states = {
        "in progress": NotarizationState.PENDING,
        "success": NotarizationState.VERIFIED,
        "invalid": NotarizationState.REJECTED,
    }

    @staticmethod
    def _auth_args(credentials: Credentials) -> list[str]:
        args = ["-u", credentials.apple_id or "", "-p", credentials.password or ""]
        if credentials.team_id:
            args.extend(["--asc-provider", credentials.team_id])
        return args

    def product_errors(self, response: dict[str, Any]) -> list[ProductError]:
        return [
            ProductError(str(error.get("code", "error")), str(error.get("message", "")))
            for error in response.get("product-errors") or []
            if isinstance(error, dict)
        ]

    async def submit(
        self, archive_path: Path, bundle_id: str, credentials: Credentials
    ) -> SubmissionRecord:
        response = await self._invoke(
            [
                "--notarize-app",
                "-f",
                str(archive_path),
                "--primary-bundle-id",
                bundle_id,
                *self._auth_args(credentials),
            ],
            credentials,
        )
        upload = response.get("notarization-upload") or {}
        tracking_id = upload.get("RequestUUID") if isinstance(upload, dict) else None
        if not tracking_id:
            raise NotaryServiceError(
                [ProductError("malformed-response", "altool did not return a RequestUUID")]
            )
        return SubmissionRecord(tracking_id=str(tracking_id))

    async def query(self, tracking_id: str, credentials: Credentials) -> StatusReport:
        response = await self._invoke(
            ["--notarization-info", tracking_id, *self._auth_args(credentials)], credentials
        )
        info = response.get("notarization-info")
        if not isinstance(info, dict):
            raise NotaryServiceError(
                [ProductError("malformed-response", "altool response has no notarization-info")]
            )
        status = str(info.get("Status", ""))
        return StatusReport(
            state=self.normalize_status(status),
            message=str(info.get("Status Message", "")),
            status=status,
        )


SERVICES: dict[str, type[XcrunNotaryService]] = {
    NotarytoolService.tool: NotarytoolService,
    AltoolService.tool: AltoolService,
}


def create_service(
    tool: str,
    runner: ProcessRunner,
    verbose: bool = False,
    on_output: Callable[[str], Awaitable[None]] | None = None,
) -> XcrunNotaryService:
    """Create the notary client for the given tool name.

    Raises:
        ConfigurationError: If the tool is not supported
    """
    try:
        service_class = SERVICES[tool]
    except KeyError:
        raise ConfigurationError(
            f"Unknown notary tool {tool!r} (expected one of: {', '.join(SERVICES)})"
        ) from None
    return service_class(runner, verbose=verbose, on_output=on_output)
