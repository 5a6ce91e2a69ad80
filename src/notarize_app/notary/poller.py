"""Polling for a notarization verdict.

Apple offers no push notification for notarization results, so the poller
queries the service repeatedly until a terminal verdict arrives or the
iteration budget is used up. One iteration nominally costs 45-90 seconds (a
jittered sleep dominates), which is why the budget is expressed in minutes but
counted in iterations.

Sleep and jitter are injectable so tests can run the loop without waiting.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from notarize_app.exceptions import ConfigurationError, NotaryServiceError
from notarize_app.notary.models import NotarizationState, ProductError, StatusReport

if TYPE_CHECKING:
    from notarize_app.config import Credentials
    from notarize_app.notary.service import NotaryService

GREEN = "\033[32m"
RED = "\033[31m"
NC = "\033[0m"

DEFAULT_INTERVAL = (45.0, 90.0)


class PollOutcome(Enum):
    """How a polling run ended."""

    VERIFIED = "verified"
    REJECTED = "rejected"
    UNRECOGNIZED = "unrecognized"
    SERVICE_ERROR = "service-error"
    TIMED_OUT = "timed-out"


@dataclass(frozen=True)
class PollResult:
    """Final state of a polling run.

    Attributes:
        outcome: Why polling stopped
        attempts: Number of status queries made
        report: Last status report received (None if no query succeeded)
        errors: Product errors from a failed status query
    """

    outcome: PollOutcome
    attempts: int
    report: StatusReport | None = None
    errors: tuple[ProductError, ...] = ()

    @property
    def verified(self) -> bool:
        """Whether the product was verified by the service."""
        return self.outcome is PollOutcome.VERIFIED

    def describe(self) -> str:
        """One-line human readable description of the outcome."""
        message = self.report.message if self.report else ""
        match self.outcome:
            case PollOutcome.VERIFIED:
                return "notarization verified"
            case PollOutcome.REJECTED:
                return f"rejected: {message}" if message else "rejected by the notary service"
            case PollOutcome.UNRECOGNIZED:
                status = self.report.status if self.report else "?"
                return f"unexpected notarization status <{status}>"
            case PollOutcome.SERVICE_ERROR:
                details = "; ".join(str(error) for error in self.errors)
                return f"status query failed: {details}" if details else "status query failed"
            case _:
                return f"timed out after {self.attempts} status checks without a final verdict"


class StatusPoller:
    """Poll the notary service until a terminal verdict or the budget runs out."""

    def __init__(
        self,
        service: NotaryService,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
        interval: tuple[float, float] = DEFAULT_INTERVAL,
        on_output: Callable[[str], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            service: Notary service client
            sleep: Coroutine used to wait between queries
            jitter: Function returning a delay within (low, high)
            interval: Bounds in seconds for the delay between queries
            on_output: Async callback for progress output
        """
        self.service = service
        self.sleep = sleep
        self.jitter = jitter
        self.interval = interval
        self.on_output = on_output

    async def _emit(self, text: str) -> None:
        if self.on_output:
            await self.on_output(text)

    async def poll(
        self, tracking_id: str, credentials: Credentials, timeout_minutes: int
    ) -> bool:
        """Poll for a verdict and return whether the product was verified."""
        result = await self.wait_for_verdict(tracking_id, credentials, timeout_minutes)
        return result.verified

    async def wait_for_verdict(
        self, tracking_id: str, credentials: Credentials, timeout_minutes: int
    ) -> PollResult:
        """Query the service until a terminal verdict arrives.

        Args:
            tracking_id: Submission tracking id
            credentials: Notary service credentials
            timeout_minutes: Maximum number of status queries

        Returns:
            Result describing how polling ended

        Raises:
            ConfigurationError: If timeout_minutes is not positive
            ToolInvocationError: If the notary tool did not run at all
        """
        if timeout_minutes < 1:
            raise ConfigurationError(f"Timeout must be at least 1 minute, got {timeout_minutes}")

        report: StatusReport | None = None
        for attempt in range(1, timeout_minutes + 1):
            try:
                report = await self.service.query(tracking_id, credentials)
            except NotaryServiceError as e:
                for error in e.errors or [e]:
                    await self._emit(f"{RED}✗ {error}{NC}\n")
                return PollResult(
                    PollOutcome.SERVICE_ERROR, attempt, report, tuple(e.errors)
                )

            match report.state:
                case NotarizationState.PENDING:
                    await self._emit(
                        f"Notarization status <{report.status or 'in progress'}> "
                        f"(check {attempt}/{timeout_minutes})\n"
                    )
                case NotarizationState.VERIFIED:
                    await self._emit(f"{GREEN}✓ Notarization status <{report.status}>{NC}\n")
                    return PollResult(PollOutcome.VERIFIED, attempt, report)
                case NotarizationState.REJECTED:
                    await self._emit(
                        f"{RED}✗ Notarization status <{report.status}> - {report.message}{NC}\n"
                    )
                    return PollResult(PollOutcome.REJECTED, attempt, report)
                case _:
                    await self._emit(f"{RED}✗ Unexpected notarization status <{report.status}>{NC}\n")
                    return PollResult(PollOutcome.UNRECOGNIZED, attempt, report)

            if attempt < timeout_minutes:
                delay = self.jitter(*self.interval)
                await self._emit(f"Next status check in {delay:.0f}s\n")
                await self.sleep(delay)

        await self._emit(
            f"{RED}✗ Failed to get final notarization status after {timeout_minutes} minutes{NC}\n"
        )
        return PollResult(PollOutcome.TIMED_OUT, timeout_minutes, report)
