"""Value types exchanged with the notary service."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class NotarizationState(Enum):
    """Verdict of a single status query."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        """Whether this verdict ends polling."""
        return self is not NotarizationState.PENDING


@dataclass(frozen=True)
class ProductError:
    """One (code, message) pair reported by the notary service."""

    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code} - {self.message}"


@dataclass(frozen=True)
class SubmissionRecord:
    """Result of a successful submission.

    The tracking id is the only key used to poll for a verdict.
    """

    tracking_id: str
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class StatusReport:
    """Verdict returned by one status query.

    Attributes:
        state: Normalized verdict
        message: Explanation from the service (may be empty)
        status: Raw status text as reported by the tool
    """

    state: NotarizationState
    message: str = ""
    status: str = ""
