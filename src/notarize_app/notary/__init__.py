"""Notary service client, submission and status polling."""

from notarize_app.notary.bundle import read_bundle_identifier, resolve_bundle_id
from notarize_app.notary.models import (
    NotarizationState,
    ProductError,
    StatusReport,
    SubmissionRecord,
)
from notarize_app.notary.poller import PollOutcome, PollResult, StatusPoller
from notarize_app.notary.service import (
    AltoolService,
    NotaryService,
    NotarytoolService,
    create_service,
)
from notarize_app.notary.submission import submit

__all__ = [
    "AltoolService",
    "NotarizationState",
    "NotaryService",
    "NotarytoolService",
    "PollOutcome",
    "PollResult",
    "ProductError",
    "StatusPoller",
    "StatusReport",
    "SubmissionRecord",
    "create_service",
    "read_bundle_identifier",
    "resolve_bundle_id",
    "submit",
]
