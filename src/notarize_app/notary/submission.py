"""Submission of an archived product to the notary service."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING

from notarize_app.exceptions import ConfigurationError, NotaryServiceError
from notarize_app.notary.bundle import resolve_bundle_id
from notarize_app.notary.models import SubmissionRecord

if TYPE_CHECKING:
    from notarize_app.config import Credentials
    from notarize_app.notary.service import NotaryService

RED = "\033[31m"
NC = "\033[0m"


async def submit(
    service: NotaryService,
    archive_path: Path,
    product_path: Path,
    bundle_id: str | None,
    credentials: Credentials,
    on_output: Callable[[str], Awaitable[None]],
) -> SubmissionRecord | None:
    """Submit an archive for notarization.

    The submission call is made exactly once. A rejection is not retried.

    Args:
        service: Notary service client
        archive_path: Archive to upload
        product_path: Product the archive was made from (for bundle id lookup)
        bundle_id: Explicit bundle id override, or None/empty to read Info.plist
        credentials: Notary service credentials
        on_output: Async callback for progress output

    Returns:
        Submission record, or None if the service rejected the submission

    Raises:
        ConfigurationError: If the archive is missing or no bundle id resolves
        ToolInvocationError: If the notary tool did not run at all
    """
    if not archive_path.exists():
        raise ConfigurationError(f"No archive found at {archive_path}")

    resolved_id = resolve_bundle_id(bundle_id, product_path)
    await on_output(f"Primary bundle id: {resolved_id}\n")

    try:
        record = await service.submit(archive_path, resolved_id, credentials)
    except NotaryServiceError as e:
        for error in e.errors or [e]:
            await on_output(f"{RED}✗ {error}{NC}\n")
        return None

    await on_output(f"Submitted for notarization. Request id is {record.tracking_id}\n")
    return record
