"""Exceptions shared by the notary client, steps and runner."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notarize_app.notary.models import ProductError


class NotarizeError(Exception):
    """Base class for all notarize-app errors."""


class ConfigurationError(NotarizeError):
    """Required input is missing or invalid.

    Always raised before any remote interaction takes place.
    """


class ToolInvocationError(NotarizeError):
    """An external tool could not be run at all.

    This is different from a tool that ran and reported failure: it means
    the local tooling is broken and nothing the remote side said is known.
    """

    def __init__(self, command: Sequence[str], reason: str) -> None:
        """Initialize the error.

        Args:
            command: Command that failed to run (secrets already masked)
            reason: Why the command could not run
        """
        self.command = list(command)
        self.reason = reason
        tool = command[0] if command else "<empty command>"
        super().__init__(f"{tool} did not run: {reason}")


class NotaryServiceError(NotarizeError):
    """The notary service answered with a structured error list."""

    def __init__(self, errors: Sequence[ProductError], message: str = "") -> None:
        """Initialize the error.

        Args:
            errors: Product errors reported by the service
            message: Optional summary message
        """
        self.errors = list(errors)
        if not message:
            message = "; ".join(str(error) for error in self.errors) or "Notary service error"
        super().__init__(message)
