"""Utility modules for the notarization tool."""

from notarize_app.utils.logging import RunLogger, rotate_logs, strip_ansi
from notarize_app.utils.process import ProcessResult, ProcessRunner, mask_command
from notarize_app.utils.terminal import OutputProcessor

__all__ = [
    "OutputProcessor",
    "ProcessResult",
    "ProcessRunner",
    "RunLogger",
    "mask_command",
    "rotate_logs",
    "strip_ansi",
]
