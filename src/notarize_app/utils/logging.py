"""Run log management with rotation.

Every line shown by the UI is mirrored, without ANSI codes, into a log file.
Up to N logs are kept (max_log_files in [tool.notarize-app]):
- notarize.log (most recent run)
- notarize.log.1 (previous run)
- notarize.log.2, ... (older)
"""

import re
from pathlib import Path
from typing import TextIO

DEFAULT_MAX_LOGS = 5
LOG_NAME = "notarize.log"

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return ANSI_ESCAPE.sub("", text)


def get_log_path(log_dir: Path, index: int = 0) -> Path:
    """Get path to a specific log file (0 = current, 1+ = older)."""
    if index == 0:
        return log_dir / LOG_NAME
    return log_dir / f"{LOG_NAME}.{index}"


def rotate_logs(log_dir: Path, max_logs: int = DEFAULT_MAX_LOGS) -> None:
    """Shift existing logs one slot older, dropping the oldest.

    Args:
        log_dir: Directory holding the logs
        max_logs: Maximum number of log files to keep, including the new one
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    oldest = get_log_path(log_dir, max_logs - 1)
    if oldest.exists():
        oldest.unlink()

    for i in range(max_logs - 2, -1, -1):
        current = get_log_path(log_dir, i)
        if current.exists():
            current.rename(get_log_path(log_dir, i + 1))


class RunLogger:
    """Collects pipeline output and writes it to the current log file."""

    def __init__(self, log_dir: Path, max_logs: int = DEFAULT_MAX_LOGS) -> None:
        """Initialize the run logger.

        Args:
            log_dir: Directory to write logs to
            max_logs: Maximum number of log files to keep
        """
        self.log_dir = log_dir
        self.max_logs = max_logs
        self.log_path = get_log_path(log_dir)
        self._file_handle: TextIO | None = None

    def start(self) -> None:
        """Rotate previous logs and open a fresh log file."""
        rotate_logs(self.log_dir, self.max_logs)
        self._file_handle = open(self.log_path, "w", encoding="utf-8")

    def write(self, text: str) -> None:
        """Write text to the log (ANSI codes are stripped)."""
        if self._file_handle:
            self._file_handle.write(strip_ansi(text))
            self._file_handle.flush()

    def write_line(self, text: str) -> None:
        """Write a line to the log, adding a newline if missing."""
        if not text.endswith("\n"):
            text = text + "\n"
        self.write(text)

    def close(self) -> None:
        """Close the log file."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self) -> "RunLogger":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
