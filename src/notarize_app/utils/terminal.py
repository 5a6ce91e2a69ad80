"""Folding of raw terminal output into display lines.

The TUI shows command output in a RichLog widget, which is a text widget and
not a terminal emulator. Progress output (upload percentages from notarytool,
spinners) relies on carriage returns and backspaces to redraw a line; those
are folded here so only the final state of each line is displayed. ANSI color
sequences are kept, RichLog renders them.
"""

import re

CONTROL = re.compile(r"(\r\n|\r|\n|\x08)")


class OutputProcessor:
    """Turn a stream of output chunks into completed lines."""

    def __init__(self) -> None:
        self.current_line = ""
        # A lone \r may be the first half of a \r\n split across chunks
        self._carriage_return = False

    def process(self, text: str) -> list[str]:
        """Feed a chunk of output.

        Args:
            text: Raw output chunk (may end mid-line)

        Returns:
            Lines completed by this chunk, in order
        """
        completed: list[str] = []
        for token in CONTROL.split(text):
            if not token:
                continue
            if token in ("\n", "\r\n"):
                completed.append(self.current_line)
                self.current_line = ""
                self._carriage_return = False
                continue
            if token == "\r":
                self._carriage_return = True
                continue
            if self._carriage_return:
                self.current_line = ""
                self._carriage_return = False
            if token == "\x08":
                self.current_line = self.current_line[:-1]
            else:
                self.current_line += token
        return completed

    def flush(self) -> str | None:
        """Return and clear any unterminated line."""
        line, self.current_line = self.current_line, ""
        self._carriage_return = False
        return line or None
