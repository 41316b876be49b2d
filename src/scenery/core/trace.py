"""In-memory capture of log output produced while a scenario runs."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional


def executable_name() -> str:
    """Base name of the program that started this process."""
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else ""


class TraceCapture(logging.Handler):
    """Line-buffered message sink.

    Partial writes accumulate in a buffer and become a message when a line
    terminator arrives or when messages are read. Attached to a logger it
    records every emitted record as one message.

    One instance must not be shared by scenario runs executing concurrently.
    """

    def __init__(
        self,
        level: int = logging.NOTSET,
        strip_prefix: Optional[str] = None,
    ):
        super().__init__(level)
        self.strip_prefix = executable_name() if strip_prefix is None else strip_prefix
        self._messages: list[str] = []
        self._buffer: list[str] = []
        self._attached_to: Optional[logging.Logger] = None

    def write(self, message: str) -> None:
        """Append text to the current line, completing lines on newline."""
        if self.strip_prefix and message.startswith(self.strip_prefix):
            message = message[len(self.strip_prefix):].lstrip()

        with self.lock:
            *complete, rest = message.split("\n")
            for part in complete:
                self._buffer.append(part)
                self._messages.append("".join(self._buffer).rstrip("\r"))
                self._buffer.clear()
            if rest:
                self._buffer.append(rest)

    def write_line(self, message: str = "") -> None:
        """Write ``message`` and terminate the current line."""
        with self.lock:
            self.write(message + "\n")

    def flush(self) -> None:
        """Move buffered text, if any, into the message list."""
        with self.lock:
            if self._buffer:
                self._messages.append("".join(self._buffer))
                self._buffer.clear()

    @property
    def messages(self) -> list[str]:
        self.flush()
        with self.lock:
            return list(self._messages)

    def clear(self) -> None:
        with self.lock:
            self._messages.clear()
            self._buffer.clear()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.write_line(self.format(record))
        except Exception:
            self.handleError(record)

    def attach(self, logger: Optional[logging.Logger] = None) -> None:
        """Start capturing records from ``logger`` (root by default)."""
        self.detach()
        self._attached_to = logger or logging.getLogger()
        self._attached_to.addHandler(self)

    def detach(self) -> None:
        if self._attached_to is not None:
            self._attached_to.removeHandler(self)
            self._attached_to = None
