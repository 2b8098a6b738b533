"""Sinks that write change events as lines."""

import json
import sys
import threading
from typing import Optional, TextIO

from .models import ChangeEvent


class ConsoleReporter:
    """
    Writes one line per event to a text stream.

    Usable directly as the `reporter` callback of a DirectoryWatcher.
    """

    FORMATS = ("text", "json")

    def __init__(self, stream: Optional[TextIO] = None, fmt: str = "text"):
        """
        Initialize the reporter.

        Args:
            stream: Output stream (default: sys.stdout at write time)
            fmt: "text" for report lines, "json" for JSON lines
        """
        if fmt not in self.FORMATS:
            raise ValueError(f"Unknown output format: {fmt}")
        self.fmt = fmt
        self._stream = stream
        self._lock = threading.Lock()

    def render(self, event: ChangeEvent) -> str:
        if self.fmt == "json":
            return json.dumps(event.to_dict())
        return event.format()

    def __call__(self, event: ChangeEvent) -> None:
        line = self.render(event)
        stream = self._stream or sys.stdout
        with self._lock:
            stream.write(line + "\n")
            stream.flush()
