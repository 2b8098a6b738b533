"""Tests for reporter module."""

import io
import json
import pytest
from pathlib import Path

from src.linewatch.models import ChangeEvent, FileRecord
from src.linewatch.reporter import ConsoleReporter


class TestConsoleReporter:
    """Tests for ConsoleReporter class."""

    def test_text_lines(self):
        stream = io.StringIO()
        reporter = ConsoleReporter(stream=stream)

        reporter(ChangeEvent.added(FileRecord(Path("/data/a.txt"), 1, 4)))
        reporter(ChangeEvent.deleted(Path("/data/b.txt")))

        assert stream.getvalue().splitlines() == [
            "Added: [/data/a.txt] of 4 lines",
            "Deleted: [/data/b.txt]",
        ]

    def test_json_lines(self):
        stream = io.StringIO()
        reporter = ConsoleReporter(stream=stream, fmt="json")

        reporter(ChangeEvent.deleted(Path("/data/b.txt")))

        data = json.loads(stream.getvalue())
        assert data["event_type"] == "deleted"
        assert data["path"] == "/data/b.txt"

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="format"):
            ConsoleReporter(fmt="xml")

    def test_defaults_to_stdout(self, capsys):
        ConsoleReporter()(ChangeEvent.deleted(Path("/data/b.txt")))
        assert capsys.readouterr().out == "Deleted: [/data/b.txt]\n"
