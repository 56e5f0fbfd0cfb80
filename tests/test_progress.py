"""Tests for the upload progress observer."""

from __future__ import annotations

import io
import logging

import pytest

from gitmedia.progress import ProgressReader, log_progress

PAYLOAD = bytes(range(256)) * 40


class TestProgressReader:
    def test_forwards_bytes_unchanged(self) -> None:
        reader = ProgressReader(io.BytesIO(PAYLOAD), len(PAYLOAD), chunk_size=1000)
        assert b"".join(reader) == PAYLOAD

    def test_reports_monotonic_counts_ending_at_total(self) -> None:
        events: list[tuple[int, int]] = []
        reader = ProgressReader(
            io.BytesIO(PAYLOAD),
            len(PAYLOAD),
            lambda done, total: events.append((done, total)),
            chunk_size=4096,
        )

        list(reader)

        counts = [done for done, _ in events]
        assert counts == sorted(counts)
        assert counts[-1] == len(PAYLOAD)
        assert all(total == len(PAYLOAD) for _, total in events)
        assert reader.bytes_read == len(PAYLOAD)

    def test_read_passthrough(self) -> None:
        reader = ProgressReader(io.BytesIO(b"abcdef"), 6)
        assert reader.read(2) == b"ab"
        assert reader.read() == b"cdef"
        assert reader.read() == b""
        assert reader.bytes_read == 6

    def test_empty_read_does_not_report(self) -> None:
        events: list[tuple[int, int]] = []
        reader = ProgressReader(io.BytesIO(b""), 0, lambda d, t: events.append((d, t)))
        assert list(reader) == []
        assert events == []

    def test_rejects_invalid_chunk_size(self) -> None:
        with pytest.raises(ValueError):
            ProgressReader(io.BytesIO(b""), 0, chunk_size=0)


class TestLogProgress:
    def test_logs_completion_once_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="gitmedia.progress")
        reader = ProgressReader(io.BytesIO(PAYLOAD), len(PAYLOAD), log_progress("obj"), 1024)

        list(reader)

        info = [r for r in caplog.records if r.levelno == logging.INFO]
        assert len(info) == 1
        assert info[0].getMessage() == f"obj: sent {len(PAYLOAD)} bytes"

    def test_logs_steps_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="gitmedia.progress")
        callback = log_progress("obj", step_percent=50)

        callback(10, 100)
        callback(20, 100)
        callback(60, 100)

        debug = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
        assert debug == ["obj: 10% (10/100 bytes)", "obj: 60% (60/100 bytes)"]
