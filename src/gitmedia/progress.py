"""Byte-progress observer for upload bodies.

ProgressReader wraps a binary reader and forwards every read unchanged while
reporting the running byte count to a callback. It never reads ahead, so the
transport sees exactly the bytes and ordering of the wrapped reader.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import BinaryIO

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

DEFAULT_CHUNK_SIZE = 64 * 1024


class ProgressReader:
    """Readable proxy emitting ``callback(bytes_read, total)`` after each read.

    Iterating yields ``chunk_size`` chunks so the reader can be handed to
    httpx as a streaming request body.
    """

    def __init__(
        self,
        reader: BinaryIO,
        total: int,
        callback: ProgressCallback | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._reader = reader
        self._total = total
        self._callback = callback
        self._chunk_size = chunk_size
        self._bytes_read = 0

    @property
    def total(self) -> int:
        return self._total

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    def read(self, size: int = -1) -> bytes:
        data = self._reader.read(size)
        if data:
            self._bytes_read += len(data)
            if self._callback is not None:
                self._callback(self._bytes_read, self._total)
        return data

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(self._chunk_size)
            if not chunk:
                return
            yield chunk


def log_progress(name: str, step_percent: int = 10) -> ProgressCallback:
    """Return a callback logging transfer progress for ``name``.

    Intermediate progress is logged at DEBUG every ``step_percent`` percent;
    completion is logged once at INFO.
    """
    last_step = -1

    def callback(bytes_read: int, total: int) -> None:
        nonlocal last_step
        if total <= 0:
            logger.debug("%s: %d bytes", name, bytes_read)
            return
        percent = min(100, bytes_read * 100 // total)
        step = percent // step_percent
        if step > last_step:
            last_step = step
            logger.debug("%s: %d%% (%d/%d bytes)", name, percent, bytes_read, total)
        if bytes_read >= total:
            logger.info("%s: sent %d bytes", name, total)

    return callback
