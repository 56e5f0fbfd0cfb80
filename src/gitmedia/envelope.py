"""Download envelope validation.

A media download is served as ``Content-Type: application/vnd.git-media;
header=<token>`` and its body must begin with ``--<token>\\n``. The validator
consumes exactly that prefix so the stream handed back to callers starts at
the object content.
"""

from __future__ import annotations

import io
from email.message import Message
from email.utils import unquote
from typing import BinaryIO

import httpx

from gitmedia.errors import EnvelopeError, TransportError

GIT_MEDIA_TYPE = "application/vnd.git-media"
GIT_MEDIA_META_TYPE = GIT_MEDIA_TYPE + "+json; charset=utf-8"
HEADER_PARAM = "header"


def parse_media_type(content_type: str) -> tuple[str, dict[str, str]]:
    """Split a Content-Type value into its media type and parameters.

    Raises:
        EnvelopeError: If the value has no ``type/subtype`` token or a
            parameter has no value.
    """
    main = content_type.split(";", 1)[0].strip()
    if main.count("/") != 1 or not all(main.split("/")):
        raise EnvelopeError("Invalid Media Type")

    message = Message()
    message["content-type"] = content_type
    params: dict[str, str] = {}
    for key, value in message.get_params(failobj=[], unquote=False)[1:]:
        if not key:
            continue
        if not value:
            raise EnvelopeError("Invalid Media Type")
        params[key.lower()] = unquote(value)
    return message.get_content_type(), params


def expected_boundary(token: str) -> bytes:
    return f"--{token}\n".encode()


def _read_exactly(reader: BinaryIO, size: int) -> bytes:
    """Read ``size`` bytes, looping over short reads; stops early only at EOF."""
    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = reader.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def validate_media_header(content_type: str, reader: BinaryIO, *, oid: str | None = None) -> None:
    """Validate the envelope of a downloaded body.

    On success exactly ``len("--" + header + "\\n")`` bytes have been consumed
    from ``reader``. The body is not read when the media type is rejected.

    Raises:
        EnvelopeError: On media-type mismatch, a missing ``header`` parameter,
            a short body or a boundary mismatch.
    """
    try:
        media_type, params = parse_media_type(content_type)
    except EnvelopeError as exc:
        raise EnvelopeError(exc.message, oid=oid) from exc

    if media_type != GIT_MEDIA_TYPE:
        raise EnvelopeError("Invalid Media Type", oid=oid)

    token = params.get(HEADER_PARAM)
    if token is None:
        raise EnvelopeError("Invalid header", oid=oid)

    expected = expected_boundary(token)
    given = _read_exactly(reader, len(expected))
    if len(given) < len(expected):
        raise EnvelopeError("Invalid header: body ended before boundary", oid=oid)
    if given != expected:
        raise EnvelopeError("Invalid header", oid=oid)


class ResponseBodyStream(io.RawIOBase):
    """Raw binary stream over a streamed httpx response body.

    Closing the stream closes the response. Failures while reading the body
    are raised as TransportError.
    """

    def __init__(self, response: httpx.Response, *, oid: str | None = None) -> None:
        super().__init__()
        self._response = response
        self._oid = oid
        self._chunks = response.iter_bytes()
        self._pending = b""

    @property
    def response(self) -> httpx.Response:
        return self._response

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.HTTPError as exc:
                raise TransportError(
                    f"Reading response body failed: {exc}", oid=self._oid, cause=exc
                ) from exc
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


def open_response_body(response: httpx.Response, *, oid: str | None = None) -> io.BufferedReader:
    """Wrap a streamed response body in a buffered binary reader."""
    return io.BufferedReader(ResponseBodyStream(response, oid=oid))
