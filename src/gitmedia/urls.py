"""Object URL and object identifier helpers."""

from __future__ import annotations

import os
from urllib.parse import urlsplit, urlunsplit

from gitmedia.errors import InvalidObjectIdError

OBJECTS_SEGMENT = "objects"

_SEPARATORS = ("/", "\\")


def derive_oid(path: str | os.PathLike[str]) -> str:
    """Derive the object identifier from a local path or argument.

    The identifier is the final path segment; trailing separators are ignored.

    Raises:
        InvalidObjectIdError: If no usable segment remains.
    """
    raw = os.fspath(path)
    trimmed = raw.rstrip("".join(_SEPARATORS))
    oid = os.path.basename(trimmed)

    if not oid or oid in (".", ".."):
        raise InvalidObjectIdError(f"Invalid object id derived from {raw!r}", path=raw)
    if any(sep in oid for sep in _SEPARATORS):
        raise InvalidObjectIdError(f"Object id must not contain separators: {oid!r}", path=raw)
    return oid


def object_url(endpoint: str, oid: str) -> str:
    """Build ``<endpoint>/objects/<oid>`` with path-join semantics.

    The endpoint path is preserved, duplicate slashes are collapsed and the
    scheme, host, query and fragment of the endpoint are kept.
    """
    parts = urlsplit(endpoint)
    segments = [segment for segment in parts.path.split("/") if segment]
    segments.extend([OBJECTS_SEGMENT, oid])
    path = "/" + "/".join(segments)
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def sanitize_url(url: str) -> str:
    """Strip userinfo, query and fragment from a URL for logs and spans."""
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
        if not host:
            return "unknown"
        port = f":{parts.port}" if parts.port else ""
        return urlunsplit((parts.scheme, f"{host}{port}", parts.path, "", ""))
    except ValueError:
        return "unknown"
