"""Git media client error types.

Every failure surfaced by the client is a GitMediaError subclass tagged with
an ErrorKind, so callers can branch on the kind of failure without matching
on message text:

- LOCAL_FILE: the local object is missing, unreadable or has an invalid name
- TRANSPORT: the request never produced an HTTP response
- PROTOCOL: the server answered with a status > 299
- ENVELOPE: a downloaded body failed content-type or boundary validation
- CREDENTIAL: the credential provider could not resolve credentials
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    import httpx

    from gitmedia.models import ApiError


class ErrorKind(StrEnum):
    """Kind of failure carried by a GitMediaError."""

    LOCAL_FILE = "LOCAL_FILE"
    TRANSPORT = "TRANSPORT"
    PROTOCOL = "PROTOCOL"
    ENVELOPE = "ENVELOPE"
    CREDENTIAL = "CREDENTIAL"


class ConfigError(ValueError):
    """Raised when client configuration is missing or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GitMediaError(Exception):
    """Base exception for git media client operations.

    Attributes:
        message: Human-readable error message.
        oid: Object identifier associated with the operation (if known).
    """

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, *, oid: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.oid = oid

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Render a JSON-safe summary of the error (never includes credentials)."""
        data: dict[str, Any] = {"kind": str(self.kind), "message": self.message}
        if self.oid:
            data["oid"] = self.oid
        return data


class LocalFileError(GitMediaError):
    """Raised when the local object file is missing or cannot be read."""

    kind = ErrorKind.LOCAL_FILE

    def __init__(
        self,
        message: str,
        *,
        oid: str | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message, oid=oid)
        self.path = path


class InvalidObjectIdError(LocalFileError):
    """Raised when no valid object identifier can be derived from a path."""

    def __init__(self, message: str = "Invalid object id", *, path: str | None = None) -> None:
        super().__init__(message, path=path)


class TransportError(GitMediaError):
    """Raised when a request fails before any HTTP response is received."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        oid: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, oid=oid)
        self.cause = cause


class ProtocolError(GitMediaError):
    """Raised when the server answers with a decodable error document.

    The message is the document's ``message``, or the status when it is empty.

    Attributes:
        api_error: Decoded error document.
        response: The original HTTP response (body already consumed).
    """

    kind = ErrorKind.PROTOCOL

    def __init__(
        self,
        api_error: ApiError,
        *,
        response: httpx.Response,
        oid: str | None = None,
    ) -> None:
        super().__init__(
            api_error.message or f"Request failed with status {response.status_code}", oid=oid
        )
        self.api_error = api_error
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def request_id(self) -> str | None:
        return self.api_error.request_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        if self.request_id:
            data["request_id"] = self.request_id
        return data


class ErrorResponseDecodeError(GitMediaError):
    """Raised when an error response body is not a JSON error object."""

    kind = ErrorKind.PROTOCOL

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response,
        oid: str | None = None,
    ) -> None:
        super().__init__(message, oid=oid)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class EnvelopeError(GitMediaError):
    """Raised when a downloaded body fails content-type or boundary checks."""

    kind = ErrorKind.ENVELOPE


class CredentialError(GitMediaError):
    """Raised when the credential provider cannot resolve credentials."""

    kind = ErrorKind.CREDENTIAL
