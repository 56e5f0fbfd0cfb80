"""Tests for the transport executor.

Uses httpx.MockTransport for deterministic testing with no live network calls.
Verifies approve/reject reporting and error response decoding.
"""

from __future__ import annotations

import httpx
import pytest

from gitmedia.errors import (
    ErrorKind,
    ErrorResponseDecodeError,
    ProtocolError,
    TransportError,
)
from gitmedia.models import Credentials, Outcome
from gitmedia.transport import TransportExecutor
from tests.fakes import RecordingCredentialProvider

URL = "https://media.example.com/repo/objects/abc123"


def _executor(
    provider: RecordingCredentialProvider,
    status_code: int = 200,
    content: bytes = b"",
    raise_error: bool = False,
) -> TransportExecutor:
    def handler(request: httpx.Request) -> httpx.Response:
        if raise_error:
            raise httpx.ConnectError("Connection refused")
        return httpx.Response(status_code=status_code, content=content)

    return TransportExecutor(httpx.Client(transport=httpx.MockTransport(handler)), provider)


class TestSuccess:
    @pytest.mark.parametrize("status_code", [200, 201, 204, 299])
    def test_success_approves_once(
        self,
        provider: RecordingCredentialProvider,
        test_credentials: Credentials,
        status_code: int,
    ) -> None:
        executor = _executor(provider, status_code=status_code)
        response = executor.execute(httpx.Request("GET", URL), test_credentials)

        assert response.status_code == status_code
        assert provider.reports == [(Outcome.APPROVE, test_credentials)]

    def test_anonymous_request_reports_nothing(
        self, provider: RecordingCredentialProvider
    ) -> None:
        executor = _executor(provider)
        executor.execute(httpx.Request("GET", URL), None)
        assert provider.reports == []


class TestTransportFailure:
    def test_connection_error_approves_and_raises(
        self, provider: RecordingCredentialProvider, test_credentials: Credentials
    ) -> None:
        executor = _executor(provider, raise_error=True)

        with pytest.raises(TransportError) as exc_info:
            executor.execute(httpx.Request("GET", URL), test_credentials, oid="abc123")

        assert exc_info.value.kind == ErrorKind.TRANSPORT
        assert exc_info.value.oid == "abc123"
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert provider.outcomes == [Outcome.APPROVE]


class TestErrorResponses:
    @pytest.mark.parametrize("status_code", [300, 401, 403, 404, 500])
    def test_error_status_rejects_once_and_decodes_message(
        self,
        provider: RecordingCredentialProvider,
        test_credentials: Credentials,
        status_code: int,
    ) -> None:
        executor = _executor(
            provider,
            status_code=status_code,
            content=b'{"message": "Object not allowed", "request_id": "req-42"}',
        )

        with pytest.raises(ProtocolError) as exc_info:
            executor.execute(httpx.Request("PUT", URL), test_credentials)

        error = exc_info.value
        assert error.kind == ErrorKind.PROTOCOL
        assert str(error) == "Object not allowed"
        assert error.api_error.message == "Object not allowed"
        assert error.request_id == "req-42"
        assert error.status_code == status_code
        assert error.response.status_code == status_code
        assert provider.reports == [(Outcome.REJECT, test_credentials)]

    def test_request_id_is_optional(
        self, provider: RecordingCredentialProvider, test_credentials: Credentials
    ) -> None:
        executor = _executor(provider, status_code=404, content=b'{"message": "Not Found"}')

        with pytest.raises(ProtocolError) as exc_info:
            executor.execute(httpx.Request("GET", URL), test_credentials)

        assert exc_info.value.request_id is None
        assert exc_info.value.to_dict() == {
            "kind": "PROTOCOL",
            "message": "Not Found",
            "status_code": 404,
        }

    @pytest.mark.parametrize("content", [b"{}", b'{"request_id": "r"}'])
    def test_error_object_without_message_is_protocol_error(
        self,
        provider: RecordingCredentialProvider,
        test_credentials: Credentials,
        content: bytes,
    ) -> None:
        executor = _executor(provider, status_code=404, content=content)

        with pytest.raises(ProtocolError) as exc_info:
            executor.execute(httpx.Request("GET", URL), test_credentials)

        error = exc_info.value
        assert error.api_error.message == ""
        assert error.status_code == 404
        assert str(error) == "Request failed with status 404"
        assert provider.outcomes == [Outcome.REJECT]

    @pytest.mark.parametrize(
        "content",
        [b"<html>Bad Gateway</html>", b"", b"[1, 2]", b'{"message": null}'],
    )
    def test_malformed_error_body_raises_decode_error(
        self,
        provider: RecordingCredentialProvider,
        test_credentials: Credentials,
        content: bytes,
    ) -> None:
        executor = _executor(provider, status_code=502, content=content)

        with pytest.raises(ErrorResponseDecodeError) as exc_info:
            executor.execute(httpx.Request("GET", URL), test_credentials)

        error = exc_info.value
        assert not isinstance(error, ProtocolError)
        assert error.kind == ErrorKind.PROTOCOL
        assert error.status_code == 502
        assert provider.outcomes == [Outcome.REJECT]

    def test_streamed_error_response_is_closed(
        self, provider: RecordingCredentialProvider, test_credentials: Credentials
    ) -> None:
        executor = _executor(provider, status_code=401, content=b'{"message": "Unauthorized"}')

        with pytest.raises(ProtocolError) as exc_info:
            executor.execute(httpx.Request("GET", URL), test_credentials, stream=True)

        assert exc_info.value.response.is_closed
        assert str(exc_info.value) == "Unauthorized"
