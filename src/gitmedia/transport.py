"""Transport executor for git media requests.

Sends a built request, classifies the outcome and reports it to the
credential provider before returning:

- transport failure (no response): approve, raise TransportError
- status <= 299: approve, return the response
- status > 299: reject, decode the JSON error body, raise ProtocolError
  (or ErrorResponseDecodeError when the body is not an error document)

Security:
    - Authorization headers and credentials are never logged
    - Logged URLs have userinfo and querystring stripped
"""

from __future__ import annotations

import logging
from typing import NoReturn

import httpx
from pydantic import ValidationError

from gitmedia.credentials import CredentialProvider
from gitmedia.errors import ErrorResponseDecodeError, ProtocolError, TransportError
from gitmedia.models import ApiError, Credentials, Outcome
from gitmedia.urls import sanitize_url

logger = logging.getLogger(__name__)

MAX_SUCCESS_STATUS = 299


class TransportExecutor:
    """Executes requests and drives credential approve/reject reporting."""

    def __init__(self, http_client: httpx.Client, credential_provider: CredentialProvider) -> None:
        """Initialize the executor.

        Args:
            http_client: httpx.Client used to send requests.
            credential_provider: Provider notified of each outcome.
        """
        self._http_client = http_client
        self._credential_provider = credential_provider

    def execute(
        self,
        request: httpx.Request,
        credentials: Credentials | None,
        *,
        oid: str | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        """Send ``request`` and return the successful response.

        Args:
            request: Request built by the client.
            credentials: Credentials used for the request (None if anonymous).
            oid: Object identifier, attached to raised errors.
            stream: If True the body is left unread; the caller must close it.

        Returns:
            Response with status <= 299.

        Raises:
            TransportError: If no response was received.
            ProtocolError: If the server returned an error document.
            ErrorResponseDecodeError: If the error body could not be decoded.
        """
        safe_url = sanitize_url(str(request.url))
        try:
            response = self._http_client.send(request, stream=stream)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", request.method, safe_url, type(exc).__name__)
            self._report(Outcome.APPROVE, credentials)
            raise TransportError(
                f"{request.method} {safe_url} failed: {exc}", oid=oid, cause=exc
            ) from exc

        logger.debug("%s %s -> %d", request.method, safe_url, response.status_code)

        if response.status_code <= MAX_SUCCESS_STATUS:
            self._report(Outcome.APPROVE, credentials)
            return response

        self._report(Outcome.REJECT, credentials)
        self._raise_error_response(response, oid=oid)

    def _report(self, outcome: Outcome, credentials: Credentials | None) -> None:
        if credentials is None:
            return
        self._credential_provider.report(outcome, credentials)

    @staticmethod
    def _raise_error_response(response: httpx.Response, *, oid: str | None) -> NoReturn:
        """Read and decode the error body of a response with status > 299."""
        status = response.status_code
        try:
            body = response.read()
        except httpx.HTTPError as exc:
            raise ErrorResponseDecodeError(
                f"Failed to read error response (status {status}): {exc}",
                response=response,
                oid=oid,
            ) from exc
        finally:
            response.close()

        try:
            api_error = ApiError.model_validate_json(body)
        except ValidationError as exc:
            logger.warning("Undecodable error response (status %d, %d bytes)", status, len(body))
            raise ErrorResponseDecodeError(
                f"Invalid error response (status {status}): "
                f"{exc.error_count()} validation error(s)",
                response=response,
                oid=oid,
            ) from exc

        logger.info(
            "Server rejected request (status %d, request_id=%s): %s",
            status,
            api_error.request_id,
            api_error.message,
        )
        raise ProtocolError(api_error, response=response, oid=oid)
