"""Git media object transfer client.

Implements the three protocol verbs against ``<endpoint>/objects/<oid>``:

- options (OPTIONS): probe the server for an object that exists locally
- put (PUT): upload a local object
- get (GET): download an object, short-circuiting to the local file when
  one with the same name exists

Every request is authenticated through a CredentialProvider, which is told
after the response whether the credentials were accepted.
"""

from __future__ import annotations

import base64
import logging
import os
from collections.abc import Mapping
from typing import Any, BinaryIO

import httpx

from gitmedia.config import GitMediaConfig
from gitmedia.credentials import CredentialProvider
from gitmedia.envelope import (
    GIT_MEDIA_META_TYPE,
    GIT_MEDIA_TYPE,
    open_response_body,
    validate_media_header,
)
from gitmedia.errors import CredentialError, EnvelopeError, LocalFileError
from gitmedia.models import Credentials
from gitmedia.progress import ProgressCallback, ProgressReader
from gitmedia.tracing import traced_operation
from gitmedia.transport import TransportExecutor
from gitmedia.urls import derive_oid, object_url, sanitize_url

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]


def basic_authorization(credentials: Credentials) -> str:
    """Encode credentials as a Basic Authorization header value."""
    token = f"{credentials.username}:{credentials.password.get_secret_value()}"
    return "Basic " + base64.b64encode(token.encode("utf-8")).decode("ascii")


class GitMediaClient:
    """Client for a git media object store.

    The client owns its httpx.Client unless one is injected; use it as a
    context manager or call close() when done.
    """

    def __init__(
        self,
        config: GitMediaConfig,
        credential_provider: CredentialProvider,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Endpoint and transport settings.
            credential_provider: Source of per-URL credentials.
            http_client: Optional httpx.Client for dependency injection (testing).
        """
        self._config = config
        self._credential_provider = credential_provider
        self._owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(timeout=config.timeout_seconds, follow_redirects=True)
        self._http_client = http_client
        self._executor = TransportExecutor(http_client, credential_provider)

    @property
    def config(self) -> GitMediaConfig:
        return self._config

    def close(self) -> None:
        if self._owns_http_client:
            self._http_client.close()

    def __enter__(self) -> GitMediaClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def object_url(self, oid: str) -> str:
        return object_url(self._config.endpoint, oid)

    def build_request(
        self,
        method: str,
        oid: str,
        *,
        headers: Mapping[str, str] | None = None,
        content: Any = None,
    ) -> tuple[httpx.Request, Credentials | None]:
        """Build an authenticated request for ``oid``.

        Credentials are resolved before the request is built; Authorization
        is set only when the provider returned credentials.

        Returns:
            The request and the credentials used (None if anonymous).

        Raises:
            CredentialError: If the credential provider fails.
        """
        url = self.object_url(oid)
        try:
            credentials = self._credential_provider.resolve(url)
        except CredentialError as exc:
            if exc.oid is None:
                exc.oid = oid
            raise

        request_headers = {"User-Agent": self._config.user_agent}
        if headers:
            request_headers.update(headers)
        if credentials is not None:
            request_headers["Authorization"] = basic_authorization(credentials)

        request = self._http_client.build_request(
            method, url, headers=request_headers, content=content
        )
        return request, credentials

    @traced_operation("options")
    def options(self, path: PathLike) -> None:
        """Probe the server for the object stored at ``path``.

        Raises:
            LocalFileError: If the local file does not exist (no request is sent).
            GitMediaError: On credential, transport or protocol failure.
        """
        oid = derive_oid(path)
        self._stat(path, oid)

        request, credentials = self.build_request("OPTIONS", oid)
        self._executor.execute(request, credentials, oid=oid)

    @traced_operation("put")
    def put(
        self,
        path: PathLike,
        display_name: str | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Upload the object stored at ``path``.

        Args:
            path: Local object file; its base name is the oid.
            display_name: Name used in log output (defaults to ``path``).
            progress: Optional ``callback(bytes_read, total)`` observer.

        Raises:
            LocalFileError: If the local file is missing or unreadable.
            GitMediaError: On credential, transport or protocol failure.
        """
        oid = derive_oid(path)
        size = self._stat(path, oid).st_size

        try:
            file = open(path, "rb")  # noqa: SIM115
        except OSError as exc:
            raise LocalFileError(
                f"Cannot open object {oid}: {exc.strerror or exc}", oid=oid, path=os.fspath(path)
            ) from exc

        with file:
            body = ProgressReader(file, size, progress)
            request, credentials = self.build_request(
                "PUT",
                oid,
                headers={
                    "Content-Type": GIT_MEDIA_TYPE,
                    "Accept": GIT_MEDIA_META_TYPE,
                    "Content-Length": str(size),
                },
                content=body,
            )
            logger.info("Sending %s", display_name or os.fspath(path))
            response = self._executor.execute(request, credentials, oid=oid)

        logger.debug("PUT %s -> %d (%d bytes)", oid, response.status_code, body.bytes_read)

    @traced_operation("get")
    def get(self, path: PathLike) -> BinaryIO:
        """Open the object named by ``path`` for reading.

        If a local file exists at ``path`` it is returned directly without a
        network call and without verifying its content. Otherwise the object
        is downloaded and the returned stream starts after the envelope
        boundary. The caller must close the returned stream.

        Raises:
            LocalFileError: If a local file exists but cannot be opened.
            EnvelopeError: If the response is not a valid media envelope.
            TransportError: If the connection fails while reading the body.
            GitMediaError: On credential, transport or protocol failure.
        """
        oid = derive_oid(path)
        if os.path.exists(path):
            logger.debug("Object %s found locally", oid)
            try:
                return open(path, "rb")  # noqa: SIM115
            except OSError as exc:
                raise LocalFileError(
                    f"Cannot open object {oid}: {exc.strerror or exc}",
                    oid=oid,
                    path=os.fspath(path),
                ) from exc

        request, credentials = self.build_request("GET", oid, headers={"Accept": GIT_MEDIA_TYPE})
        response = self._executor.execute(request, credentials, oid=oid, stream=True)

        content_type = response.headers.get("Content-Type")
        if not content_type:
            response.close()
            raise EnvelopeError("Invalid Content-Type", oid=oid)

        body = open_response_body(response, oid=oid)
        try:
            validate_media_header(content_type, body, oid=oid)
        except EnvelopeError:
            body.close()
            logger.warning("Rejected download of %s from %s", oid, sanitize_url(self.object_url(oid)))
            raise
        except BaseException:
            body.close()
            raise
        return body

    @staticmethod
    def _stat(path: PathLike, oid: str) -> os.stat_result:
        try:
            return os.stat(path)
        except OSError as exc:
            raise LocalFileError(
                f"Object {oid} not found locally: {exc.strerror or exc}",
                oid=oid,
                path=os.fspath(path),
            ) from exc
