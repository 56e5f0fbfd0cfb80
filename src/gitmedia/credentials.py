"""Credential providers for the git media client.

A credential provider resolves credentials for an object URL before each
request and is told afterwards whether they worked:

- approve: the request completed with status <= 299, or failed at the
  transport level (not attributable to the credentials)
- reject: the server answered with status > 299

Providers:
- GitCredentialHelper: delegates to ``git credential fill|approve|reject``
- StaticCredentialProvider: fixed username/password (e.g. from environment)
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit

from gitmedia.errors import CredentialError
from gitmedia.models import Credentials, Outcome
from gitmedia.urls import sanitize_url

logger = logging.getLogger(__name__)

DEFAULT_GIT_EXECUTABLE = "git"

_RESERVED_KEYS = frozenset({"username", "password"})


@runtime_checkable
class CredentialProvider(Protocol):
    """Pluggable source of per-URL credentials."""

    def resolve(self, url: str) -> Credentials | None:
        """Resolve credentials for ``url``.

        Returns:
            Credentials, or None to send the request without authorization.

        Raises:
            CredentialError: If the provider fails.
        """
        ...

    def report(self, outcome: Outcome, credentials: Credentials) -> None:
        """Report whether ``credentials`` were accepted by the server."""
        ...


class StaticCredentialProvider:
    """Provider returning the same credentials for every URL."""

    def __init__(self, username: str, password: str) -> None:
        self._credentials = Credentials(username=username, password=password)

    def resolve(self, url: str) -> Credentials | None:
        return self._credentials

    def report(self, outcome: Outcome, credentials: Credentials) -> None:
        logger.debug("Static credentials for %s: %s", credentials.username, outcome)


def _encode_fields(fields: Mapping[str, str]) -> str:
    """Encode fields in the git credential line protocol."""
    lines = []
    for key, value in fields.items():
        if "\n" in value or "\x00" in value:
            raise CredentialError(f"Credential field {key!r} contains an illegal character")
        lines.append(f"{key}={value}\n")
    return "".join(lines) + "\n"


def _decode_fields(output: str) -> dict[str, str]:
    """Parse ``key=value`` lines from git credential output."""
    fields: dict[str, str] = {}
    for line in output.splitlines():
        if not line:
            break
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        fields[key] = value
    return fields


class GitCredentialHelper:
    """Credential provider backed by ``git credential``.

    ``fill`` is run with the protocol, host and path of the object URL;
    ``approve``/``reject`` are run with the fields returned by ``fill`` so the
    configured helper can store or evict them.
    """

    def __init__(
        self,
        git_executable: str = DEFAULT_GIT_EXECUTABLE,
        runner: Callable[..., subprocess.CompletedProcess[str]] = subprocess.run,
    ) -> None:
        """Initialize the helper.

        Args:
            git_executable: git binary to invoke.
            runner: subprocess.run-compatible callable (injectable for tests).
        """
        self._git = git_executable
        self._runner = runner

    def resolve(self, url: str) -> Credentials | None:
        parts = urlsplit(url)
        host = parts.hostname or ""
        if parts.port:
            host = f"{host}:{parts.port}"
        query = {
            "protocol": parts.scheme,
            "host": host,
            "path": parts.path.lstrip("/"),
        }

        output = self._run("fill", query)
        fields = _decode_fields(output)

        username = fields.get("username")
        password = fields.get("password")
        if not username or password is None:
            raise CredentialError(f"Incomplete credentials returned for {sanitize_url(url)}")

        attributes = {k: v for k, v in fields.items() if k not in _RESERVED_KEYS}
        return Credentials(username=username, password=password, attributes=attributes)

    def report(self, outcome: Outcome, credentials: Credentials) -> None:
        fields = dict(credentials.attributes)
        fields["username"] = credentials.username
        fields["password"] = credentials.password.get_secret_value()
        try:
            self._run(str(outcome), fields)
        except CredentialError as exc:
            logger.warning("git credential %s failed: %s", outcome, exc)

    def _run(self, action: str, fields: Mapping[str, str]) -> str:
        """Run ``git credential <action>`` feeding ``fields`` on stdin."""
        command = [self._git, "credential", action]
        kwargs: dict[str, Any] = {
            "input": _encode_fields(fields),
            "capture_output": True,
            "text": True,
            "check": True,
        }
        try:
            result = self._runner(command, **kwargs)
        except FileNotFoundError as exc:
            raise CredentialError(f"git executable not found: {self._git}") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise CredentialError(
                f"git credential {action} exited with status {exc.returncode}: {stderr}"
            ) from exc
        return result.stdout or ""
