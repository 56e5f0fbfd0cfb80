"""Git media client configuration.

Environment Variables:
    GIT_MEDIA_ENDPOINT: Absolute http(s) URL of the media endpoint (required
        unless passed explicitly).
    GIT_MEDIA_TIMEOUT_SECONDS: Request timeout in seconds (default: 30).
"""

from __future__ import annotations

import os
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gitmedia import __version__
from gitmedia.errors import ConfigError

GIT_MEDIA_ENDPOINT_ENV = "GIT_MEDIA_ENDPOINT"
GIT_MEDIA_TIMEOUT_ENV = "GIT_MEDIA_TIMEOUT_SECONDS"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = f"gitmedia-client/{__version__}"


class GitMediaConfig(BaseModel):
    """Explicit configuration passed to a GitMediaClient.

    Attributes:
        endpoint: Absolute URL objects are addressed under.
        timeout_seconds: httpx timeout applied to every request.
        user_agent: User-Agent header sent with every request.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str = Field(..., min_length=1)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1)

    @field_validator("endpoint")
    @classmethod
    def absolute_http_endpoint(cls, v: str) -> str:
        parts = urlsplit(v.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("endpoint must be an absolute http(s) URL")
        return v.strip()

    @classmethod
    def from_environment(cls, endpoint: str | None = None) -> GitMediaConfig:
        """Build configuration from the environment.

        Args:
            endpoint: Explicit endpoint overriding GIT_MEDIA_ENDPOINT.

        Raises:
            ConfigError: If the endpoint is missing or any value is invalid.
        """
        endpoint = endpoint or os.environ.get(GIT_MEDIA_ENDPOINT_ENV, "").strip()
        if not endpoint:
            raise ConfigError(f"No media endpoint configured (set {GIT_MEDIA_ENDPOINT_ENV})")

        timeout_raw = os.environ.get(GIT_MEDIA_TIMEOUT_ENV, "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
        except ValueError as exc:
            raise ConfigError(f"{GIT_MEDIA_TIMEOUT_ENV} must be a number: {timeout_raw!r}") from exc

        try:
            return cls(endpoint=endpoint, timeout_seconds=timeout)
        except ValidationError as exc:
            messages = "; ".join(str(error["msg"]) for error in exc.errors())
            raise ConfigError(f"Invalid media configuration: {messages}") from exc
