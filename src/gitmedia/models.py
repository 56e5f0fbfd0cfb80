"""Git media client data models.

Provides the credential and API error payload types shared by the request
builder, the transport executor and the credential providers.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class Outcome(StrEnum):
    """Outcome reported back to a credential provider after each request."""

    APPROVE = "approve"
    REJECT = "reject"


class Credentials(BaseModel):
    """Credentials resolved for a single object URL.

    Attributes:
        username: Account name sent in the Basic Authorization header.
        password: Secret sent in the Basic Authorization header.
        attributes: Extra fields returned by the provider (e.g. protocol,
            host, path) that must be echoed back when reporting an outcome.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr
    attributes: dict[str, str] = Field(default_factory=dict)

    @field_validator("username")
    @classmethod
    def no_empty_username(cls, v: str) -> str:
        if not v:
            raise ValueError("username cannot be empty")
        return v


class ApiError(BaseModel):
    """Error document returned by the media server for any status > 299.

    Both fields are optional; a JSON object without them still decodes.
    """

    model_config = ConfigDict(frozen=True)

    message: str = ""
    request_id: str | None = None

    def __str__(self) -> str:
        return self.message
