"""Git media client.

Transfers large binary objects, addressed by oid, between a repository and a
git media object store over HTTP.
"""

__version__ = "0.1.0"

from gitmedia.client import GitMediaClient  # noqa: E402
from gitmedia.config import GitMediaConfig  # noqa: E402
from gitmedia.credentials import (  # noqa: E402
    CredentialProvider,
    GitCredentialHelper,
    StaticCredentialProvider,
)
from gitmedia.errors import (  # noqa: E402
    ConfigError,
    CredentialError,
    EnvelopeError,
    ErrorKind,
    ErrorResponseDecodeError,
    GitMediaError,
    InvalidObjectIdError,
    LocalFileError,
    ProtocolError,
    TransportError,
)
from gitmedia.models import ApiError, Credentials, Outcome  # noqa: E402

__all__ = [
    "ApiError",
    "ConfigError",
    "CredentialError",
    "CredentialProvider",
    "Credentials",
    "EnvelopeError",
    "ErrorKind",
    "ErrorResponseDecodeError",
    "GitCredentialHelper",
    "GitMediaClient",
    "GitMediaConfig",
    "GitMediaError",
    "InvalidObjectIdError",
    "LocalFileError",
    "Outcome",
    "ProtocolError",
    "StaticCredentialProvider",
    "TransportError",
    "__version__",
]
