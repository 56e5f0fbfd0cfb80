"""Pytest configuration and fixtures for gitmedia tests.

This module provides common fixtures: a recording credential provider, a
client factory over httpx.MockTransport and a local object file.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from gitmedia.client import GitMediaClient
from gitmedia.config import GitMediaConfig
from gitmedia.models import Credentials
from tests.fakes import (
    TEST_ENDPOINT,
    TEST_OID,
    TEST_PASSWORD,
    TEST_USERNAME,
    ClientFactory,
    Handler,
    RecordingCredentialProvider,
    RecordingTransport,
)


@pytest.fixture
def test_credentials() -> Credentials:
    return Credentials(username=TEST_USERNAME, password=TEST_PASSWORD)


@pytest.fixture
def provider(test_credentials: Credentials) -> RecordingCredentialProvider:
    return RecordingCredentialProvider(test_credentials)


@pytest.fixture
def config() -> GitMediaConfig:
    return GitMediaConfig(endpoint=TEST_ENDPOINT)


@pytest.fixture
def make_client(config: GitMediaConfig, provider: RecordingCredentialProvider) -> ClientFactory:
    """Return a factory building a client over a recording mock transport."""

    def factory(handler: Handler) -> tuple[GitMediaClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        http_client = httpx.Client(transport=transport)
        return GitMediaClient(config, provider, http_client=http_client), transport

    return factory


@pytest.fixture
def object_file(tmp_path: Path) -> Path:
    """Create a local object file named after its oid."""
    path = tmp_path / TEST_OID
    path.write_bytes(b"large binary content\n" * 100)
    return path
