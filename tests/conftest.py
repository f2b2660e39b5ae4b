from __future__ import annotations

import pytest

from metacheck.fetch import RemoteFetcher
from tests._fixtures.transport import RecordingTransport


@pytest.fixture
def transport() -> RecordingTransport:
    """Provide a transport that answers every request with the Storage source."""
    return RecordingTransport()


@pytest.fixture
def fetcher(transport: RecordingTransport) -> RemoteFetcher:
    return RemoteFetcher(ipfs_gateway="https://gateway.test/ipfs/", transport=transport)
