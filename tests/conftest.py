"""Shared fixtures: an in-memory client and an adapter rooted at ``root/``."""

from __future__ import annotations

import pytest

from bucketfs.adapter import StorageAdapter
from bucketfs.testing.memory_client import InMemoryObjectClient


@pytest.fixture
def client() -> InMemoryObjectClient:
    return InMemoryObjectClient()


@pytest.fixture
def adapter(client: InMemoryObjectClient) -> StorageAdapter:
    return StorageAdapter(client, "bucket", prefix="root")
