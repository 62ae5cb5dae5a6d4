"""Test doubles for code that talks to ``ObjectStorageClient``."""

from bucketfs.testing.memory_client import InMemoryObjectClient, StoredObject, StoreOp, client_error

__all__ = ["InMemoryObjectClient", "StoreOp", "StoredObject", "client_error"]
