from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from os import PathLike
from typing import Any, BinaryIO, Protocol


@dataclass(frozen=True)
class ObjectHead:
    """Response metadata for a single object (HEAD / PUT / GET)."""

    content_length: int | None = None
    content_type: str | None = None
    etag: str | None = None
    content_md5: str | None = None
    date: datetime | None = None
    last_modified: datetime | None = None
    user_metadata: Mapping[str, str] | None = None


@dataclass(frozen=True)
class ObjectSummary:
    key: str
    size: int | None = None
    last_modified: datetime | None = None
    etag: str | None = None


@dataclass(frozen=True)
class ListPage:
    """One page of a delimiter/marker listing."""

    contents: list[ObjectSummary] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False
    next_marker: str | None = None


class ObjectStorageClient(Protocol):
    """Object storage operations the adapter relies on.

    Keys are raw bucket keys; the adapter applies its path prefix before calling.
    ``options`` carries the keys produced by ``WriteConfig.to_options()``.
    Implementations raise on failure (botocore ``ClientError`` or transport errors).
    """

    def put_object_from_string(
        self, bucket: str, key: str, data: bytes | str, options: Mapping[str, Any] | None = None
    ) -> ObjectHead:
        """Upload an in-memory payload."""

    def put_object_from_file(
        self,
        bucket: str,
        key: str,
        file_path: str | PathLike[str],
        options: Mapping[str, Any] | None = None,
    ) -> ObjectHead:
        """Upload a local file."""

    def put_object(
        self,
        bucket: str,
        key: str,
        data: BinaryIO,
        content_length: int,
        content_md5: str,
        options: Mapping[str, Any] | None = None,
    ) -> ObjectHead:
        """Upload ``content_length`` bytes read from ``data``."""

    def copy_object(self, source_bucket: str, source_key: str, dest_bucket: str, dest_key: str) -> None:
        """Server-side copy."""

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete one key."""

    def list_objects(
        self,
        bucket: str,
        *,
        prefix: str = "",
        delimiter: str = "",
        marker: str = "",
        max_keys: int | None = None,
    ) -> ListPage:
        """Return one listing page starting after ``marker``."""

    def get_object_metadata(self, bucket: str, key: str) -> ObjectHead:
        """HEAD the key."""

    def get_object_as_bytes(self, bucket: str, key: str) -> bytes:
        """Read the whole object."""

    def get_object_to_stream(self, bucket: str, key: str, stream: BinaryIO) -> ObjectHead:
        """Write the object body into ``stream``."""

    def generate_presigned_url(
        self, bucket: str, key: str, *, timestamp: datetime, expiration_in_seconds: int
    ) -> str:
        """Return a GET URL valid for ``expiration_in_seconds`` from ``timestamp``."""
