from __future__ import annotations

from collections.abc import Mapping
from typing import Any, BinaryIO, Protocol, Union

from bucketfs.config import WriteConfig
from bucketfs.models import (
    DeleteReport,
    Failure,
    Listing,
    ObjectEntry,
    ReadResult,
    RenameReport,
    StreamResult,
)

ConfigLike = Union[WriteConfig, Mapping[str, Any], None]


class FilesystemAdapter(Protocol):
    """Filesystem-style operations over a flat key space.

    Paths are relative to the adapter's prefix and use ``/`` as separator.
    Operations do not raise on backend errors: they return a falsy ``Failure``
    (or a falsy ``Listing`` / report carrying one).
    """

    def write(self, path: str, contents: bytes | str, config: ConfigLike = None) -> ObjectEntry | Failure:
        """Create or overwrite ``path`` with in-memory contents."""

    def write_stream(self, path: str, stream: BinaryIO, config: ConfigLike = None) -> ObjectEntry | Failure:
        """Create or overwrite ``path`` from a binary stream; the stream is closed afterwards."""

    def update(self, path: str, contents: bytes | str, config: ConfigLike = None) -> ObjectEntry | Failure:
        """Overwrite ``path`` (same semantics as ``write``)."""

    def update_stream(self, path: str, stream: BinaryIO, config: ConfigLike = None) -> ObjectEntry | Failure:
        """Overwrite ``path`` from a stream (same semantics as ``write_stream``)."""

    def rename(self, path: str, newpath: str) -> RenameReport:
        """Copy then delete. Not atomic."""

    def copy(self, path: str, newpath: str) -> bool | Failure:
        """Server-side copy within the bucket."""

    def delete(self, path: str) -> bool | Failure:
        """Delete a single object."""

    def delete_directory(self, dirname: str) -> DeleteReport:
        """Delete everything under ``dirname`` and its marker. Not atomic."""

    def create_directory(self, dirname: str, config: ConfigLike = None) -> ObjectEntry | Failure:
        """Create an empty ``dirname/`` marker object."""

    def list_contents(
        self, directory: str = "", recursive: bool = False, *, page_size: int | None = None
    ) -> Listing:
        """List entries with caller-relative paths."""

    def list_raw_contents(
        self, directory: str = "", recursive: bool = False, *, page_size: int | None = None
    ) -> Listing:
        """List entries with bucket keys exactly as stored."""

    def has(self, path: str) -> bool | Failure:
        """Return True when ``path`` exists."""

    def read(self, path: str) -> ReadResult | Failure:
        """Read the whole object into memory."""

    def read_stream(self, path: str) -> StreamResult | Failure:
        """Read the object into a rewound in-memory stream."""

    def get_metadata(self, path: str) -> ObjectEntry | Failure:
        """Return normalized object metadata."""

    def get_size(self, path: str) -> ObjectEntry | Failure:
        """Alias of ``get_metadata``."""

    def get_mimetype(self, path: str) -> ObjectEntry | Failure:
        """Alias of ``get_metadata``."""

    def get_timestamp(self, path: str) -> ObjectEntry | Failure:
        """Alias of ``get_metadata``."""

    def get_url(self, path: str) -> str | Failure:
        """Pre-signed GET URL valid for the default expiry."""

    def get_temporary_link(self, path: str, expire_seconds: int = 600) -> str | Failure:
        """Pre-signed GET URL valid for ``expire_seconds`` from now."""

    def get_visibility(self, path: str) -> str:
        """Raise ``VisibilityNotSupportedError`` where ACLs are not mapped."""

    def set_visibility(self, path: str, visibility: str) -> ObjectEntry:
        """Raise ``VisibilityNotSupportedError`` where ACLs are not mapped."""
