from __future__ import annotations

import enum
import io
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, overload

from bucketfs.errors import ErrorKind


class EntryType(str, enum.Enum):
    FILE = "file"
    DIRECTORY = "dir"


@dataclass(frozen=True)
class ObjectEntry:
    """Normalized view of one object or implicit directory."""

    path: str
    type: EntryType
    size: int | None = None
    timestamp: int | None = None
    etag: str | None = None
    mimetype: str | None = None
    content_md5: str | None = None
    user_metadata: Mapping[str, str] | None = None

    @property
    def is_dir(self) -> bool:
        return self.type is EntryType.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"path": self.path, "type": self.type.value}
        for name in ("size", "timestamp", "etag", "mimetype", "content_md5"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.user_metadata is not None:
            payload["user_metadata"] = dict(self.user_metadata)
        return payload


@dataclass(frozen=True)
class Failure:
    """Uniform failure value returned instead of raising.

    Always falsy, so ``if adapter.delete(path):`` keeps working, while ``kind``
    lets callers tell a missing object from a throttled request.
    """

    kind: ErrorKind
    operation: str
    path: str | None = None
    message: str = ""
    cause: BaseException | None = field(default=None, compare=False, repr=False)

    def __bool__(self) -> bool:
        return False

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    @property
    def is_retryable(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT


@dataclass(frozen=True)
class ReadResult:
    path: str
    contents: bytes


@dataclass(frozen=True)
class StreamResult:
    """Object content in a rewound in-memory stream; the caller owns ``stream``."""

    path: str
    stream: io.BytesIO


class Listing(Sequence[ObjectEntry]):
    """Ordered listing result.

    A failed listing holds no entries, is falsy, and exposes the ``failure``.
    An empty but successful listing is also falsy; check ``ok`` to tell them apart.
    """

    __slots__ = ("_entries", "failure")

    def __init__(self, entries: Sequence[ObjectEntry] = (), failure: Failure | None = None):
        self._entries = tuple(entries) if failure is None else ()
        self.failure = failure

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def paths(self) -> list[str]:
        return [entry.path for entry in self._entries]

    @overload
    def __getitem__(self, index: int) -> ObjectEntry: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[ObjectEntry, ...]: ...

    def __getitem__(self, index):  # noqa: ANN001
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ObjectEntry]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Listing):
            return self._entries == other._entries and self.failure == other.failure
        if isinstance(other, (list, tuple)):
            return list(self._entries) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        if self.failure is not None:
            return f"Listing(failure={self.failure!r})"
        return f"Listing({list(self._entries)!r})"


@dataclass(frozen=True)
class DeleteReport:
    """Best-effort outcome of a directory delete. Nothing is rolled back."""

    directory: str
    deleted: tuple[str, ...] = ()
    not_attempted: tuple[str, ...] = ()
    failure: Failure | None = None

    def __bool__(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class RenameReport:
    """Outcome of copy-then-delete.

    ``copied and not source_deleted`` means both objects now exist.
    """

    path: str
    newpath: str
    copied: bool = False
    source_deleted: bool = False
    failure: Failure | None = None

    def __bool__(self) -> bool:
        return self.failure is None and self.copied and self.source_deleted
