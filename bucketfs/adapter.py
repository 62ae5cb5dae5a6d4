from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Any, BinaryIO

from bucketfs.client.base import ListPage, ObjectHead, ObjectStorageClient, ObjectSummary
from bucketfs.client.boto3_client import Boto3ObjectClient
from bucketfs.config import (
    AdapterSettings,
    build_s3_connection_config_from_env,
    coerce_write_config,
)
from bucketfs.errors import (
    BucketFSError,
    ConfigurationError,
    VisibilityNotSupportedError,
    classify_exception,
)
from bucketfs.filesystem import ConfigLike, FilesystemAdapter
from bucketfs.io.keys import SEPARATOR, PathPrefixer, directory_key, is_directory_key, strip_slashes
from bucketfs.io.streams import backing_file, ensure_seekable, is_stream, md5_from_stream, stream_size
from bucketfs.models import (
    DeleteReport,
    EntryType,
    Failure,
    Listing,
    ObjectEntry,
    ReadResult,
    RenameReport,
    StreamResult,
)
from bucketfs.observability import failure_log_fields, log_event

logger = logging.getLogger(__name__)

DEFAULT_LINK_EXPIRY = 600

_DIRECTORY_SKIPPED_OPTIONS = ("content_length", "content_md5", "content_sha256")


def _epoch(moment: datetime | None) -> int | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


class StorageAdapter(FilesystemAdapter):
    """Filesystem-style adapter over an ``ObjectStorageClient``.

    The client is borrowed, not owned: the adapter never closes it. Every
    public operation applies the path prefix once before calling the client
    and removes it from paths handed back. Client exceptions are logged at
    DEBUG and returned as falsy ``Failure`` values; nothing is retried.

    ``set_bucket`` is not synchronized; callers must not switch buckets while
    other threads have operations in flight.
    """

    def __init__(self, client: ObjectStorageClient, bucket: str, prefix: str = "") -> None:
        if not (bucket or "").strip():
            raise ConfigurationError("bucket is required")
        self._client = client
        self._bucket = bucket.strip()
        self._prefixer = PathPrefixer(prefix)

    @classmethod
    def from_env(
        cls, env: Mapping[str, str] | None = None, *, client: ObjectStorageClient | None = None
    ) -> StorageAdapter:
        """Build an adapter from ``S3_*`` / ``BUCKETFS_*`` environment variables."""

        settings = AdapterSettings.from_env(env)
        if client is None:
            client = Boto3ObjectClient.from_config(build_s3_connection_config_from_env(env))
        return cls(client, settings.bucket, settings.path_prefix)

    @property
    def client(self) -> ObjectStorageClient:
        return self._client

    @property
    def bucket(self) -> str:
        return self._bucket

    def set_bucket(self, bucket: str | None = None) -> None:
        """Switch the target bucket. Empty values are ignored."""

        if bucket and bucket.strip():
            self._bucket = bucket.strip()

    @property
    def path_prefix(self) -> str:
        return self._prefixer.prefix

    def set_path_prefix(self, prefix: str) -> None:
        self._prefixer = PathPrefixer(prefix)

    def apply_prefix(self, path: str) -> str:
        return self._prefixer.apply_prefix(path)

    def remove_prefix(self, key: str) -> str:
        return self._prefixer.remove_prefix(key)

    def _fail(self, operation: str, path: str | None, exc: BaseException) -> Failure:
        failure = Failure(
            kind=classify_exception(exc),
            operation=operation,
            path=path,
            message=f"{type(exc).__name__}: {exc}",
            cause=exc,
        )
        log_event(
            logger,
            f"adapter.{operation}.failed",
            level=logging.DEBUG,
            bucket=self._bucket,
            **failure_log_fields(failure),
        )
        return failure

    def _normalize(self, head: ObjectHead | None, key: str) -> ObjectEntry:
        path = self.remove_prefix(key)
        timestamp = None
        if head is not None:
            timestamp = _epoch(head.last_modified) or _epoch(head.date)

        if is_directory_key(path):
            return ObjectEntry(path=path.rstrip(SEPARATOR), type=EntryType.DIRECTORY, timestamp=timestamp)
        if head is None:
            return ObjectEntry(path=path, type=EntryType.FILE)
        return ObjectEntry(
            path=path,
            type=EntryType.FILE,
            size=head.content_length,
            timestamp=timestamp,
            etag=head.etag,
            mimetype=head.content_type,
            content_md5=head.content_md5,
            user_metadata=head.user_metadata,
        )

    # -- uploads ---------------------------------------------------------------

    def write(self, path: str, contents: bytes | str, config: ConfigLike = None) -> ObjectEntry | Failure:
        return self._upload("write", path, contents, config)

    def write_stream(self, path: str, stream: BinaryIO, config: ConfigLike = None) -> ObjectEntry | Failure:
        return self._upload("write_stream", path, stream, config)

    def update(self, path: str, contents: bytes | str, config: ConfigLike = None) -> ObjectEntry | Failure:
        return self._upload("update", path, contents, config)

    def update_stream(self, path: str, stream: BinaryIO, config: ConfigLike = None) -> ObjectEntry | Failure:
        return self._upload("update_stream", path, stream, config)

    def _upload(self, operation: str, path: str, contents: Any, config: ConfigLike) -> ObjectEntry | Failure:
        key = self.apply_prefix(path)
        with ExitStack() as stack:
            if is_stream(contents) and callable(getattr(contents, "close", None)):
                stack.callback(contents.close)
            try:
                options = coerce_write_config(config).to_options()
                head = self._dispatch_upload(key, contents, options, stack)
            except Exception as exc:  # noqa: BLE001
                return self._fail(operation, path, exc)

        entry = self._normalize(head, key)
        log_event(logger, f"adapter.{operation}", level=logging.DEBUG, bucket=self._bucket, path=entry.path)
        return entry

    def _dispatch_upload(
        self, key: str, contents: Any, options: dict[str, Any], stack: ExitStack
    ) -> ObjectHead:
        if isinstance(contents, (bytes, bytearray, memoryview)):
            return self._client.put_object_from_string(self._bucket, key, bytes(contents), options)
        if isinstance(contents, str):
            return self._client.put_object_from_string(self._bucket, key, contents, options)
        if not is_stream(contents):
            raise TypeError(f"contents must be bytes, str or a binary stream, got {type(contents).__name__}")

        file_path = backing_file(contents)
        if file_path is not None and "content_length" not in options:
            return self._client.put_object_from_file(self._bucket, key, file_path, options)

        stream = ensure_seekable(contents)
        if stream is not contents:
            stack.callback(stream.close)

        content_length = options.pop("content_length", None)
        if content_length is None:
            content_length = stream_size(stream)
        content_md5 = options.pop("content_md5", None)
        if content_md5 is None:
            content_md5 = md5_from_stream(stream, content_length)
        return self._client.put_object(self._bucket, key, stream, content_length, content_md5, options)

    # -- copy / delete -----------------------------------------------------------

    def copy(self, path: str, newpath: str) -> bool | Failure:
        try:
            self._client.copy_object(
                self._bucket, self.apply_prefix(path), self._bucket, self.apply_prefix(newpath)
            )
        except Exception as exc:  # noqa: BLE001
            return self._fail("copy", path, exc)
        return True

    def rename(self, path: str, newpath: str) -> RenameReport:
        copied = self.copy(path, newpath)
        if isinstance(copied, Failure):
            return RenameReport(path=path, newpath=newpath, failure=copied)

        deleted = self.delete(path)
        if isinstance(deleted, Failure):
            log_event(
                logger,
                "adapter.rename.partial",
                level=logging.WARNING,
                bucket=self._bucket,
                path=path,
                newpath=newpath,
            )
            return RenameReport(path=path, newpath=newpath, copied=True, failure=deleted)
        log_event(logger, "adapter.rename", bucket=self._bucket, path=path, newpath=newpath)
        return RenameReport(path=path, newpath=newpath, copied=True, source_deleted=True)

    def delete(self, path: str) -> bool | Failure:
        try:
            self._client.delete_object(self._bucket, self.apply_prefix(path))
        except Exception as exc:  # noqa: BLE001
            return self._fail("delete", path, exc)
        return True

    def delete_directory(self, dirname: str) -> DeleteReport:
        """Delete every key under ``dirname/`` in listing order, then the marker.

        Best-effort: the first failed delete stops the run, earlier deletes stay
        deleted, and the report lists what was and was not attempted.
        """

        if not strip_slashes(dirname or ""):
            failure = self._fail(
                "delete_directory", dirname, ValueError("refusing to delete the root directory")
            )
            return DeleteReport(directory=dirname, failure=failure)

        listing = self.list_raw_contents(dirname, recursive=True)
        if listing.failure is not None:
            return DeleteReport(directory=dirname, failure=listing.failure)

        keys = [entry.path for entry in listing]
        keys.append(directory_key(self.apply_prefix(dirname)))

        deleted: list[str] = []
        for index, key in enumerate(keys):
            try:
                self._client.delete_object(self._bucket, key)
            except Exception as exc:  # noqa: BLE001
                failure = self._fail("delete_directory", self.remove_prefix(key), exc)
                return DeleteReport(
                    directory=dirname,
                    deleted=tuple(deleted),
                    not_attempted=tuple(self.remove_prefix(k) for k in keys[index + 1 :]),
                    failure=failure,
                )
            deleted.append(self.remove_prefix(key))

        log_event(logger, "adapter.delete_directory", bucket=self._bucket, path=dirname, deleted=len(deleted))
        return DeleteReport(directory=dirname, deleted=tuple(deleted))

    # -- listing ---------------------------------------------------------------

    def list_contents(
        self, directory: str = "", recursive: bool = False, *, page_size: int | None = None
    ) -> Listing:
        """List ``directory`` with paths relative to the adapter prefix.

        Directory entries (common prefixes and ``/``-terminated marker keys) are
        returned without the trailing separator, matching ``get_metadata``.
        """

        return self._list("list_contents", directory, recursive, page_size, strip=True)

    def list_raw_contents(
        self, directory: str = "", recursive: bool = False, *, page_size: int | None = None
    ) -> Listing:
        """List ``directory`` returning bucket keys exactly as stored.

        Paths keep the adapter prefix and directory keys keep their trailing
        separator, so they can be passed straight back to the client.
        """

        return self._list("list_raw_contents", directory, recursive, page_size, strip=False)

    def _list(
        self, operation: str, directory: str, recursive: bool, page_size: int | None, *, strip: bool
    ) -> Listing:
        prefix = self._prefixer.directory_prefix(directory)
        delimiter = "" if recursive else SEPARATOR
        entries: list[ObjectEntry] = []
        marker = ""
        pages = 0
        try:
            while True:
                page = self._client.list_objects(
                    self._bucket, prefix=prefix, delimiter=delimiter, marker=marker, max_keys=page_size
                )
                pages += 1
                for obj in page.contents:
                    if obj.key == prefix:
                        continue
                    entries.append(self._listing_entry(obj, strip=strip))
                for common_prefix in page.common_prefixes:
                    entries.append(self._listing_entry(ObjectSummary(key=common_prefix), strip=strip))
                if not page.is_truncated:
                    break
                marker = self._next_marker(page, marker)
        except Exception as exc:  # noqa: BLE001
            return Listing(failure=self._fail(operation, directory, exc))

        log_event(
            logger,
            f"adapter.{operation}",
            level=logging.DEBUG,
            bucket=self._bucket,
            prefix=prefix,
            recursive=recursive,
            pages=pages,
            entries=len(entries),
        )
        return Listing(entries)

    @staticmethod
    def _next_marker(page: ListPage, current: str) -> str:
        candidates = [obj.key for obj in page.contents] + list(page.common_prefixes)
        marker = page.next_marker or (max(candidates) if candidates else "")
        if not marker or marker <= current:
            raise BucketFSError("truncated listing page did not advance the marker")
        return marker

    def _listing_entry(self, obj: ObjectSummary, *, strip: bool) -> ObjectEntry:
        path = self.remove_prefix(obj.key) if strip else obj.key
        timestamp = _epoch(obj.last_modified)
        if is_directory_key(obj.key):
            if strip:
                path = path.rstrip(SEPARATOR)
            return ObjectEntry(path=path, type=EntryType.DIRECTORY, timestamp=timestamp)
        return ObjectEntry(
            path=path,
            type=EntryType.FILE,
            size=obj.size,
            timestamp=timestamp,
            etag=obj.etag,
        )

    # -- directories -------------------------------------------------------------

    def create_directory(self, dirname: str, config: ConfigLike = None) -> ObjectEntry | Failure:
        key = directory_key(self.apply_prefix(dirname))
        try:
            if not strip_slashes(dirname or ""):
                raise ValueError("dirname is required")
            options = coerce_write_config(config).to_options()
            for name in _DIRECTORY_SKIPPED_OPTIONS:
                options.pop(name, None)
            head = self._client.put_object_from_string(self._bucket, key, b"", options)
        except Exception as exc:  # noqa: BLE001
            return self._fail("create_directory", dirname, exc)
        return self._normalize(head, key)

    # -- reads and metadata ------------------------------------------------------

    def has(self, path: str) -> bool | Failure:
        try:
            self._client.get_object_metadata(self._bucket, self.apply_prefix(path))
        except Exception as exc:  # noqa: BLE001
            return self._fail("has", path, exc)
        return True

    def read(self, path: str) -> ReadResult | Failure:
        key = self.apply_prefix(path)
        try:
            contents = self._client.get_object_as_bytes(self._bucket, key)
        except Exception as exc:  # noqa: BLE001
            return self._fail("read", path, exc)
        return ReadResult(path=self.remove_prefix(key), contents=contents)

    def read_stream(self, path: str) -> StreamResult | Failure:
        """Read into a fresh ``BytesIO`` owned by the caller on success.

        Response metadata from the read is not propagated; use ``get_metadata``.
        """

        key = self.apply_prefix(path)
        with ExitStack() as stack:
            buffer = io.BytesIO()
            stack.callback(buffer.close)
            try:
                self._client.get_object_to_stream(self._bucket, key, buffer)
            except Exception as exc:  # noqa: BLE001
                return self._fail("read_stream", path, exc)
            buffer.seek(0)
            stack.pop_all()
        return StreamResult(path=self.remove_prefix(key), stream=buffer)

    def get_metadata(self, path: str) -> ObjectEntry | Failure:
        return self._metadata("get_metadata", path)

    def get_size(self, path: str) -> ObjectEntry | Failure:
        return self._metadata("get_size", path)

    def get_mimetype(self, path: str) -> ObjectEntry | Failure:
        return self._metadata("get_mimetype", path)

    def get_timestamp(self, path: str) -> ObjectEntry | Failure:
        return self._metadata("get_timestamp", path)

    def _metadata(self, operation: str, path: str) -> ObjectEntry | Failure:
        key = self.apply_prefix(path)
        try:
            head = self._client.get_object_metadata(self._bucket, key)
        except Exception as exc:  # noqa: BLE001
            return self._fail(operation, path, exc)
        return self._normalize(head, key)

    # -- links -------------------------------------------------------------------

    def get_url(self, path: str) -> str | Failure:
        return self.get_temporary_link(path, DEFAULT_LINK_EXPIRY)

    def get_temporary_link(self, path: str, expire_seconds: int = DEFAULT_LINK_EXPIRY) -> str | Failure:
        key = self.apply_prefix(path)
        try:
            expire_seconds = int(expire_seconds)
            if expire_seconds <= 0:
                raise ValueError("expire_seconds must be positive")
            url = self._client.generate_presigned_url(
                self._bucket,
                key,
                timestamp=datetime.now(timezone.utc),
                expiration_in_seconds=expire_seconds,
            )
        except Exception as exc:  # noqa: BLE001
            return self._fail("get_temporary_link", path, exc)
        return url

    # -- visibility --------------------------------------------------------------

    def get_visibility(self, path: str) -> str:
        raise VisibilityNotSupportedError("Adapter does not support visibility controls.")

    def set_visibility(self, path: str, visibility: str) -> ObjectEntry:
        raise VisibilityNotSupportedError("Adapter does not support visibility controls.")
