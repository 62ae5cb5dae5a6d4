from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Any, BinaryIO
from urllib.parse import quote

from botocore.exceptions import ClientError

from bucketfs.client.base import ListPage, ObjectHead, ObjectStorageClient, ObjectSummary
from bucketfs.io.streams import md5_from_bytes


@dataclass
class StoreOp:
    name: str
    args: tuple[object, ...]


@dataclass
class StoredObject:
    data: bytes
    content_type: str | None = None
    user_metadata: dict[str, str] = field(default_factory=dict)
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def etag(self) -> str:
        return hashlib.md5(self.data).hexdigest()


@dataclass
class Fault:
    operation: str
    key: str | None
    code: str
    status: int
    remaining: int | None


def client_error(code: str, status: int, operation: str, message: str = "") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class InMemoryObjectClient(ObjectStorageClient):
    """Dict-backed client with S3 listing semantics, for tests.

    ``page_size`` caps every listing page. ``inject_fault`` makes the next
    matching call(s) raise ``ClientError``. Every call is recorded in ``ops``
    and each stored object keeps the upload options it was written with.
    """

    def __init__(self, *, page_size: int = 1000) -> None:
        self.page_size = page_size
        self.buckets: dict[str, dict[str, StoredObject]] = {}
        self.ops: list[StoreOp] = []
        self._faults: list[Fault] = []

    def inject_fault(
        self,
        operation: str,
        *,
        key: str | None = None,
        code: str = "InternalError",
        status: int = 500,
        times: int | None = 1,
    ) -> None:
        self._faults.append(Fault(operation, key, code, status, times))

    def keys(self, bucket: str) -> list[str]:
        return sorted(self.buckets.get(bucket, {}))

    def op_names(self) -> list[str]:
        return [op.name for op in self.ops]

    def _record(self, name: str, *args: object) -> None:
        self.ops.append(StoreOp(name, args))
        for fault in self._faults:
            if fault.operation != name or fault.remaining == 0:
                continue
            if fault.key is not None and fault.key not in args:
                continue
            if fault.remaining is not None:
                fault.remaining -= 1
            raise client_error(fault.code, fault.status, name)

    def _bucket(self, bucket: str) -> dict[str, StoredObject]:
        return self.buckets.setdefault(bucket, {})

    def _get(self, bucket: str, key: str, operation: str) -> StoredObject:
        obj = self.buckets.get(bucket, {}).get(key)
        if obj is None:
            if operation == "get_object_metadata":
                raise client_error("404", 404, operation, "Not Found")
            raise client_error("NoSuchKey", 404, operation, f"The specified key does not exist: {key}")
        return obj

    def _store(self, bucket: str, key: str, data: bytes, options: Mapping[str, Any] | None) -> ObjectHead:
        options = options or {}
        obj = StoredObject(
            data=data,
            content_type=options.get("content_type") or "application/octet-stream",
            user_metadata=dict(options.get("user_metadata") or {}),
            options=dict(options),
        )
        self._bucket(bucket)[key] = obj
        return ObjectHead(
            content_length=len(data),
            content_type=obj.content_type,
            etag=obj.etag,
            content_md5=md5_from_bytes(data),
            date=obj.last_modified,
            user_metadata=obj.user_metadata or None,
        )

    def put_object_from_string(
        self, bucket: str, key: str, data: bytes | str, options: Mapping[str, Any] | None = None
    ) -> ObjectHead:
        self._record("put_object_from_string", bucket, key)
        body = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        return self._store(bucket, key, body, options)

    def put_object_from_file(
        self,
        bucket: str,
        key: str,
        file_path: str | PathLike[str],
        options: Mapping[str, Any] | None = None,
    ) -> ObjectHead:
        self._record("put_object_from_file", bucket, key)
        return self._store(bucket, key, Path(file_path).read_bytes(), options)

    def put_object(
        self,
        bucket: str,
        key: str,
        data: BinaryIO,
        content_length: int,
        content_md5: str,
        options: Mapping[str, Any] | None = None,
    ) -> ObjectHead:
        self._record("put_object", bucket, key)
        body = data.read(content_length)
        if len(body) != content_length:
            raise client_error("IncompleteBody", 400, "put_object")
        if content_md5 and md5_from_bytes(body) != content_md5:
            raise client_error("BadDigest", 400, "put_object")
        return self._store(bucket, key, body, options)

    def copy_object(self, source_bucket: str, source_key: str, dest_bucket: str, dest_key: str) -> None:
        self._record("copy_object", source_bucket, source_key, dest_bucket, dest_key)
        source = self._get(source_bucket, source_key, "copy_object")
        self._bucket(dest_bucket)[dest_key] = StoredObject(
            data=source.data,
            content_type=source.content_type,
            user_metadata=dict(source.user_metadata),
        )

    def delete_object(self, bucket: str, key: str) -> None:
        self._record("delete_object", bucket, key)
        self.buckets.get(bucket, {}).pop(key, None)

    def list_objects(
        self,
        bucket: str,
        *,
        prefix: str = "",
        delimiter: str = "",
        marker: str = "",
        max_keys: int | None = None,
    ) -> ListPage:
        self._record("list_objects", bucket, prefix, delimiter, marker)
        objects = self.buckets.get(bucket, {})

        items: list[tuple[str, str]] = []
        seen_prefixes: set[str] = set()
        for key in sorted(k for k in objects if k.startswith(prefix)):
            if delimiter:
                rest = key[len(prefix) :]
                idx = rest.find(delimiter)
                if idx >= 0:
                    common = prefix + rest[: idx + len(delimiter)]
                    if (marker and common <= marker) or common in seen_prefixes:
                        continue
                    seen_prefixes.add(common)
                    items.append(("prefix", common))
                    continue
            if marker and key <= marker:
                continue
            items.append(("key", key))

        limit = self.page_size if max_keys is None else min(max_keys, self.page_size)
        page, truncated = items[:limit], len(items) > limit
        contents = [
            ObjectSummary(
                key=value,
                size=len(objects[value].data),
                last_modified=objects[value].last_modified,
                etag=objects[value].etag,
            )
            for kind, value in page
            if kind == "key"
        ]
        return ListPage(
            contents=contents,
            common_prefixes=[value for kind, value in page if kind == "prefix"],
            is_truncated=truncated,
            next_marker=page[-1][1] if truncated and page else None,
        )

    def get_object_metadata(self, bucket: str, key: str) -> ObjectHead:
        self._record("get_object_metadata", bucket, key)
        obj = self._get(bucket, key, "get_object_metadata")
        return ObjectHead(
            content_length=len(obj.data),
            content_type=obj.content_type,
            etag=obj.etag,
            last_modified=obj.last_modified,
            user_metadata=obj.user_metadata or None,
        )

    def get_object_as_bytes(self, bucket: str, key: str) -> bytes:
        self._record("get_object_as_bytes", bucket, key)
        return self._get(bucket, key, "get_object_as_bytes").data

    def get_object_to_stream(self, bucket: str, key: str, stream: BinaryIO) -> ObjectHead:
        self._record("get_object_to_stream", bucket, key)
        obj = self._get(bucket, key, "get_object_to_stream")
        stream.write(obj.data)
        return ObjectHead(content_length=len(obj.data), content_type=obj.content_type, etag=obj.etag)

    def generate_presigned_url(
        self, bucket: str, key: str, *, timestamp: datetime, expiration_in_seconds: int
    ) -> str:
        self._record("generate_presigned_url", bucket, key)
        expires = int(timestamp.timestamp()) + int(expiration_in_seconds)
        signature = hashlib.sha256(f"{bucket}/{key}:{expires}".encode()).hexdigest()[:32]
        return f"https://{bucket}.memory.local/{quote(key)}?Expires={expires}&Signature={signature}"
