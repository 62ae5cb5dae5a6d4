from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import closing
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from os import PathLike
from typing import Any, BinaryIO

import boto3
from botocore.config import Config

from bucketfs.client.base import ListPage, ObjectHead, ObjectStorageClient, ObjectSummary
from bucketfs.config import S3ConnectionConfig
from bucketfs.observability import log_event

logger = logging.getLogger(__name__)

_PUT_OPTION_KEYS = {
    "content_type": "ContentType",
    "content_length": "ContentLength",
    "content_md5": "ContentMD5",
    "content_sha256": "ChecksumSHA256",
    "user_metadata": "Metadata",
}


def _put_kwargs(options: Mapping[str, Any] | None) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for name, value in (options or {}).items():
        param = _PUT_OPTION_KEYS.get(name)
        if param is not None and value is not None:
            kwargs[param] = value
    return kwargs


def _strip_etag(value: object) -> str | None:
    if not value:
        return None
    return str(value).strip('"')


def _response_date(response: Mapping[str, Any]) -> datetime | None:
    headers = (response.get("ResponseMetadata") or {}).get("HTTPHeaders") or {}
    raw = headers.get("date")
    if not raw:
        return None
    try:
        return parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None


def _head_from_response(
    response: Mapping[str, Any], options: Mapping[str, Any] | None = None
) -> ObjectHead:
    options = options or {}
    length = response.get("ContentLength", options.get("content_length"))
    return ObjectHead(
        content_length=int(length) if length is not None else None,
        content_type=response.get("ContentType") or options.get("content_type"),
        etag=_strip_etag(response.get("ETag")),
        content_md5=options.get("content_md5"),
        date=_response_date(response),
        last_modified=response.get("LastModified"),
        user_metadata=response.get("Metadata") or options.get("user_metadata"),
    )


class Boto3ObjectClient(ObjectStorageClient):
    """``ObjectStorageClient`` over a boto3 S3 client (S3/MinIO)."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: S3ConnectionConfig) -> Boto3ObjectClient:
        boto_config = Config(s3={"addressing_style": config.url_style})
        kwargs: dict[str, Any] = dict(config.client_kwargs)
        kwargs.update(
            dict(
                service_name="s3",
                endpoint_url=config.endpoint_url,
                region_name=config.region,
                use_ssl=config.use_ssl,
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.secret_key,
                aws_session_token=config.session_token,
                config=boto_config,
            )
        )
        log_event(
            logger,
            "client.boto3.create",
            level=logging.DEBUG,
            endpoint=config.endpoint_url,
            region=config.region,
            url_style=config.url_style,
        )
        return cls(boto3.client(**kwargs))

    def put_object_from_string(
        self, bucket: str, key: str, data: bytes | str, options: Mapping[str, Any] | None = None
    ) -> ObjectHead:
        body = data.encode("utf-8") if isinstance(data, str) else data
        response = self._client.put_object(Bucket=bucket, Key=key, Body=body, **_put_kwargs(options))
        merged = {"content_length": len(body), **dict(options or {})}
        return _head_from_response(response, merged)

    def put_object_from_file(
        self,
        bucket: str,
        key: str,
        file_path: str | PathLike[str],
        options: Mapping[str, Any] | None = None,
    ) -> ObjectHead:
        with open(file_path, "rb") as handle:
            response = self._client.put_object(
                Bucket=bucket, Key=key, Body=handle, **_put_kwargs(options)
            )
        return _head_from_response(response, options)

    def put_object(
        self,
        bucket: str,
        key: str,
        data: BinaryIO,
        content_length: int,
        content_md5: str,
        options: Mapping[str, Any] | None = None,
    ) -> ObjectHead:
        # Body must carry exactly content_length bytes; botocore would send the rest of the stream.
        body = data.read(content_length)
        if len(body) != content_length:
            raise ValueError(f"stream ended after {len(body)} of {content_length} bytes")
        merged = dict(options or {})
        merged.update(content_length=content_length, content_md5=content_md5)
        response = self._client.put_object(Bucket=bucket, Key=key, Body=body, **_put_kwargs(merged))
        return _head_from_response(response, merged)

    def copy_object(self, source_bucket: str, source_key: str, dest_bucket: str, dest_key: str) -> None:
        self._client.copy_object(
            Bucket=dest_bucket,
            Key=dest_key,
            CopySource={"Bucket": source_bucket, "Key": source_key},
        )

    def delete_object(self, bucket: str, key: str) -> None:
        self._client.delete_object(Bucket=bucket, Key=key)

    def list_objects(
        self,
        bucket: str,
        *,
        prefix: str = "",
        delimiter: str = "",
        marker: str = "",
        max_keys: int | None = None,
    ) -> ListPage:
        kwargs: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if marker:
            kwargs["Marker"] = marker
        if max_keys is not None:
            kwargs["MaxKeys"] = max_keys
        response = self._client.list_objects(**kwargs)

        contents = [
            ObjectSummary(
                key=obj["Key"],
                size=obj.get("Size"),
                last_modified=obj.get("LastModified"),
                etag=_strip_etag(obj.get("ETag")),
            )
            for obj in response.get("Contents", []) or []
        ]
        common_prefixes = [
            item["Prefix"] for item in response.get("CommonPrefixes", []) or [] if item.get("Prefix")
        ]
        is_truncated = bool(response.get("IsTruncated"))
        next_marker = response.get("NextMarker")
        # S3 only returns NextMarker when a delimiter is set.
        if is_truncated and not next_marker:
            candidates = [obj.key for obj in contents] + common_prefixes
            next_marker = max(candidates) if candidates else None
        return ListPage(
            contents=contents,
            common_prefixes=common_prefixes,
            is_truncated=is_truncated,
            next_marker=next_marker,
        )

    def get_object_metadata(self, bucket: str, key: str) -> ObjectHead:
        response = self._client.head_object(Bucket=bucket, Key=key)
        return _head_from_response(response)

    def get_object_as_bytes(self, bucket: str, key: str) -> bytes:
        response = self._client.get_object(Bucket=bucket, Key=key)
        with closing(response["Body"]) as body:
            return body.read()

    def get_object_to_stream(self, bucket: str, key: str, stream: BinaryIO) -> ObjectHead:
        response = self._client.get_object(Bucket=bucket, Key=key)
        with closing(response["Body"]) as body:
            for chunk in body.iter_chunks():
                stream.write(chunk)
        return _head_from_response(response)

    def generate_presigned_url(
        self, bucket: str, key: str, *, timestamp: datetime, expiration_in_seconds: int
    ) -> str:
        # boto3 always signs at the current time; shift the window so the URL
        # still expires at timestamp + expiration_in_seconds.
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        elapsed = (datetime.now(timezone.utc) - timestamp).total_seconds()
        expires_in = max(1, int(round(expiration_in_seconds - elapsed)))
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires_in,
        )
