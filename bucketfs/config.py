"""Per-call write options and env-first connection settings."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from bucketfs.errors import ConfigurationError

_MAPPING_ALIASES: dict[str, str] = {
    "mimetype": "mimetype",
    "content_type": "mimetype",
    "content_length": "content_length",
    "content-length": "content_length",
    "content_md5": "content_md5",
    "content-md5": "content_md5",
    "content_sha256": "content_sha256",
    "content-sha256": "content_sha256",
    "user_metadata": "user_metadata",
    "user-metadata": "user_metadata",
}


@dataclass(frozen=True)
class WriteConfig:
    """Recognized upload options. Unset fields are computed or left to the service.

    ``content_md5`` and ``content_sha256`` are base64-encoded binary digests
    (the ``Content-MD5`` and ``x-amz-checksum-sha256`` header formats), not hex.
    """

    mimetype: str | None = None
    content_length: int | None = None
    content_md5: str | None = None
    content_sha256: str | None = None
    user_metadata: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        if self.content_length is not None:
            if isinstance(self.content_length, bool) or int(self.content_length) < 0:
                raise ValueError("content_length must be a non-negative integer")
            object.__setattr__(self, "content_length", int(self.content_length))
        if self.user_metadata is not None:
            object.__setattr__(
                self, "user_metadata", {str(k): str(v) for k, v in self.user_metadata.items()}
            )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> WriteConfig:
        """Build from a loosely keyed mapping; unrecognized keys are ignored."""

        kwargs: dict[str, Any] = {}
        for key, value in (values or {}).items():
            name = _MAPPING_ALIASES.get(str(key).lower())
            if name is None or value is None:
                continue
            kwargs[name] = value
        return cls(**kwargs)

    def to_options(self) -> dict[str, Any]:
        """Options forwarded verbatim to the client; unset fields are omitted."""

        options: dict[str, Any] = {}
        if self.mimetype:
            options["content_type"] = self.mimetype
        if self.content_length is not None:
            options["content_length"] = self.content_length
        if self.content_md5:
            options["content_md5"] = self.content_md5
        if self.content_sha256:
            options["content_sha256"] = self.content_sha256
        if self.user_metadata:
            options["user_metadata"] = dict(self.user_metadata)
        return options


def coerce_write_config(config: WriteConfig | Mapping[str, Any] | None) -> WriteConfig:
    if config is None:
        return WriteConfig()
    if isinstance(config, WriteConfig):
        return config
    return WriteConfig.from_mapping(config)


@dataclass(frozen=True)
class S3ConnectionConfig:
    endpoint_url: str | None
    access_key: str | None
    secret_key: str | None
    region: str = "us-east-1"
    use_ssl: bool = True
    url_style: str = "path"
    session_token: str | None = None
    client_kwargs: dict[str, Any] = field(default_factory=dict)


def _parse_bool(value: str | None, *, default: bool | None = None) -> bool | None:
    if value is None:
        return default
    text = value.strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return default


def build_s3_connection_config_from_env(
    env: Mapping[str, str] | None = None,
) -> S3ConnectionConfig:
    """Resolve S3 connection settings from ``S3_*`` environment variables.

    Endpoint and credentials must be set together. When none of them is set the
    default boto3 credential chain applies (``endpoint_url=None``).
    """

    env = dict(os.environ) if env is None else dict(env)
    endpoint = (env.get("S3_ENDPOINT_URL") or "").strip() or None
    access_key = (env.get("S3_ACCESS_KEY_ID") or "").strip() or None
    secret_key = (env.get("S3_SECRET_ACCESS_KEY") or "").strip() or None

    if any([endpoint, access_key, secret_key]) and not (access_key and secret_key):
        raise ConfigurationError("S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY must both be set")

    use_ssl = _parse_bool(env.get("S3_USE_SSL"))
    if use_ssl is None:
        use_ssl = not endpoint or endpoint.startswith("https")

    url_style = str(env.get("S3_URL_STYLE") or "path")
    if url_style not in {"path", "virtual", "auto"}:
        raise ConfigurationError(f"S3_URL_STYLE must be path, virtual or auto, got '{url_style}'")

    return S3ConnectionConfig(
        endpoint_url=endpoint,
        access_key=access_key,
        secret_key=secret_key,
        region=str(env.get("S3_REGION") or "us-east-1"),
        use_ssl=bool(use_ssl),
        url_style=url_style,
        session_token=str(env.get("S3_SESSION_TOKEN") or "") or None,
    )


@dataclass(frozen=True)
class AdapterSettings:
    bucket: str
    path_prefix: str = ""

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> AdapterSettings:
        env = dict(os.environ) if env is None else dict(env)
        bucket = (env.get("S3_BUCKET_NAME") or "").strip()
        if not bucket:
            raise ConfigurationError("S3_BUCKET_NAME is required")
        return cls(bucket=bucket, path_prefix=(env.get("BUCKETFS_PATH_PREFIX") or "").strip())
