"""Stable public imports for `bucketfs`.

Prefer importing from these symbols when wiring the adapter into an application.
Lower-level helpers (key/stream utilities, test doubles) live in their submodules.
"""

from bucketfs.adapter import DEFAULT_LINK_EXPIRY, StorageAdapter
from bucketfs.client import (
    Boto3ObjectClient,
    ListPage,
    ObjectHead,
    ObjectStorageClient,
    ObjectSummary,
)
from bucketfs.config import (
    AdapterSettings,
    S3ConnectionConfig,
    WriteConfig,
    build_s3_connection_config_from_env,
)
from bucketfs.errors import (
    BucketFSError,
    ConfigurationError,
    ErrorKind,
    VisibilityNotSupportedError,
    classify_exception,
)
from bucketfs.filesystem import FilesystemAdapter
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

__all__ = [
    "DEFAULT_LINK_EXPIRY",
    "AdapterSettings",
    "Boto3ObjectClient",
    "BucketFSError",
    "ConfigurationError",
    "DeleteReport",
    "EntryType",
    "ErrorKind",
    "Failure",
    "FilesystemAdapter",
    "ListPage",
    "Listing",
    "ObjectEntry",
    "ObjectHead",
    "ObjectStorageClient",
    "ObjectSummary",
    "ReadResult",
    "RenameReport",
    "S3ConnectionConfig",
    "StorageAdapter",
    "StreamResult",
    "VisibilityNotSupportedError",
    "WriteConfig",
    "build_s3_connection_config_from_env",
    "classify_exception",
]
