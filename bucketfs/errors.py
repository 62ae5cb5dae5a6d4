from __future__ import annotations

import enum

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ParamValidationError,
    ReadTimeoutError,
)


class BucketFSError(Exception):
    """Base error for bucketfs."""


class ConfigurationError(BucketFSError):
    """Raised when adapter or connection settings are missing or invalid."""


class VisibilityNotSupportedError(BucketFSError):
    """Raised by visibility operations; the backend has no ACL mapping."""


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    TRANSIENT = "transient"
    INVALID_ARGUMENT = "invalid_argument"
    UNKNOWN = "unknown"


_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}
_PERMISSION_CODES = {"403", "AccessDenied", "Forbidden", "InvalidAccessKeyId", "SignatureDoesNotMatch"}
_TRANSIENT_CODES = {
    "500",
    "502",
    "503",
    "504",
    "InternalError",
    "RequestTimeout",
    "ServiceUnavailable",
    "SlowDown",
    "Throttling",
}
_INVALID_CODES = {"400", "InvalidArgument", "InvalidRequest", "InvalidDigest", "BadDigest", "KeyTooLongError"}

_TRANSPORT_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
    ConnectionError,
    TimeoutError,
)


def _client_error_kind(exc: ClientError) -> ErrorKind:
    response = getattr(exc, "response", None) or {}
    error = response.get("Error") or {}
    code = str(error.get("Code") or "")
    status = str((response.get("ResponseMetadata") or {}).get("HTTPStatusCode") or "")

    for value in (code, status):
        if value in _NOT_FOUND_CODES:
            return ErrorKind.NOT_FOUND
        if value in _PERMISSION_CODES:
            return ErrorKind.PERMISSION_DENIED
        if value in _TRANSIENT_CODES:
            return ErrorKind.TRANSIENT
        if value in _INVALID_CODES:
            return ErrorKind.INVALID_ARGUMENT
    if status.startswith("5"):
        return ErrorKind.TRANSIENT
    return ErrorKind.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorKind:
    """Map a client-side exception onto an ``ErrorKind``.

    botocore ``ClientError`` is classified by its ``Error.Code`` first and
    its HTTP status second. Transport failures are transient. Builtin
    ``FileNotFoundError`` / ``PermissionError`` / ``ValueError`` /
    ``TypeError`` map to the matching kinds.
    """

    if isinstance(exc, ClientError):
        return _client_error_kind(exc)
    if isinstance(exc, _TRANSPORT_ERRORS):
        return ErrorKind.TRANSIENT
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, (ParamValidationError, ValueError, TypeError)):
        return ErrorKind.INVALID_ARGUMENT
    return ErrorKind.UNKNOWN
