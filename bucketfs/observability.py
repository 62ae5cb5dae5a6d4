from __future__ import annotations

import logging
from collections.abc import Mapping

from bucketfs.errors import ErrorKind


def _kv_pairs(fields: Mapping[str, object]) -> str:
    parts: list[str] = []
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, ErrorKind):
            value = value.value
        text = str(value).strip()
        if not text:
            continue
        parts.append(f"{key}={text}")
    return " ".join(parts)


def log_event(
    logger: logging.Logger, message: str, *, level: int = logging.INFO, **fields: object
) -> None:
    """Emit a stable, grep-friendly structured log line.

    Key fields are appended as ``k=v`` tokens so plain-text log sinks stay searchable.
    """

    if not logger.isEnabledFor(level):
        return
    suffix = _kv_pairs(fields)
    if suffix:
        logger.log(level, "%s %s", message, suffix)
    else:
        logger.log(level, "%s", message)


def failure_log_fields(failure: object) -> dict[str, object]:
    """Extract standard fields from a ``Failure``-like object."""

    def _get(name: str) -> object:
        return getattr(failure, name, None)

    return {
        "op": _get("operation"),
        "path": _get("path"),
        "kind": _get("kind"),
        "error": _get("message"),
    }
