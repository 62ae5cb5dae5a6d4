from __future__ import annotations

import logging

from bucketfs.errors import ErrorKind
from bucketfs.observability import log_event


def test_log_event_appends_non_empty_fields(caplog) -> None:
    logger = logging.getLogger("bucketfs.test")
    caplog.set_level(logging.INFO, logger="bucketfs.test")

    log_event(logger, "adapter.write", bucket="b", path="a.txt", etag=None, note="  ")

    assert [r.getMessage() for r in caplog.records] == ["adapter.write bucket=b path=a.txt"]


def test_log_event_respects_level_and_renders_kinds(caplog) -> None:
    logger = logging.getLogger("bucketfs.test")
    caplog.set_level(logging.INFO, logger="bucketfs.test")

    log_event(logger, "hidden", level=logging.DEBUG, path="x")
    assert caplog.records == []

    caplog.set_level(logging.DEBUG, logger="bucketfs.test")
    log_event(logger, "adapter.has.failed", level=logging.DEBUG, kind=ErrorKind.NOT_FOUND)
    record = caplog.records[-1]
    assert record.levelno == logging.DEBUG
    assert record.getMessage() == "adapter.has.failed kind=not_found"
