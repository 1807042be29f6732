"""Normalization of upload inputs into raw bytes."""

from typing import Any

from aws_lambda_powertools import Logger

logger = Logger(UTC=True)


def read_upload(upload: Any) -> bytes | None:
    """Return the bytes of a well-formed upload, or None if it is not one.

    Accepted inputs:
    - non-empty bytes, bytearray or memoryview
    - binary file objects exposing ``read()`` (rewound first when seekable,
      and rewound again afterwards so callers can reuse them)
    """
    if isinstance(upload, (bytes, bytearray, memoryview)):
        data = bytes(upload)
        return data or None

    read = getattr(upload, "read", None)
    if not callable(read):
        return None

    seekable = _is_seekable(upload)
    if seekable:
        upload.seek(0)

    data = read()

    if seekable:
        upload.seek(0)

    if not isinstance(data, (bytes, bytearray)) or not data:
        logger.debug("Skipping non-binary upload", extra={"type": type(upload).__name__})
        return None

    return bytes(data)


def _is_seekable(upload: Any) -> bool:
    """True if the stream can be rewound; pipes and sockets expose seek() but cannot."""
    if not callable(getattr(upload, "seek", None)):
        return False

    seekable = getattr(upload, "seekable", None)
    if not callable(seekable):
        return True

    try:
        return bool(seekable())
    except (OSError, ValueError):
        return False
