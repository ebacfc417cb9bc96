"""JSON encoding and atomic file helpers for cache snapshots."""

from pathlib import Path
from typing import Any
import os
import tempfile

import orjson


class JSONParseError(Exception):
    """JSON parsing failed."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def dumps(obj: Any) -> bytes:
    """
    Encode object to compact JSON bytes.

    Args:
        obj: JSON-compatible object (dicts, lists, str, numbers, datetimes)

    Returns:
        UTF-8 encoded JSON
    """
    return orjson.dumps(obj)


def loads_object(data: bytes | str) -> dict[str, Any]:
    """
    Decode a JSON document whose top level must be an object.

    Raises:
        JSONParseError: If the document is invalid or not an object
    """
    try:
        result = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise JSONParseError(f"Invalid JSON: {e}", e) from e

    if not isinstance(result, dict):
        raise JSONParseError(f"Expected object, got {type(result).__name__}")
    return result


def write_atomic(path: Path, data: bytes) -> None:
    """
    Replace ``path`` with ``data`` in one rename.

    Creates the parent directory on first use. Readers see either the old
    file or the new one, never a partial write.

    Raises:
        OSError: If the directory or file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


__all__ = ["JSONParseError", "dumps", "loads_object", "write_atomic"]
