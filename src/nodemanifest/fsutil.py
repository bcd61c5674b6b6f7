"""
File-system primitives: directory creation, atomic JSON writes, file locks.

JSON is serialized before anything touches the disk and then swapped into
place with ``os.replace()``, so readers never observe a half-written file and
a serialization failure leaves the previous file intact.  Output uses sorted
keys and a fixed indent so identical values always produce identical bytes.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import IO, Any, Generator

logger = logging.getLogger(__name__)


# Cross-platform file locking
if sys.platform == "win32":
    import msvcrt

    def _lock_file(f: IO, exclusive: bool = True) -> None:
        """Lock file on Windows."""
        msvcrt.locking(f.fileno(), msvcrt.LK_LOCK if exclusive else msvcrt.LK_RLCK, 1)

    def _unlock_file(f: IO) -> None:
        """Unlock file on Windows."""
        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
else:
    import fcntl

    def _lock_file(f: IO, exclusive: bool = True) -> None:
        """Lock file on Unix."""
        fcntl.flock(f.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)

    def _unlock_file(f: IO) -> None:
        """Unlock file on Unix."""
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)


@contextlib.contextmanager
def file_lock(path: Path, exclusive: bool = True) -> Generator[IO, None, None]:
    """
    Hold an advisory lock on a ``.lock`` file next to *path*.

    Example:
        with file_lock(queue_file):
            write_json_file(queue_file, entries)
    """
    lock_path = path.with_suffix(path.suffix + ".lock")
    ensure_directory(lock_path.parent)

    lock_file = open(lock_path, "a+")
    try:
        _lock_file(lock_file, exclusive)
        try:
            yield lock_file
        finally:
            _unlock_file(lock_file)
    finally:
        lock_file.close()


def ensure_directory(path: Path) -> Path:
    """Create *path* and its parents if missing."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def dumps_json(value: Any) -> str:
    """Deterministic JSON text: sorted keys, two-space indent, trailing newline."""
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_json_file(path: Path, value: Any) -> None:
    """Atomically write *value* as JSON to *path*.

    Raises:
        TypeError / ValueError: If *value* is not JSON serializable.
        OSError: If the file cannot be written.
    """
    text = dumps_json(value)
    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(text))


def read_json_file(path: Path, default: Any = None) -> Any:
    """Read JSON from *path*, returning *default* when the file is missing."""
    if not path.exists():
        return default
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)
