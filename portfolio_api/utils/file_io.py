"""Process- and thread-safe helpers for JSON state files.

Every read-modify-write of a shared JSON file goes through
:func:`locked_file`, which holds an in-process ``RLock`` and an advisory
:class:`filelock.FileLock` on ``<file>.lock`` for the whole critical section.
Writes use :func:`write_json_atomic` (temp file + ``os.replace``) so readers
never observe a half-written document.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Iterator

from filelock import FileLock, Timeout

from portfolio_api.core.errors import StorageAppError

logger = logging.getLogger(__name__)

_guards: dict[Path, threading.RLock] = {}
_guards_lock = threading.Lock()


def _guard_for(path: Path) -> threading.RLock:
    with _guards_lock:
        guard = _guards.get(path)
        if guard is None:
            guard = threading.RLock()
            _guards[path] = guard
        return guard


def lock_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextlib.contextmanager
def locked_file(path: Path, *, timeout: float = 10.0) -> Iterator[Path]:
    """Hold exclusive access to ``path`` for the duration of the block.

    Args:
        path: State file to protect (it does not need to exist yet).
        timeout: Seconds to wait for the cross-process lock.

    Raises:
        StorageAppError: If the lock cannot be acquired within ``timeout``.
    """

    resolved = Path(path).resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    guard = _guard_for(resolved)

    with guard:
        file_lock = FileLock(str(lock_path_for(resolved)))
        try:
            file_lock.acquire(timeout=timeout)
        except Timeout as exc:
            logger.error(
                "file_lock.timeout",
                extra={"path": str(resolved), "timeout_s": timeout},
            )
            raise StorageAppError(
                code="storage_busy",
                message="Storage is temporarily unavailable",
            ) from exc
        try:
            yield resolved
        finally:
            file_lock.release()


def read_json(path: Path, default: Any) -> Any:
    """Load JSON from ``path``; missing or unreadable files yield ``default``.

    Corrupt content is logged and treated as ``default`` so a damaged state
    file never blocks requests.
    """

    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        return default
    except (OSError, ValueError) as exc:
        logger.warning(
            "json_state.unreadable",
            extra={"path": str(path), "error": str(exc)},
        )
        return default


def write_json_atomic(path: Path, data: Any, *, indent: int | None = None) -> None:
    """Write ``data`` as JSON to ``path`` via a temp file and ``os.replace``.

    Raises:
        StorageAppError: If the file cannot be written.
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        logger.error(
            "json_state.write_failed",
            extra={"path": str(path), "error": str(exc)},
        )
        raise StorageAppError(
            code="storage_write_failed",
            message="Could not save data",
        ) from exc
