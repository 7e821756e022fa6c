"""File I/O primitives: strict UTF-8 read, backup, atomic write, rollback copy-back.

The target path is only ever changed by ``os.replace`` of a fully written,
fsynced temporary file living in the same directory, so a reader never sees
a partially written file.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import List, Tuple, Union

from .errors import EditEngineError, ErrorCode, classify_os_error, describe_os_error

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BACKUP_SUFFIX = ".bak"
TEMP_SUFFIX = ".tmp"


def read_text_strict(path: PathLike) -> Tuple[bytes, str]:
    """
    Read raw bytes and decode them as strict UTF-8.

    Newlines are left untouched. OSError propagates as-is; invalid UTF-8
    raises ``EditEngineError(INVALID_ENCODING)``.
    """
    raw = Path(path).read_bytes()
    try:
        return raw, raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EditEngineError(
            ErrorCode.INVALID_ENCODING,
            describe_os_error(exc, path),
            path=path,
            cause=str(exc),
        ) from exc


def backup_path_for(path: PathLike) -> Path:
    p = Path(path)
    return p.with_name(p.name + BACKUP_SUFFIX)


def atomic_write(path: PathLike, data: bytes) -> None:
    """
    Write ``data`` to ``path`` through a temp file + rename.

    The temp file is created next to the target (rename must not cross a
    filesystem) with an unpredictable name. On any failure the temp file is
    removed best-effort and the original exception is re-raised.
    """
    target = Path(path)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=TEMP_SUFFIX,
        dir=str(target.parent),
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        if target.exists():
            shutil.copymode(target, tmp_path)
        os.replace(tmp_path, target)
    except BaseException:
        _discard(tmp_path)
        raise
    logger.debug("Atomically wrote %d bytes to %s", len(data), target)


def _discard(tmp_path: Path) -> None:
    try:
        tmp_path.unlink()
    except OSError:
        pass


def write_backup(path: PathLike, raw: bytes) -> Path:
    """
    Snapshot the original bytes to ``<path>.bak`` with the original's mode bits.

    Any failure raises ``EditEngineError(BACKUP_FAILED)`` naming the backup
    path and the underlying cause.
    """
    backup = backup_path_for(path)
    try:
        atomic_write(backup, raw)
        shutil.copymode(path, backup)
    except OSError as exc:
        cause = classify_os_error(exc)
        raise EditEngineError(
            ErrorCode.BACKUP_FAILED,
            f"Backup failed: could not create {backup}: {describe_os_error(exc, backup)}",
            path=backup,
            cause=cause.value,
        ) from exc
    logger.debug("Backup created: %s", backup)
    return backup


def restore_from_backup(path: PathLike, backup_path: PathLike) -> None:
    """Copy the backup content back over ``path`` (rollback)."""
    raw = Path(backup_path).read_bytes()
    atomic_write(path, raw)


def sweep_stale_temp_files(directory: PathLike, max_age_s: float = 3600.0) -> List[Path]:
    """
    Remove temp artifacts left behind by a crashed write.

    Only hidden ``.<name>.<random>.tmp`` files older than ``max_age_s`` are
    deleted; failures are logged and skipped.
    """
    root = Path(directory)
    removed: List[Path] = []
    if not root.is_dir():
        return removed

    cutoff = time.time() - max_age_s
    for candidate in root.glob(f".*{TEMP_SUFFIX}"):
        try:
            if not candidate.is_file() or candidate.stat().st_mtime >= cutoff:
                continue
            candidate.unlink()
            removed.append(candidate)
            logger.debug("Deleted stale temp file: %s", candidate)
        except OSError as e:
            logger.warning("Failed to delete %s: %s", candidate, e)
    return removed
