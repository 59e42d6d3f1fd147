"""Atomic file writes and backups for fixed source files."""

import contextlib
import logging
import os
import shutil
import stat
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_BACKUP_ATTEMPTS = 5


def atomic_write_text(file_path: Path, content: str) -> None:
    """Replace a file's content atomically, preserving its permission bits.

    The content goes to a temporary file in the same directory, is fsynced, and is
    then moved over the original with ``os.replace``.

    Args:
        file_path: File to overwrite.
        content: New text content (written as UTF-8, newlines untranslated).

    Raises:
        OSError: If the temporary file cannot be written or moved into place.
    """
    original_mode = os.stat(file_path).st_mode if file_path.exists() else None

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            dir=file_path.parent,
            prefix=f".{file_path.name}.tmp",
            delete=False,
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        if original_mode is not None:
            os.chmod(temp_path, stat.S_IMODE(original_mode))

        os.replace(temp_path, file_path)
        temp_path = None

        # Best-effort parent dir fsync
        try:
            dir_fd = os.open(file_path.parent, os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError:
            logger.debug("Directory fsync failed for %s", file_path.parent, exc_info=True)
    finally:
        if temp_path and temp_path.exists():
            with contextlib.suppress(OSError):
                temp_path.unlink()


def create_backup(file_path: Path) -> Path:
    """Copy a file to ``<name>.backup`` (or a timestamped variant) with 0o600 permissions.

    Backups are created with ``O_CREAT | O_EXCL`` so an existing backup is never
    overwritten; later attempts fall back to timestamp and pid suffixes.

    Returns:
        Path of the created backup.

    Raises:
        FileNotFoundError: If ``file_path`` is not an existing regular file.
        OSError: If no unique backup file could be created.
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Source file does not exist: {file_path}")

    timestamp = int(time.time())
    candidates = [
        file_path.with_suffix(file_path.suffix + ".backup"),
        file_path.with_suffix(f"{file_path.suffix}.backup.{timestamp}"),
    ]
    candidates.extend(
        file_path.with_suffix(f"{file_path.suffix}.backup.{timestamp}.{os.getpid()}.{attempt}")
        for attempt in range(MAX_BACKUP_ATTEMPTS - len(candidates))
    )

    last_error: OSError | None = None
    for backup_path in candidates:
        try:
            backup_fd = os.open(backup_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError:
            continue
        except OSError as e:
            last_error = e
            continue

        try:
            with os.fdopen(backup_fd, "wb") as backup_file, open(file_path, "rb") as source:
                shutil.copyfileobj(source, backup_file)
                backup_file.flush()
                os.fsync(backup_file.fileno())
        except OSError:
            with contextlib.suppress(OSError):
                backup_path.unlink()
            raise
        return backup_path

    raise OSError(
        f"Unable to create unique backup filename after {MAX_BACKUP_ATTEMPTS} attempts "
        f"for: {file_path}"
    ) from last_error
