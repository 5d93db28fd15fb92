"""Precondition checks run before anything touches the backup directory."""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path

from vaultbackup.core.errors import BackupPermissionError, MissingDirectoryError, MissingExecutableError

PROBE_FILENAME = ".vaultbackup-write-test"

logger = logging.getLogger(__name__)


def check_executable(vault_path: Path) -> Path:
    """Fail unless ``vault_path`` resolves to a regular file."""

    if not vault_path.is_file():
        raise MissingExecutableError(f"Vault executable not found: {vault_path}")
    return vault_path


def check_directory(backup_dir: Path) -> Path:
    """Fail unless ``backup_dir`` exists as a directory."""

    if not backup_dir.exists():
        raise MissingDirectoryError(f"Backup directory does not exist: {backup_dir}")
    if not backup_dir.is_dir():
        raise MissingDirectoryError(f"Backup path is not a directory: {backup_dir}")
    return backup_dir


def _probe_directory(path: Path) -> tuple[bool, str | None]:
    """Create, write and delete a probe file, returning success and reason."""

    probe = path / PROBE_FILENAME
    try:
        with probe.open("w", encoding="utf-8") as handle:
            handle.write("probe")
        probe.unlink()
        return True, None
    except OSError as exc:
        with contextlib.suppress(OSError):
            probe.unlink(missing_ok=True)
        return False, str(exc)


def check_writable(backup_dir: Path, dry_run: bool = False) -> Path:
    """Fail unless the process can create and delete files in ``backup_dir``.

    Dry runs do not write the probe and only ask the OS for access bits.
    """

    if dry_run:
        if not os.access(backup_dir, os.W_OK | os.X_OK):
            raise BackupPermissionError(f"No write access to backup directory: {backup_dir}")
        return backup_dir

    ok, reason = _probe_directory(backup_dir)
    if not ok:
        raise BackupPermissionError(
            f"No write access to backup directory: {backup_dir} ({reason or 'unavailable'})"
        )
    return backup_dir


def check_preconditions(vault_path: Path, backup_dir: Path, dry_run: bool = False) -> None:
    """Run every precondition in order, raising on the first failure."""

    logger.debug("checking executable path=%s", vault_path)
    check_executable(vault_path)
    logger.debug("checking backup directory path=%s", backup_dir)
    check_directory(backup_dir)
    check_writable(backup_dir, dry_run=dry_run)
    logger.info("preconditions ok vault=%s backup_dir=%s", vault_path, backup_dir)
