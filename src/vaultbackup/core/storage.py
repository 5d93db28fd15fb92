"""Naming and listing of snapshot files in the backup directory."""

from __future__ import annotations

import socket
from datetime import datetime
from pathlib import Path

SNAPSHOT_SUFFIX = ".snap"
SNAPSHOT_MARKER = "-raft."
HOST_FORBIDDEN_CHARS = ("/", "\\", "\0")


def snapshot_timestamp(moment: datetime) -> str:
    """Format ``moment`` as ``YYYYMD_HMS`` without zero padding.

    ``2024-03-05 07:08:09`` becomes ``202435_789``. Existing backup sets use
    this exact shape, so it must not be padded.
    """

    date_part = f"{moment.year}{moment.month}{moment.day}"
    time_part = f"{moment.hour}{moment.minute}{moment.second}"
    return f"{date_part}_{time_part}"


def snapshot_filename(host: str, moment: datetime) -> str:
    return f"{host}{SNAPSHOT_MARKER}{snapshot_timestamp(moment)}{SNAPSHOT_SUFFIX}"


def check_host(host: str) -> str:
    """Reject host identifiers that cannot be part of a single filename."""

    if not host or any(char in host for char in HOST_FORBIDDEN_CHARS):
        raise ValueError(f"Invalid host identifier for snapshot filename: {host!r}")
    return host


def build_snapshot_path(backup_dir: Path, host: str, moment: datetime) -> Path:
    """Return ``<backup_dir>/<host>-raft.<timestamp>.snap``."""

    return backup_dir / snapshot_filename(check_host(host), moment)


def list_snapshots(backup_dir: Path) -> list[Path]:
    """Regular files directly in ``backup_dir`` with the snapshot suffix."""

    return sorted(
        entry for entry in backup_dir.iterdir() if entry.suffix == SNAPSHOT_SUFFIX and entry.is_file()
    )


def default_host() -> str:
    """Short host name used to qualify snapshot filenames."""

    return socket.gethostname().split(".")[0] or "localhost"
