"""Raft snapshot step."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from vaultbackup.common.events import EventId, EventReporter
from vaultbackup.core.errors import SnapshotFailedError
from vaultbackup.core.storage import build_snapshot_path
from vaultbackup.vault.client import VaultClient, VaultClientError

logger = logging.getLogger(__name__)


def _failure_detail(stderr: str, exit_code: int) -> str:
    return stderr.strip() or f"exit_status={exit_code}"


def take_snapshot(
    client: VaultClient,
    backup_dir: Path,
    host: str,
    now: datetime,
    reporter: EventReporter,
    dry_run: bool = False,
) -> Path:
    """Save a raft snapshot to a new host-qualified file and return its path.

    On a non-zero exit the captured stderr is raised as ``SnapshotFailedError``;
    no event is written here in that case.
    """

    destination = build_snapshot_path(backup_dir, host, now)
    if dry_run:
        logger.info(
            "dry-run: would run '%s operator raft snapshot save %s'", client.executable, destination
        )
        return destination

    logger.info("start snapshot destination=%s", destination)
    try:
        result = client.snapshot_save(destination)
    except VaultClientError as exc:
        raise SnapshotFailedError(f"Raft snapshot failed: {exc}") from exc

    if not result.ok:
        detail = _failure_detail(result.stderr, result.exit_code)
        logger.error("snapshot command failed status=%d", result.exit_code)
        raise SnapshotFailedError(
            f"Raft snapshot failed: {detail}", exit_status=result.exit_code, stderr=result.stderr
        )

    logger.info("snapshot saved path=%s", destination)
    reporter.info(EventId.BACKUP_SUCCESS, f"Vault raft snapshot saved: {destination.name}")
    return destination
