"""Age-based pruning of old snapshot files."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path

from vaultbackup.common.events import EventId, EventReporter
from vaultbackup.core.errors import PruneError
from vaultbackup.core.storage import list_snapshots

logger = logging.getLogger(__name__)


def prune_cutoff(now: datetime, retention_days: int) -> datetime:
    """Return the instant before which snapshots are considered expired."""

    if retention_days < 0:
        raise ValueError("retention_days must not be negative")
    return now - timedelta(days=retention_days)


def expired_snapshots(backup_dir: Path, cutoff: datetime) -> list[Path]:
    """Snapshots in ``backup_dir`` last modified strictly before ``cutoff``."""

    cutoff_ts = cutoff.timestamp()
    return [path for path in list_snapshots(backup_dir) if path.stat().st_mtime < cutoff_ts]


def prune_backups(
    backup_dir: Path,
    retention_days: int,
    enabled: bool,
    now: datetime,
    reporter: EventReporter,
    dry_run: bool = False,
) -> list[Path]:
    """Delete expired snapshots and return the removed paths.

    The first deletion error aborts pruning and is raised as ``PruneError``.
    With ``enabled`` off nothing is touched and a skip event is reported.
    """

    if not enabled:
        logger.info("prune disabled (skipping) backup_dir=%s", backup_dir)
        reporter.info(EventId.PRUNE_SKIPPED, "Pruning of old backups skipped: prune not enabled.")
        return []

    cutoff = prune_cutoff(now, retention_days)
    logger.debug("prune cutoff=%s retention_days=%d", cutoff.isoformat(), retention_days)

    try:
        candidates = expired_snapshots(backup_dir, cutoff)
    except OSError as exc:
        raise PruneError(f"Unable to list backups in {backup_dir}: {exc}") from exc

    if dry_run:
        for path in candidates:
            logger.info("dry-run: would delete %s", path)
        return candidates

    removed: list[Path] = []
    for path in candidates:
        try:
            path.unlink()
        except OSError as exc:
            logger.error('prune failed path=%s reason="%s"', path, exc)
            raise PruneError(f"Unable to delete expired backup {path}: {exc}") from exc
        logger.info("pruned path=%s", path)
        removed.append(path)

    names = ", ".join(path.name for path in removed) or "none"
    reporter.info(
        EventId.PRUNE_SUCCESS,
        f"Pruned {len(removed)} backup file(s) older than {retention_days} day(s): {names}",
    )
    return removed
