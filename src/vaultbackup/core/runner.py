"""Backup run: preconditions, prune, snapshot, renew.

The run is a small state machine. Each step either advances the state or
raises; the handler in :func:`run_backup` is the only place errors are
caught. It records one failure event and returns the :class:`RunResult`
instead of re-raising, so callers and tests can inspect how far the run got.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from vaultbackup.common.events import EventReporter
from vaultbackup.core.errors import BackupStepError
from vaultbackup.core.models import BackupSettings, ExitCode, RunResult, RunState
from vaultbackup.core.preflight import check_preconditions
from vaultbackup.core.retention import prune_backups
from vaultbackup.vault.client import VaultClient
from vaultbackup.vault.snapshot import take_snapshot
from vaultbackup.vault.token import renew_token

Clock = Callable[[], datetime]

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Current local time with a fixed UTC offset."""

    return datetime.now().astimezone()


def _enter(result: RunResult, state: RunState) -> None:
    result.state = state
    result.last_step = state
    logger.debug("entering step=%s", state.value, extra={"step": state.value})


def _fail(result: RunResult, reporter: EventReporter, message: str, exit_code: ExitCode) -> RunResult:
    failed_step = result.last_step
    result.state = RunState.FAILED
    result.error = message
    result.exit_code = exit_code
    logger.error("Backup run failed: %s", message, extra={"step": failed_step.value})
    reporter.error(f"Vault raft backup failed during {failed_step.value}: {message}")
    return result


def run_backup(
    settings: BackupSettings,
    client: VaultClient,
    reporter: EventReporter,
    clock: Clock = local_now,
) -> RunResult:
    """Execute one backup run and return where it ended."""

    result = RunResult()
    dry_run = settings.dry_run

    try:
        _enter(result, RunState.CHECKING_PRECONDITIONS)
        check_preconditions(settings.vault_path, settings.backup_dir, dry_run=dry_run)

        _enter(result, RunState.PRUNING)
        result.pruned = prune_backups(
            settings.backup_dir,
            settings.retention_days,
            settings.prune_enabled,
            clock(),
            reporter,
            dry_run=dry_run,
        )
        result.prune_performed = settings.prune_enabled and not dry_run

        _enter(result, RunState.SNAPSHOTTING)
        result.backup_path = take_snapshot(
            client, settings.backup_dir, settings.host, clock(), reporter, dry_run=dry_run
        )

        _enter(result, RunState.RENEWING)
        result.renewed = renew_token(client, reporter, dry_run=dry_run)
    except BackupStepError as exc:
        return _fail(result, reporter, str(exc), exc.exit_code)
    except Exception as exc:  # noqa: BLE001 - single top-level handler
        logger.debug("unexpected failure", exc_info=True, extra={"step": result.last_step.value})
        return _fail(result, reporter, f"{type(exc).__name__}: {exc}", ExitCode.UNEXPECTED)

    result.state = RunState.DONE
    logger.info(
        "Backup run finished backup=%s pruned=%d renewed=%s dry_run=%s",
        result.backup_path,
        len(result.pruned),
        result.renewed,
        dry_run,
        extra={"step": RunState.DONE.value},
    )
    return result
