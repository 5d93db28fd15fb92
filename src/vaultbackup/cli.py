"""Command line interface for VaultRaftBackup."""

from __future__ import annotations

import argparse
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from vaultbackup.common.events import create_reporter
from vaultbackup.common.run_summary import RunSummaryBuilder
from vaultbackup.core.config import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_RETENTION_DAYS,
    DEFAULT_VAULT_PATH,
    PROJECT_ROOT,
    BackupConfigError,
    build_settings,
    load_local_config,
)
from vaultbackup.core.logging import setup_logging
from vaultbackup.core.models import ExitCode
from vaultbackup.core.runner import run_backup
from vaultbackup.core.secrets import SecretsConfigError, TokenNotFoundError, resolve_token
from vaultbackup.vault.client import CommandRunner, VaultClient


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""

    parser = argparse.ArgumentParser(
        prog="vault-raft-backup",
        description=(
            "Save a Vault integrated storage (raft) snapshot, prune expired snapshots "
            "and renew the backup token. Results are written to the host event log."
        ),
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Vault token used for the backup. Falls back to VAULTBACKUP_TOKEN or secrets.yml.",
    )
    parser.add_argument(
        "--vault-path",
        type=Path,
        default=None,
        help=f"Path to the vault executable (default: {DEFAULT_VAULT_PATH})",
    )
    parser.add_argument(
        "--backup-dir",
        type=Path,
        default=None,
        help=f"Directory where snapshot files are written (default: {DEFAULT_BACKUP_DIR})",
    )
    parser.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help=f"Delete snapshots older than this many days when pruning (default: {DEFAULT_RETENTION_DAYS})",
    )
    parser.add_argument(
        "--prune",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable pruning of expired snapshots (default: off)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would happen without deleting files, running vault or writing events",
    )
    parser.add_argument("--vault-addr", default=None, help="Value passed to vault as VAULT_ADDR")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each vault command (default: wait indefinitely)",
    )
    parser.add_argument("--host", default=None, help="Host identifier used in snapshot filenames")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to local.yml (default: config/local.yml in the project root)",
    )
    parser.add_argument(
        "--secrets",
        type=Path,
        default=PROJECT_ROOT / "config" / "secrets.yml",
        help="Path to the secrets file (YAML)",
    )
    parser.add_argument(
        "--summary-json",
        type=Path,
        default=None,
        help="Write a JSON run summary to this path",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug-level logging for troubleshooting. Overrides local.yml logging.level.",
    )
    return parser


def _error_text(exc: Exception) -> str:
    if isinstance(exc, KeyError) and exc.args:
        return str(exc.args[0])
    return str(exc)


def main(argv: list[str] | None = None, runner: CommandRunner | None = None) -> int:
    """Run the CLI."""

    parser = build_parser()
    args = parser.parse_args(argv)
    config_path = args.config.resolve() if args.config else None
    try:
        logger = setup_logging(config_path, cli_level=logging.DEBUG if args.debug else None)
    except OSError as exc:
        # No handlers yet; the error reaches stderr through logging's last-resort handler.
        logging.getLogger("vaultbackup").error("Configuration error: logging setup failed: %s", exc)
        return int(ExitCode.CONFIG)
    logger.info("VaultRaftBackup run started.")

    local_config = load_local_config(config_path, logger)
    try:
        token = resolve_token(args.token, args.secrets)
        logger.debug("token source=%s", token.source)
        settings = build_settings(
            token.value,
            local_config,
            vault_path=args.vault_path,
            backup_dir=args.backup_dir,
            retention_days=args.retention_days,
            prune=args.prune,
            host=args.host,
            vault_addr=args.vault_addr,
            timeout=args.timeout,
            dry_run=args.dry_run,
            logger=logger,
        )
    except (TokenNotFoundError, SecretsConfigError, BackupConfigError) as exc:
        logger.error("Configuration error: %s", _error_text(exc))
        logger.info("VaultRaftBackup run finished.")
        return int(ExitCode.CONFIG)

    if settings.dry_run:
        logger.info("Dry run requested. No files will be deleted or written and no events recorded.")

    reporter = create_reporter(settings.event_channel, settings.event_source, enabled=not settings.dry_run)
    client = VaultClient.from_settings(settings, runner)
    started = datetime.now(timezone.utc)
    result = run_backup(settings, client, reporter)

    if args.summary_json:
        builder = RunSummaryBuilder(
            run_id=uuid.uuid4().hex,
            timestamp=started.isoformat(),
            dry_run=settings.dry_run,
            host=settings.host,
        )
        builder.record(result, reporter.events)
        try:
            builder.save(args.summary_json, logger)
        except OSError as exc:
            logger.warning('unable to save run summary path=%s reason="%s"', args.summary_json, exc)

    logger.info("VaultRaftBackup run finished exit_code=%d.", int(result.exit_code))
    return int(result.exit_code)


if __name__ == "__main__":
    raise SystemExit(main())
