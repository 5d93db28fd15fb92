"""Configuration helpers for VaultRaftBackup.

Every setting is resolved with the priority CLI > ``local.yml`` > default.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import yaml

from vaultbackup.core.models import BackupSettings
from vaultbackup.core.storage import check_host, default_host

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_LOCAL_CONFIG = PROJECT_ROOT / "config" / "local.yml"

DEFAULT_VAULT_PATH = Path("/usr/local/bin/vault")
DEFAULT_BACKUP_DIR = Path("/var/backups/vault")
DEFAULT_RETENTION_DAYS = 7
DEFAULT_EVENT_CHANNEL = "Application"
DEFAULT_EVENT_SOURCE = "VaultRaftBackup"


class BackupConfigError(ValueError):
    """Raised when a configuration value is invalid."""


def load_local_config(
    config_path: str | Path | None = None, logger: logging.Logger | None = None
) -> Mapping[str, Any] | None:
    """Load local.yml if it exists and return the mapping."""

    config_file = Path(config_path) if config_path else DEFAULT_LOCAL_CONFIG
    if not config_file.is_absolute():
        config_file = PROJECT_ROOT / config_file

    if logger:
        logger.debug("loading local config from %s", config_file)

    if not config_file.exists():
        if logger:
            logger.debug("local config not found at %s", config_file)
        return None

    try:
        with config_file.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        if logger:
            logger.warning("unable to read local config file=%s reason=\"%s\"", config_file, exc)
        return None

    return data if isinstance(data, Mapping) else None


def _section(local_cfg: Mapping[str, Any] | None, name: str) -> Mapping[str, Any]:
    if not isinstance(local_cfg, Mapping):
        return {}
    section = local_cfg.get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise BackupConfigError(f"local.yml: section '{name}' must be a mapping.")
    return section


def _pick(cli_value: Any, section: Mapping[str, Any], key: str, default: Any) -> Any:
    if cli_value is not None:
        return cli_value
    value = section.get(key)
    return default if value is None else value


def _validate_path(value: Any, field: str) -> Path:
    if isinstance(value, Path):
        return value.expanduser()
    if not isinstance(value, str) or not value:
        raise BackupConfigError(f"{field} must be a non-empty path.")
    return Path(value).expanduser()


def _validate_retention(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise BackupConfigError("retention_days must be an integer.")
    if value < 0:
        raise BackupConfigError("retention_days must be zero or greater.")
    return value


def _validate_timeout(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise BackupConfigError("timeout must be a number of seconds.")
    if value <= 0:
        raise BackupConfigError("timeout must be greater than zero.")
    return float(value)


def _validate_flag(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise BackupConfigError(f"{field} must be true or false.")
    return value


def _validate_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BackupConfigError(f"{field} must be a non-empty string.")
    return value.strip()


def _validate_host(value: Any) -> str:
    host = _validate_text(value, "host")
    try:
        return check_host(host)
    except ValueError as exc:
        raise BackupConfigError(f"host: {exc}") from exc


def build_settings(
    token: str,
    local_cfg: Mapping[str, Any] | None = None,
    *,
    vault_path: str | Path | None = None,
    backup_dir: str | Path | None = None,
    retention_days: int | None = None,
    prune: bool | None = None,
    host: str | None = None,
    vault_addr: str | None = None,
    timeout: float | None = None,
    dry_run: bool = False,
    logger: logging.Logger | None = None,
) -> BackupSettings:
    """Merge CLI values, local.yml and defaults into validated settings."""

    logger = logger or logging.getLogger(__name__)
    vault_section = _section(local_cfg, "vault")
    backup_section = _section(local_cfg, "backup")
    events_section = _section(local_cfg, "events")

    addr = _pick(vault_addr, vault_section, "addr", None)
    settings = BackupSettings(
        token=_validate_text(token, "token"),
        vault_path=_validate_path(_pick(vault_path, vault_section, "path", DEFAULT_VAULT_PATH), "vault.path"),
        backup_dir=_validate_path(
            _pick(backup_dir, backup_section, "directory", DEFAULT_BACKUP_DIR), "backup.directory"
        ),
        retention_days=_validate_retention(
            _pick(retention_days, backup_section, "retention_days", DEFAULT_RETENTION_DAYS)
        ),
        prune_enabled=_validate_flag(_pick(prune, backup_section, "prune", False), "backup.prune"),
        host=_validate_host(_pick(host, backup_section, "host", None) or default_host()),
        vault_addr=_validate_text(addr, "vault.addr") if addr is not None else None,
        timeout=_validate_timeout(_pick(timeout, vault_section, "timeout", None)),
        dry_run=dry_run,
        event_channel=_validate_text(
            _pick(None, events_section, "channel", DEFAULT_EVENT_CHANNEL), "events.channel"
        ),
        event_source=_validate_text(
            _pick(None, events_section, "source", DEFAULT_EVENT_SOURCE), "events.source"
        ),
    )

    logger.debug(
        "settings resolved vault=%s backup_dir=%s retention_days=%d prune=%s host=%s timeout=%s dry_run=%s",
        settings.vault_path,
        settings.backup_dir,
        settings.retention_days,
        settings.prune_enabled,
        settings.host,
        settings.timeout,
        settings.dry_run,
    )
    return settings
