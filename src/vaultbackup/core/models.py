"""Data models shared by the backup run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path


class ExitCode(IntEnum):
    """Process exit codes, one per failure class."""

    SUCCESS = 0
    UNEXPECTED = 1
    CONFIG = 2
    MISSING_EXECUTABLE = 3
    MISSING_DIRECTORY = 4
    PERMISSION_DENIED = 5
    PRUNE_FAILED = 6
    SNAPSHOT_FAILED = 7
    RENEW_FAILED = 8


class RunState(str, Enum):
    """States of a single backup run."""

    START = "start"
    CHECKING_PRECONDITIONS = "checking_preconditions"
    PRUNING = "pruning"
    SNAPSHOTTING = "snapshotting"
    RENEWING = "renewing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BackupSettings:
    """Immutable configuration for one run."""

    token: str = field(repr=False)
    vault_path: Path
    backup_dir: Path
    retention_days: int
    prune_enabled: bool
    host: str
    vault_addr: str | None = None
    timeout: float | None = None
    dry_run: bool = False
    event_channel: str = "Application"
    event_source: str = "VaultRaftBackup"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(slots=True)
class RunResult:
    """What a run reached and how it ended."""

    state: RunState = RunState.START
    last_step: RunState = RunState.START
    backup_path: Path | None = None
    pruned: list[Path] = field(default_factory=list)
    prune_performed: bool = False
    renewed: bool = False
    error: str | None = None
    exit_code: ExitCode = ExitCode.SUCCESS

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE
