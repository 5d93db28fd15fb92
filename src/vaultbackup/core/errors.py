"""Failures that abort a backup run."""

from __future__ import annotations

from vaultbackup.core.models import ExitCode


class BackupStepError(RuntimeError):
    """Base class for errors raised by a run step.

    Every subclass maps to one process exit code. The message is what ends up
    in the failure event, so it should read well on its own.
    """

    exit_code: ExitCode = ExitCode.UNEXPECTED


class MissingExecutableError(BackupStepError):
    """Raised when the vault executable cannot be found."""

    exit_code = ExitCode.MISSING_EXECUTABLE


class MissingDirectoryError(BackupStepError):
    """Raised when the backup directory does not exist."""

    exit_code = ExitCode.MISSING_DIRECTORY


class BackupPermissionError(BackupStepError):
    """Raised when the backup directory is not writable."""

    exit_code = ExitCode.PERMISSION_DENIED


class PruneError(BackupStepError):
    """Raised when an expired backup cannot be removed."""

    exit_code = ExitCode.PRUNE_FAILED


class SubprocessFailureError(BackupStepError):
    """Raised when a vault command exits non-zero or cannot be run."""

    def __init__(self, message: str, exit_status: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_status = exit_status
        self.stderr = stderr


class SnapshotFailedError(SubprocessFailureError):
    exit_code = ExitCode.SNAPSHOT_FAILED


class TokenRenewError(SubprocessFailureError):
    exit_code = ExitCode.RENEW_FAILED
