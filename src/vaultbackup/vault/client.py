"""Thin wrapper around the ``vault`` command line."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Sequence

from vaultbackup.core.models import BackupSettings, CommandResult

TOKEN_ENV = "VAULT_TOKEN"
ADDR_ENV = "VAULT_ADDR"

CommandRunner = Callable[[Sequence[str], Mapping[str, str], "float | None"], CommandResult]


class VaultClientError(RuntimeError):
    """Raised when a vault command cannot be started or does not finish."""


def run_command(args: Sequence[str], env: Mapping[str, str], timeout: float | None = None) -> CommandResult:
    """Run ``args`` to completion with captured output."""

    try:
        completed = subprocess.run(
            list(args),
            env=dict(env),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise VaultClientError(f"Command timed out after {timeout}s: {' '.join(args[1:])}") from exc
    except OSError as exc:
        raise VaultClientError(f"Unable to execute {args[0]}: {exc}") from exc

    return CommandResult(
        exit_code=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


@dataclass(slots=True)
class VaultClient:
    """Runs vault subcommands with the token in the child environment only."""

    executable: Path
    token: str = field(repr=False)
    addr: str | None = None
    timeout: float | None = None
    runner: CommandRunner = run_command

    @classmethod
    def from_settings(cls, settings: BackupSettings, runner: CommandRunner | None = None) -> "VaultClient":
        return cls(
            executable=settings.vault_path,
            token=settings.token,
            addr=settings.vault_addr,
            timeout=settings.timeout,
            runner=runner or run_command,
        )

    def child_env(self) -> dict[str, str]:
        """Environment block for one spawn. ``os.environ`` is left untouched."""

        env = dict(os.environ)
        env[TOKEN_ENV] = self.token
        if self.addr:
            env[ADDR_ENV] = self.addr
        return env

    def run(self, *args: str) -> CommandResult:
        command = [str(self.executable), *args]
        logger = logging.getLogger(__name__)
        logger.debug("executing vault command='%s'", " ".join(args))
        result = self.runner(command, self.child_env(), self.timeout)
        logger.debug(
            "vault command finished exit_code=%d stdout_bytes=%d stderr_bytes=%d",
            result.exit_code,
            len(result.stdout),
            len(result.stderr),
        )
        return result

    def snapshot_save(self, destination: Path) -> CommandResult:
        return self.run("operator", "raft", "snapshot", "save", str(destination))

    def token_renew(self) -> CommandResult:
        return self.run("token", "renew")
