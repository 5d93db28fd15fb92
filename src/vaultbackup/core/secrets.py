"""Vault token resolution.

The token can come from the command line, the ``VAULTBACKUP_TOKEN``
environment variable, or ``config/secrets.yml``. The first one set wins. A
missing token is a fail-fast error: the run does not start without one.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

logger = logging.getLogger(__name__)

TOKEN_ENV = "VAULTBACKUP_TOKEN"
DEFAULT_SECRETS_PATH = Path("config/secrets.yml")


class SecretsConfigError(ValueError):
    """Raised when the secrets file is missing required structure."""


class TokenNotFoundError(KeyError):
    """Raised when no token is configured anywhere."""


@dataclass(slots=True)
class ResolvedToken:
    """A token together with where it was found."""

    value: str
    source: str

    def __repr__(self) -> str:
        return f"ResolvedToken(value='***', source={self.source!r})"


def _load_file_token(path: Path) -> str | None:
    """Return ``vault.token`` from a secrets YAML file, if any.

    Expected structure::

        vault:
          token: hvs.XXXX
    """

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw_data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise SecretsConfigError(f"Unable to read secrets file: {path}") from exc

    if not isinstance(raw_data, Mapping):
        raise SecretsConfigError("Top-level secrets.yml structure must be a mapping.")

    vault_section = raw_data.get("vault")
    if vault_section is None:
        return None
    if not isinstance(vault_section, Mapping):
        raise SecretsConfigError("Field 'vault' in secrets.yml must be a mapping.")

    token = vault_section.get("token")
    if token is None:
        return None
    if not isinstance(token, str):
        raise SecretsConfigError("Field 'vault.token' in secrets.yml must be a string.")
    return token or None


def resolve_token(cli_token: str | None = None, secrets_path: Path | None = DEFAULT_SECRETS_PATH) -> ResolvedToken:
    """Resolve the vault token.

    Resolution order:
    1. ``--token`` on the command line
    2. Environment variable ``VAULTBACKUP_TOKEN``
    3. ``vault.token`` in ``secrets.yml`` (if present)
    """

    if cli_token:
        return ResolvedToken(cli_token, "cli")

    env_value = os.getenv(TOKEN_ENV)
    if env_value:
        return ResolvedToken(env_value, "env")

    if secrets_path is not None and secrets_path.exists():
        file_token = _load_file_token(secrets_path)
        logger.debug("secrets file loaded path=%s token_present=%s", secrets_path, file_token is not None)
        if file_token:
            return ResolvedToken(file_token, "secrets_yml")

    raise TokenNotFoundError(
        f"Vault token not provided. Use --token, set {TOKEN_ENV}, or add vault.token to {secrets_path}."
    )
