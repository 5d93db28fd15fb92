"""Token renewal step."""

from __future__ import annotations

import logging

from vaultbackup.common.events import EventId, EventReporter
from vaultbackup.core.errors import TokenRenewError
from vaultbackup.vault.client import VaultClient, VaultClientError

logger = logging.getLogger(__name__)


def renew_token(client: VaultClient, reporter: EventReporter, dry_run: bool = False) -> bool:
    """Extend the TTL of the token used for backups."""

    if dry_run:
        logger.info("dry-run: would run '%s token renew'", client.executable)
        return False

    try:
        result = client.token_renew()
    except VaultClientError as exc:
        raise TokenRenewError(f"Token renewal failed: {exc}") from exc

    if not result.ok:
        detail = result.stderr.strip() or f"exit_status={result.exit_code}"
        logger.error("token renew failed status=%d", result.exit_code)
        raise TokenRenewError(
            f"Token renewal failed: {detail}", exit_status=result.exit_code, stderr=result.stderr
        )

    logger.info("token renewed")
    reporter.info(EventId.RENEW_SUCCESS, "Vault backup token renewed.")
    return True
