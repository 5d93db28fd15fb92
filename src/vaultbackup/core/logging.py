"""Central logging configuration for VaultRaftBackup.

The ``logging`` section of the optional ``config/local.yml`` (read with
``load_local_config``) selects the log directory and verbosity. If the
configured directory is not writable, logs fall back to ``./logs`` with a
warning. Secrets are scrubbed from log messages and the ``step``
context is always present to satisfy the required format. Errors printed to
a terminal are coloured red.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from vaultbackup.core.config import DEFAULT_LOCAL_CONFIG, PROJECT_ROOT, load_local_config

DEFAULT_DIRECTORY = Path("/var/log/vaultbackup")
DEFAULT_FILENAME = "vaultbackup.log"
DEFAULT_LEVEL = logging.INFO
FALLBACK_DIRECTORY = Path("./logs")

LOG_FORMAT = "%(asctime)s | %(levelname)s | step=%(step)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

FAILURE_COLOR = "\033[31m"
RESET_COLOR = "\033[0m"


class LoggingSetupError(OSError):
    """Raised when no log directory can be written."""


@dataclass(slots=True)
class LoggingConfig:
    """Configuration values loaded from local.yml or defaults."""

    directory: Path
    filename: str
    level: int


class StepContextFilter(logging.Filter):
    """Ensure every record contains a step name."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - logging hook
        if not getattr(record, "step", None):
            record.step = "-"
        return True


class SecretScrubberFilter(logging.Filter):
    """Remove obvious secrets from log messages."""

    SECRET_PATTERN = re.compile(r"(password|secret|token)=([^\s]+)", re.IGNORECASE)
    VAULT_TOKEN_PATTERN = re.compile(r"\bhv[sbr]\.[A-Za-z0-9_\-]+")

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):  # pragma: no cover - malformed record
            return True

        cleaned = self.SECRET_PATTERN.sub(r"\1=***", message)
        cleaned = self.VAULT_TOKEN_PATTERN.sub("***", cleaned)
        if cleaned != message:
            record.msg = cleaned
            record.args = ()
        return True


class FailureColorFormatter(logging.Formatter):
    """Colour ERROR and above when writing to a terminal."""

    def __init__(self, fmt: str, datefmt: str, use_color: bool) -> None:
        super().__init__(fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if self.use_color and record.levelno >= logging.ERROR:
            return f"{FAILURE_COLOR}{text}{RESET_COLOR}"
        return text


def _load_logging_section(config_path: Path) -> Mapping[str, Any]:
    section = (load_local_config(config_path) or {}).get("logging")
    return section if isinstance(section, Mapping) else {}


def _level_from_value(raw_level: Any) -> int:
    if isinstance(raw_level, str):
        level_name = raw_level.upper()
        level = logging.getLevelName(level_name)
        if isinstance(level, int):
            return level
    if isinstance(raw_level, int):
        return raw_level
    return DEFAULT_LEVEL


def _parse_logging_config(config_path: Path) -> tuple[LoggingConfig, bool]:
    section = _load_logging_section(config_path)
    directory = section.get("directory")
    config = LoggingConfig(
        directory=Path(directory).expanduser() if directory else DEFAULT_DIRECTORY,
        filename=str(section.get("filename") or DEFAULT_FILENAME),
        level=_level_from_value(section.get("level")),
    )
    return config, not config_path.exists()


def _writable_log_directory(path: Path) -> bool:
    probe = path / ".vaultbackup-log-test"
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe.write_bytes(b"")
        probe.unlink()
    except OSError:
        return False
    return True


def _determine_log_directory(target: Path, fallback: Path) -> tuple[Path, bool]:
    if _writable_log_directory(target):
        return target, False
    if _writable_log_directory(fallback):
        return fallback, True
    raise LoggingSetupError(f"Neither '{target}' nor '{fallback}' is a writable logging directory.")


def _build_handlers(log_path: Path) -> list[logging.Handler]:
    filters: list[logging.Filter] = [StepContextFilter(), SecretScrubberFilter()]

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(
        FailureColorFormatter(LOG_FORMAT, LOG_DATE_FORMAT, use_color=sys.stdout.isatty())
    )

    for handler in (file_handler, stream_handler):
        for filter_ in filters:
            handler.addFilter(filter_)

    return [file_handler, stream_handler]


def setup_logging(
    config_path: str | Path | None = "config/local.yml", cli_level: int | None = None
) -> logging.Logger:
    """Configure application-wide logging.

    Parameters
    ----------
    config_path:
        Optional path to ``local.yml``. Defaults to ``config/local.yml``
        relative to the project root when not provided.
    cli_level:
        Level forced from the command line (``--debug``). Overrides the
        ``logging.level`` value of ``local.yml``.

    Raises ``LoggingSetupError`` when neither the configured directory nor
    ``./logs`` can be written.
    """

    config_file = Path(config_path) if config_path else DEFAULT_LOCAL_CONFIG
    if not config_file.is_absolute():
        config_file = PROJECT_ROOT / config_file
    config, missing_file = _parse_logging_config(config_file)
    if cli_level is not None:
        config.level = cli_level
    log_directory, used_fallback = _determine_log_directory(config.directory, FALLBACK_DIRECTORY)
    log_path = log_directory / config.filename

    handlers = _build_handlers(log_path)
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
        existing.close()
    root_logger.setLevel(config.level)
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger("vaultbackup")
    logger.setLevel(config.level)
    logger.propagate = True

    if missing_file:
        logger.info(
            "Logging configuration file '%s' not found. Using defaults (directory=%s, level=%s).",
            config_file,
            config.directory,
            logging.getLevelName(config.level),
        )

    if used_fallback:
        logger.warning(
            "Logging directory '%s' is not writable. Falling back to '%s'.",
            config.directory,
            log_directory,
        )

    logger.info("Logging initialized at %s", log_path)
    return logger
