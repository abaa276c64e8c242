"""Centralized logging configuration for etbridge.

All entry points should call configure_logging() early.

Logging Levels:
- DEBUG: Per-frame traffic (raw commands and responses)
- INFO: Connection attempts and successes, tracker messages
- WARNING: Failed connection attempts, malformed commands, backend failures
- ERROR: Lost connections, protocol errors, unhandled command types
"""

import json
import logging
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TextIO

# Default retention period for log files
DEFAULT_LOG_RETENTION_DAYS = 7

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _component(logger_name: str) -> str:
    # etbridge.bridge.connection -> bridge
    parts = logger_name.split(".")
    if len(parts) >= 2 and parts[0] == "etbridge":
        return parts[1]
    return parts[0]


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    suffix: str = ".jsonl",
) -> int:
    """Delete log files older than retention period.

    Returns:
        Number of files deleted.
    """
    if not logs_dir.exists():
        return 0

    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    deleted = 0

    for entry in logs_dir.iterdir():
        if not entry.is_file() or not entry.name.endswith(suffix):
            continue
        try:
            mtime = datetime.fromtimestamp(entry.stat().st_mtime, UTC)
            if mtime < cutoff:
                entry.unlink()
                deleted += 1
        except OSError:
            pass  # Ignore errors on individual files

    return deleted


class JSONLHandler(logging.Handler):
    """Handler that writes structured log entries to a JSONL file.

    Logs go to <logs_dir>/YYYY-MM-DD.jsonl, one JSON object per line, rotated
    daily. Old files are pruned on rotation.
    """

    def __init__(
        self,
        logs_dir: Path,
        retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    ):
        super().__init__()
        self._logs_dir = logs_dir
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        self._retention_days = retention_days
        self._current_date: str | None = None
        self._file: TextIO | None = None

    def _get_log_file(self) -> TextIO:
        """Get the current log file, rotating daily."""
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        if self._current_date != today or self._file is None:
            if self._file:
                self._file.close()
            self._current_date = today
            log_path = self._logs_dir / f"{today}.jsonl"
            self._file = log_path.open("a", encoding="utf-8")

            prune_old_logs(self._logs_dir, self._retention_days)

        return self._file

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "ts": datetime.now(UTC).isoformat(),
                "level": record.levelname,
                "component": _component(record.name),
                "logger": record.name,
                "message": record.getMessage(),
            }

            if record.exc_info:
                formatter = self.formatter or logging.Formatter()
                entry["exception"] = formatter.formatException(record.exc_info)

            log_file = self._get_log_file()
            log_file.write(json.dumps(entry) + "\n")
            log_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Formatter that exposes a short component name as %(component)s.

    - etbridge.bridge.connection -> bridge
    - etbridge.memory.ram -> memory
    """

    def format(self, record: logging.LogRecord) -> str:
        record.component = _component(record.name)
        return super().format(record)


def resolve_level(level: str | None) -> str:
    """Resolve a log level name, falling back to ETBRIDGE_LOG_LEVEL or INFO."""
    if level is None:
        level = os.environ.get("ETBRIDGE_LOG_LEVEL", "INFO")
    level = level.upper()
    if level not in LEVELS:
        level = "INFO"
    return level


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
) -> None:
    """Configure logging for etbridge.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses ETBRIDGE_LOG_LEVEL env var or INFO.
        use_rich: Use Rich handler for colorful console output.
        log_to_file: Also write logs to JSONL files in ~/.etbridge/logs/.
    """
    from etbridge.config.paths import get_logs_path

    log_level = getattr(logging, resolve_level(level))

    handlers: list[logging.Handler] = []

    if use_rich:
        from rich.logging import RichHandler

        console_handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    handlers.append(console_handler)

    if log_to_file:
        file_handler = JSONLHandler(get_logs_path())
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,
    )

    # asyncio logs every failed socket write at WARNING while reconnecting
    logging.getLogger("asyncio").setLevel(logging.ERROR)
