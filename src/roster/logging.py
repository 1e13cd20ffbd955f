"""Logging setup for Roster.

Entry points call configure_logging() once at startup. Modules log short
snake_case event names and put details in ``extra``:

    logger.info("tool_executed", extra={"tool.name": "people_get"})

Levels:
- DEBUG: storage calls, config resolution, per-person repository events
- INFO: one line per tool call (tools/executor.py)
- WARNING: recoverable problems such as malformed stored documents
- ERROR: failed operations

Log files hold whatever the registry was asked to store, so everything
written to them goes through PIIRedactor first.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, TextIO

logger = logging.getLogger(__name__)

LEVEL_ENV_VAR = "ROSTER_LOG_LEVEL"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_LEVEL = "WARNING"
DEFAULT_LOG_RETENTION_DAYS = 7

DEFAULT_REDACT_PATTERNS: list[str] = [
    # Email addresses
    r"\b([A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,})\b",
    # Phone numbers: optional +country, at least 7 digits with separators
    r"(?<![\w-])(\+?\d[\d\s().-]{5,}\d)(?![\w-])",
]

# Loggers whose INFO output drowns out ours
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite")

# Present on every LogRecord; anything else arrived through extra=
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "component"}

_MIN_PHONE_DIGITS = 7


def _compile(patterns: list[str]) -> list[re.Pattern[str]]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


@dataclass
class PIIRedactor:
    """Masks email addresses and phone numbers.

    A match keeps its first and last two characters (``ma***om``) so log
    lines about the same person can still be correlated.
    """

    patterns: list[re.Pattern[str]] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.patterns:
            self.patterns = _compile(DEFAULT_REDACT_PATTERNS)

    def redact(self, text: str) -> str:
        if not (self.enabled and text):
            return text
        for pattern in self.patterns:
            text = pattern.sub(self._mask, text)
        return text

    def redact_value(self, value: Any) -> Any:
        """Redact strings nested anywhere inside dicts, lists and tuples."""
        if isinstance(value, str):
            return self.redact(value)
        if isinstance(value, dict):
            return {k: self.redact_value(v) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [self.redact_value(v) for v in value]
        return value

    @staticmethod
    def _mask(match: re.Match[str]) -> str:
        whole = match.group(0)
        secret = match.group(1) if match.lastindex else whole
        if "***" in secret:
            return whole
        if "@" not in secret and sum(c.isdigit() for c in secret) < _MIN_PHONE_DIGITS:
            return whole
        masked = "***" if len(secret) < 8 else f"{secret[:2]}***{secret[-2:]}"
        return whole.replace(secret, masked)


_redactor = PIIRedactor()


def configure_redaction(
    enabled: bool = True, extra_patterns: list[str] | None = None
) -> None:
    """Replace the redactor used for file output."""
    global _redactor
    patterns = _compile(DEFAULT_REDACT_PATTERNS + list(extra_patterns or []))
    _redactor = PIIRedactor(patterns=patterns, enabled=enabled)


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    suffix: str = ".jsonl",
) -> int:
    """Delete ``*<suffix>`` files in logs_dir older than retention_days.

    Returns the number of files deleted.
    """
    if not logs_dir.is_dir():
        return 0

    cutoff = (datetime.now(UTC) - timedelta(days=retention_days)).timestamp()
    deleted = 0
    for path in logs_dir.glob(f"*{suffix}"):
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                deleted += 1
        except OSError:
            logger.debug("log_prune_failed", extra={"file.name": path.name})
    return deleted


def _component(logger_name: str) -> str:
    """roster.storage.sql -> storage; other libraries keep their top name."""
    head, _, rest = logger_name.partition(".")
    if head == "roster" and rest:
        return rest.split(".", 1)[0]
    return head


def _extra(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class JSONLHandler(logging.Handler):
    """Writes one redacted JSON object per record to ``<logs_dir>/<date>.jsonl``.

    A new file is started each UTC day; opening it also prunes files older
    than the retention period.
    """

    def __init__(
        self,
        logs_dir: Path,
        retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    ):
        super().__init__()
        logs_dir.mkdir(parents=True, exist_ok=True)
        self._logs_dir = logs_dir
        self._retention_days = retention_days
        self._day: str | None = None
        self._stream: TextIO | None = None

    def _open_for_today(self) -> TextIO:
        today = datetime.now(UTC).date().isoformat()
        if self._stream is not None and self._day == today:
            return self._stream
        if self._stream is not None:
            self._stream.close()
        self._day = today
        self._stream = (self._logs_dir / f"{today}.jsonl").open("a", encoding="utf-8")
        prune_old_logs(self._logs_dir, self._retention_days)
        return self._stream

    def _entry(self, record: logging.LogRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "component": _component(record.name),
            "logger": record.name,
            "message": _redactor.redact(record.getMessage()),
        }
        if record.exc_info:
            formatter = self.formatter or logging.Formatter()
            entry["exception"] = _redactor.redact(
                formatter.formatException(record.exc_info)
            )
        if extra := _extra(record):
            entry["extra"] = _redactor.redact_value(
                json.loads(json.dumps(extra, default=str))
            )
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream = self._open_for_today()
            stream.write(json.dumps(self._entry(record), ensure_ascii=False) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Adds ``%(component)s``: the roster subpackage a record came from."""

    def format(self, record: logging.LogRecord) -> str:
        record.component = _component(record.name)
        return super().format(record)


def _resolve_level(level: str | None) -> str:
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, DEFAULT_LEVEL)
    level = level.upper()
    return level if level in LEVELS else DEFAULT_LEVEL


def _console_handler(use_rich: bool) -> logging.Handler:
    if use_rich:
        from rich.logging import RichHandler

        rich_handler = RichHandler(show_path=False, markup=False)
        rich_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
        return rich_handler

    handler = logging.StreamHandler()
    handler.setFormatter(
        ComponentFormatter(
            "%(asctime)s %(levelname)-7s %(component)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    return handler


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
    logs_dir: Path | None = None,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
) -> None:
    """Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to ROSTER_LOG_LEVEL,
            then WARNING; unrecognized values also fall back to WARNING.
        use_rich: Render console output with rich.
        log_to_file: Also write redacted JSONL files.
        logs_dir: Where JSONL files go (defaults to <home>/logs).
        retention_days: How long JSONL files are kept.
    """
    log_level = getattr(logging, _resolve_level(level))
    handlers = [_console_handler(use_rich)]

    if log_to_file:
        if logs_dir is None:
            from roster.config.paths import get_logs_path

            logs_dir = get_logs_path()
        handlers.append(JSONLHandler(logs_dir, retention_days=retention_days))

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
