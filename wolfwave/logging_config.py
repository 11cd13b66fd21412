r"""
Logging configuration module for the WolfWave Twitch bot.

Sets up colorlog output on stderr, masks OAuth tokens in log lines and keeps
a per-process tally of structured errors that is reported on exit.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

import colorlog

DEBUG_ENV = "DEBUG"
_DEBUG_VALUES = ("true", "1", "yes")
_MAX_RECORDS_PER_TYPE = 1000


class TokenRedactionFilter(logging.Filter):
    """Filter that masks OAuth tokens accidentally included in log messages."""

    def __init__(self, markers: tuple[str, ...] = ("oauth:", "Bearer ")) -> None:
        super().__init__()
        self.markers = markers

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for marker in self.markers:
            if marker not in redacted:
                continue
            head, _, tail = redacted.partition(marker)
            _secret, sep, rest = tail.partition(" ")
            redacted = f"{head}{marker}***{sep}{rest}"
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


@dataclass
class ErrorRecord:
    timestamp: float
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class ErrorAggregator:
    """Counts structured errors by category for the lifetime of the process.

    Only the most recent occurrences of each category are kept.
    """

    def __init__(self) -> None:
        self._records: dict[str, deque[ErrorRecord]] = defaultdict(
            lambda: deque(maxlen=_MAX_RECORDS_PER_TYPE)
        )
        self._lock = threading.Lock()
        self._started = time.time()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        with self._lock:
            self._records[error_type].append(
                ErrorRecord(time.time(), message, dict(context or {}))
            )

    def get_error_summary(self) -> dict[str, Any]:
        """Return totals, last-hour counts and hourly rate per category."""
        now = time.time()
        hours = max((now - self._started) / 3600, 1)
        with self._lock:
            snapshot = {k: list(v) for k, v in self._records.items() if v}
        summary: dict[str, Any] = {}
        for error_type, records in snapshot.items():
            last = records[-1]
            summary[error_type] = {
                "total_count": len(records),
                "recent_count": sum(1 for r in records if now - r.timestamp < 3600),
                "rate_per_hour": len(records) / hours,
                "last_occurrence": {
                    "timestamp": last.timestamp,
                    "message": last.message,
                    "context": last.context,
                },
            }
        return summary

    def should_alert(self, error_type: str, threshold_rate: float = 10.0) -> bool:
        stats = self.get_error_summary().get(error_type)
        return bool(stats) and stats["rate_per_hour"] > threshold_rate

    def reset(self) -> None:
        """Forget all recorded errors."""
        with self._lock:
            self._records.clear()
            self._started = time.time()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("📊 No errors recorded in current session")
            return
        logging.warning("🚨 Error summary report")
        for error_type, stats in sorted(summary.items()):
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour, "
                f"{stats['rate_per_hour']:.1f}/hour, "
                f"last: {stats['last_occurrence']['message']}"
            )


# Global error aggregator instance
error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with a category prefix and record it for the exit summary.

    Args:
        error_type: Category of the error (e.g. 'network', 'auth', 'config').
        message: Descriptive error message.
        exception: The exception that occurred, if any.
        context: Additional key/value data appended to the line.
        level: Logging level (default: ERROR).
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {str(exception)}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))

    error_aggregator.record_error(error_type, message, context)
    if error_aggregator.should_alert(error_type):
        rate = error_aggregator.get_error_summary()[error_type]["rate_per_hour"]
        logging.critical(f"🚨 High error rate: {error_type} at {rate:.1f}/hour")


def _level_from_env() -> int:
    if os.environ.get(DEBUG_ENV, "").lower() in _DEBUG_VALUES:
        return logging.DEBUG
    return logging.INFO


def _build_formatter() -> colorlog.ColoredFormatter:
    return colorlog.ColoredFormatter(
        "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "magenta",
        },
        secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
        reset=True,
    )


class LoggerConfigurator:
    """Configures root logging once per process.

    ``DEBUG=true|1|yes`` selects DEBUG level, anything else INFO.
    """

    def __init__(self) -> None:
        self._configured = False

    def configure(self) -> None:
        if self._configured:
            return
        level = _level_from_env()
        formatter = _build_formatter()

        handler = logging.StreamHandler(sys.stderr)
        logging.basicConfig(level=level, handlers=[handler])

        root = logging.getLogger()
        root.setLevel(level)
        for existing in root.handlers:
            existing.setFormatter(formatter)
            existing.addFilter(TokenRedactionFilter())

        # Library chatter stays at INFO even in debug mode
        for name in ("websockets", "keyring", "asyncio"):
            logging.getLogger(name).setLevel(logging.INFO)

        atexit.register(self._log_final_error_summary)
        self._configured = True

    @staticmethod
    def _log_final_error_summary() -> None:
        logging.info("📊 Final error summary before shutdown:")
        error_aggregator.log_summary_report()
