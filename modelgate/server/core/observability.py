"""Bounded structured log for provider diagnostics.

The ObservabilityLog keeps the most recent ``capacity`` entries in append
order, evicting the oldest first. Every append notifies subscribers with an
immutable snapshot of the retained entries. Entries are also echoed to the
stdlib ``modelgate.console`` logger when the console filter allows it; the
filter only affects that echo, never what the structured log retains.

Usage:
    log = ObservabilityLog(capacity=500, console=ConsoleConfig(debug_mode=True))
    with log.subscribe(render):
        log.info("CONNECTION_TEST", "[START] Starting connection test")
"""

from __future__ import annotations

import json
import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from itertools import count
from types import TracebackType
from typing import Any

from modelgate.server.core.config import ConsoleConfig

logger = logging.getLogger(__name__)

console_logger = logging.getLogger("modelgate.console")


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    SUCCESS = 4


_STDLIB_LEVELS: dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SUCCESS: logging.INFO,
}


@dataclass(frozen=True)
class LogEntry:
    """One structured log record. Immutable once created."""

    id: int
    timestamp: datetime
    level: LogLevel
    category: str
    message: str
    data: Any = None
    provider_id: str | None = None
    provider_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.name,
            "category": self.category,
            "message": self.message,
            "data": self.data,
            "provider_id": self.provider_id,
            "provider_name": self.provider_name,
        }


Snapshot = tuple[LogEntry, ...]
Subscriber = Callable[[Snapshot], None]


class Subscription:
    """Handle returned by ObservabilityLog.subscribe.

    Unsubscribing is idempotent. Can be used as a context manager.
    """

    def __init__(self, log: ObservabilityLog, callback: Subscriber) -> None:
        self._log = log
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._log._remove_subscription(self)
            self.active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.unsubscribe()


# Substrings that mark an entry as operationally relevant
_OPERATIONAL_KEYWORDS = (
    "error",
    "critical",
    "failed",
    "connection",
    "network",
    "database",
    "auth",
    "response",
    "timeout",
    "rejected",
)
_OPERATIONAL_CATEGORIES = ("[SYSTEM]", "[AI_INIT]", "[PROVIDER", "[CONNECTION", "[DATABASE")
_SUCCESS_SPAM = ("monitoring active", "fully operational", "completed successfully")


class ConsoleFilter:
    """Decides whether an entry is also echoed to the console logger.

    Warnings and errors are always echoed, whatever the configuration.
    """

    def __init__(self, config: ConsoleConfig | None = None) -> None:
        self.config = config or ConsoleConfig()

    def should_echo(self, entry: LogEntry) -> bool:
        if entry.level in (LogLevel.WARN, LogLevel.ERROR):
            return True

        text = f"[{entry.category}] {entry.message}"
        lowered = text.lower()
        if "API" in text or any(keyword in lowered for keyword in _OPERATIONAL_KEYWORDS):
            return True
        if any(marker in text for marker in _OPERATIONAL_CATEGORIES):
            return True

        if self.config.console_level in ("warn", "error"):
            return False
        if entry.level == LogLevel.DEBUG and not self.config.debug_mode:
            return False
        if self.config.quiet_mode and entry.level == LogLevel.SUCCESS:
            if any(phrase in lowered for phrase in _SUCCESS_SPAM):
                return False
        return True


class ObservabilityLog:
    """Capacity-bounded, append-only structured log with subscribers.

    Safe to share between concurrent callers: ids come from a single counter
    and appends are serialized, so no entry is lost except by FIFO eviction.
    """

    def __init__(
        self,
        capacity: int = 1000,
        console: ConsoleConfig | None = None,
        sink: logging.Logger | None = None,
    ) -> None:
        """Initialize the log.

        Args:
            capacity: Maximum number of retained entries.
            console: Console echo filter configuration.
            sink: Logger used for the console echo. Defaults to ``modelgate.console``.
        """
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.console_filter = ConsoleFilter(console)
        self._sink = sink or console_logger
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._ids = count(1)
        self._lock = threading.RLock()
        self._subscriptions: list[Subscription] = []

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Appending
    # ------------------------------------------------------------------

    def append(
        self,
        level: LogLevel,
        category: str,
        message: str,
        data: Any = None,
        provider_id: str | None = None,
        provider_name: str | None = None,
    ) -> LogEntry:
        """Append an entry, notify subscribers and echo to the console."""
        if isinstance(data, dict):
            data = dict(data)

        with self._lock:
            entry = LogEntry(
                id=next(self._ids),
                timestamp=datetime.now(timezone.utc),
                level=level,
                category=category,
                message=message,
                data=data,
                provider_id=provider_id,
                provider_name=provider_name,
            )
            self._entries.append(entry)
            self._notify(tuple(self._entries))

        if self.console_filter.should_echo(entry):
            self._echo(entry)
        return entry

    def debug(
        self,
        category: str,
        message: str,
        data: Any = None,
        provider_id: str | None = None,
        provider_name: str | None = None,
    ) -> LogEntry:
        return self.append(LogLevel.DEBUG, category, message, data, provider_id, provider_name)

    def info(
        self,
        category: str,
        message: str,
        data: Any = None,
        provider_id: str | None = None,
        provider_name: str | None = None,
    ) -> LogEntry:
        return self.append(LogLevel.INFO, category, message, data, provider_id, provider_name)

    def warn(
        self,
        category: str,
        message: str,
        data: Any = None,
        provider_id: str | None = None,
        provider_name: str | None = None,
    ) -> LogEntry:
        return self.append(LogLevel.WARN, category, message, data, provider_id, provider_name)

    def error(
        self,
        category: str,
        message: str,
        data: Any = None,
        provider_id: str | None = None,
        provider_name: str | None = None,
    ) -> LogEntry:
        return self.append(LogLevel.ERROR, category, message, data, provider_id, provider_name)

    def success(
        self,
        category: str,
        message: str,
        data: Any = None,
        provider_id: str | None = None,
        provider_name: str | None = None,
    ) -> LogEntry:
        return self.append(LogLevel.SUCCESS, category, message, data, provider_id, provider_name)

    # ------------------------------------------------------------------
    # Provider helpers
    # ------------------------------------------------------------------

    def log_provider_test(
        self,
        provider_id: str | None,
        provider_name: str | None,
        stage: str,
        message: str,
        data: dict[str, Any] | None = None,
        category: str = "CONNECTION_TEST",
    ) -> LogEntry:
        """Log one stage of a provider operation as ``[STAGE] message``."""
        payload = {"stage": stage, **(data or {})}
        return self.info(category, f"[{stage}] {message}", payload, provider_id, provider_name)

    def log_provider_error(
        self,
        provider_id: str | None,
        provider_name: str | None,
        error: Any,
        context: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> LogEntry:
        """Log a provider failure.

        ``error`` may be a NormalizedError (anything with ``to_dict``), an
        exception or a plain string.
        """
        if hasattr(error, "to_dict"):
            message = getattr(error, "message", str(error))
            details: dict[str, Any] = {"error": error.to_dict()}
        elif isinstance(error, BaseException):
            message = str(error) or type(error).__name__
            details = {"error": {"error_type": type(error).__name__, "message": str(error)}}
        else:
            message = str(error) if error is not None else "Null or undefined error"
            details = {"error": message}

        details["context"] = context
        details.update(data or {})
        return self.error(
            "PROVIDER_ERROR",
            f"{context or 'Unknown'}: {message}",
            details,
            provider_id,
            provider_name,
        )

    def log_provider_success(
        self,
        provider_id: str | None,
        provider_name: str | None,
        operation: str,
        data: dict[str, Any] | None = None,
    ) -> LogEntry:
        return self.success(
            "PROVIDER_SUCCESS",
            f"{operation} completed successfully",
            data,
            provider_id,
            provider_name,
        )

    # ------------------------------------------------------------------
    # Queries and management
    # ------------------------------------------------------------------

    def get_logs(self) -> list[LogEntry]:
        """Return retained entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def get_logs_by_provider(self, provider_id: str) -> list[LogEntry]:
        with self._lock:
            return [entry for entry in self._entries if entry.provider_id == provider_id]

    def get_logs_by_level(self, level: LogLevel) -> list[LogEntry]:
        with self._lock:
            return [entry for entry in self._entries if entry.level == level]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._notify(())

    def clear_provider_logs(self, provider_id: str) -> None:
        """Drop every entry belonging to one provider."""
        with self._lock:
            kept = [entry for entry in self._entries if entry.provider_id != provider_id]
            self._entries = deque(kept, maxlen=self.capacity)
            self._notify(tuple(self._entries))

    def export_logs(self, provider_id: str | None = None) -> str:
        """Serialize the full or provider-scoped log as JSON records."""
        entries = self.get_logs_by_provider(provider_id) if provider_id else self.get_logs()
        return json.dumps([entry.to_dict() for entry in entries], indent=2, default=str)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Subscription:
        """Register a callback for snapshots on every change.

        Registering the same callback twice returns the existing subscription.
        """
        with self._lock:
            for subscription in self._subscriptions:
                if subscription.callback == callback:
                    return subscription
            subscription = Subscription(self, callback)
            self._subscriptions.append(subscription)
            return subscription

    def _remove_subscription(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s is not subscription]

    def _notify(self, snapshot: Snapshot) -> None:
        # Called with the lock held so snapshots reach subscribers in append order
        for subscription in list(self._subscriptions):
            try:
                subscription.callback(snapshot)
            except Exception:
                logger.exception("Log subscriber %r failed", subscription.callback)

    def _echo(self, entry: LogEntry) -> None:
        prefix = "SUCCESS " if entry.level == LogLevel.SUCCESS else ""
        if entry.data is None:
            self._sink.log(_STDLIB_LEVELS[entry.level], "%s[%s] %s", prefix, entry.category, entry.message)
        else:
            self._sink.log(
                _STDLIB_LEVELS[entry.level],
                "%s[%s] %s %s",
                prefix,
                entry.category,
                entry.message,
                entry.data,
            )
