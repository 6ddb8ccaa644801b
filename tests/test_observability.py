"""Tests for the observability log."""

import json
import logging
import threading

import pytest

from modelgate.server.core.config import ConsoleConfig
from modelgate.server.core.errors import normalize_error
from modelgate.server.core.observability import ConsoleFilter, LogEntry, LogLevel, ObservabilityLog


def _entry(level: LogLevel, category: str = "UI", message: str = "rendered") -> LogEntry:
    log = ObservabilityLog(capacity=1)
    return log.append(level, category, message)


# ============================================================================
# Capacity and ordering
# ============================================================================


class TestCapacity:
    def test_evicts_oldest_first(self):
        log = ObservabilityLog(capacity=1000)

        for i in range(1050):
            log.info("TEST", f"entry {i}")

        entries = log.get_logs()
        assert len(log) == 1000
        assert [e.message for e in entries] == [f"entry {i}" for i in range(50, 1050)]

    def test_ids_are_monotonic(self):
        log = ObservabilityLog(capacity=5)

        for i in range(8):
            log.info("TEST", str(i))

        ids = [e.id for e in log.get_logs()]
        assert ids == [4, 5, 6, 7, 8]

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            ObservabilityLog(capacity=capacity)

    def test_concurrent_appends_lose_nothing(self):
        log = ObservabilityLog(capacity=10_000)

        def worker(n: int) -> None:
            for i in range(200):
                log.info("TEST", f"{n}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        entries = log.get_logs()
        assert len(entries) == 1600
        assert len({e.id for e in entries}) == 1600
        assert [e.id for e in entries] == sorted(e.id for e in entries)

    def test_entries_are_immutable(self):
        entry = ObservabilityLog().info("TEST", "frozen")

        with pytest.raises(AttributeError):
            entry.message = "changed"  # type: ignore[misc]


# ============================================================================
# Queries, clearing and export
# ============================================================================


class TestQueries:
    def test_filters(self):
        log = ObservabilityLog()
        log.info("A", "one", provider_id="p1")
        log.error("A", "two", provider_id="p2")
        log.success("A", "three", provider_id="p1")

        assert [e.message for e in log.get_logs_by_provider("p1")] == ["one", "three"]
        assert [e.message for e in log.get_logs_by_level(LogLevel.ERROR)] == ["two"]

    def test_clear_provider_logs(self):
        log = ObservabilityLog()
        log.info("A", "one", provider_id="p1")
        log.info("A", "two", provider_id="p2")

        log.clear_provider_logs("p1")

        assert [e.provider_id for e in log.get_logs()] == ["p2"]

    def test_clear_notifies_with_empty_snapshot(self):
        log = ObservabilityLog()
        log.info("A", "one")
        snapshots = []
        log.subscribe(snapshots.append)

        log.clear()

        assert snapshots == [()]
        assert len(log) == 0

    def test_export_logs(self):
        log = ObservabilityLog()
        log.warn("CONNECTION_TEST", "slow", {"latency_ms": 900}, "p1", "Provider One")
        log.info("SYSTEM", "other", provider_id="p2")

        records = json.loads(log.export_logs("p1"))

        assert len(records) == 1
        record = records[0]
        assert record["level"] == "WARN"
        assert record["category"] == "CONNECTION_TEST"
        assert record["data"] == {"latency_ms": 900}
        assert record["provider_name"] == "Provider One"
        assert record["timestamp"].endswith("+00:00")

    def test_export_all(self):
        log = ObservabilityLog()
        log.info("A", "one")
        log.info("A", "two")

        assert len(json.loads(log.export_logs())) == 2


# ============================================================================
# Provider helpers
# ============================================================================


class TestProviderHelpers:
    def test_log_provider_test(self):
        log = ObservabilityLog()

        entry = log.log_provider_test("p1", "Grok", "GROK_CHAT", "POST chat", {"model": "grok-beta"})

        assert entry.message == "[GROK_CHAT] POST chat"
        assert entry.category == "CONNECTION_TEST"
        assert entry.data == {"stage": "GROK_CHAT", "model": "grok-beta"}

    def test_log_provider_error_with_normalized_error(self):
        log = ObservabilityLog()

        entry = log.log_provider_error("p1", "Grok", normalize_error(401), context="Connection test")

        assert entry.level == LogLevel.ERROR
        assert entry.category == "PROVIDER_ERROR"
        assert entry.message == "Connection test: HTTP 401"
        assert entry.data["error"]["kind"] == "unauthorized"

    def test_log_provider_error_with_exception_and_none(self):
        log = ObservabilityLog()

        from_exc = log.log_provider_error("p1", "X", RuntimeError("kaput"))
        from_none = log.log_provider_error("p1", "X", None)

        assert from_exc.message == "Unknown: kaput"
        assert from_none.message == "Unknown: Null or undefined error"

    def test_log_provider_success(self):
        entry = ObservabilityLog().log_provider_success("p1", "X", "Model discovery", {"model_count": 3})

        assert entry.level == LogLevel.SUCCESS
        assert entry.message == "Model discovery completed successfully"


# ============================================================================
# Subscribers
# ============================================================================


class TestSubscribers:
    def test_snapshot_per_append_in_order(self):
        log = ObservabilityLog()
        calls = []
        log.subscribe(lambda snapshot: calls.append(("first", len(snapshot))))
        log.subscribe(lambda snapshot: calls.append(("second", len(snapshot))))

        log.info("A", "one")
        log.info("A", "two")

        assert calls == [("first", 1), ("second", 1), ("first", 2), ("second", 2)]

    def test_snapshot_is_immutable_tuple(self):
        log = ObservabilityLog()
        snapshots = []
        log.subscribe(snapshots.append)

        log.info("A", "one")

        assert isinstance(snapshots[0], tuple)

    def test_subscribe_is_idempotent(self):
        log = ObservabilityLog()
        received = []

        first = log.subscribe(received.append)
        second = log.subscribe(received.append)
        log.info("A", "one")

        assert first is second
        assert len(received) == 1

    def test_unsubscribe_is_idempotent(self):
        log = ObservabilityLog()
        received = []
        subscription = log.subscribe(received.append)

        subscription.unsubscribe()
        subscription.unsubscribe()
        log.info("A", "one")

        assert received == []

    def test_context_manager_unsubscribes(self):
        log = ObservabilityLog()
        received = []

        with log.subscribe(received.append):
            log.info("A", "inside")
        log.info("A", "outside")

        assert len(received) == 1

    def test_failing_subscriber_does_not_stop_others(self, caplog):
        log = ObservabilityLog()
        received = []

        def broken(snapshot):
            raise RuntimeError("subscriber broke")

        log.subscribe(broken)
        log.subscribe(received.append)

        with caplog.at_level(logging.ERROR, logger="modelgate.server.core.observability"):
            log.info("A", "one")

        assert len(received) == 1
        assert len(log) == 1
        assert "subscriber" in caplog.text.lower()


# ============================================================================
# Console echo
# ============================================================================


class TestConsoleFilter:
    def test_warn_and_error_always_echo(self):
        console = ConsoleFilter(ConsoleConfig(console_level="error"))

        assert console.should_echo(_entry(LogLevel.WARN))
        assert console.should_echo(_entry(LogLevel.ERROR))

    def test_operational_keywords_echo(self):
        console = ConsoleFilter(ConsoleConfig(console_level="error"))

        assert console.should_echo(_entry(LogLevel.INFO, message="Connection established"))
        assert console.should_echo(_entry(LogLevel.DEBUG, message="Calling the API"))
        assert console.should_echo(_entry(LogLevel.INFO, category="PROVIDER_SUCCESS"))

    def test_error_level_hides_routine_entries(self):
        console = ConsoleFilter(ConsoleConfig(console_level="error"))

        assert not console.should_echo(_entry(LogLevel.INFO))
        assert not console.should_echo(_entry(LogLevel.SUCCESS))

    def test_debug_hidden_unless_debug_mode(self):
        assert not ConsoleFilter(ConsoleConfig()).should_echo(_entry(LogLevel.DEBUG))
        assert ConsoleFilter(ConsoleConfig(debug_mode=True)).should_echo(_entry(LogLevel.DEBUG))

    def test_quiet_mode_hides_success_spam(self):
        console = ConsoleFilter(ConsoleConfig(quiet_mode=True))

        assert not console.should_echo(_entry(LogLevel.SUCCESS, message="Monitoring active"))
        assert console.should_echo(_entry(LogLevel.SUCCESS, message="Cache warmed"))

    def test_filter_only_affects_echo(self, caplog):
        log = ObservabilityLog(console=ConsoleConfig(console_level="error"))

        with caplog.at_level(logging.DEBUG, logger="modelgate.console"):
            log.info("UI", "rendered")
            log.warn("UI", "slow render")

        assert len(log) == 2
        assert "rendered" not in caplog.text
        assert "slow render" in caplog.text
