# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Sliding-window log buffer keyed by (organization, service).

Entries are kept in arrival order and only ever removed by ``prune``.
Buffers live in process memory and are lost on restart.
"""
import threading
from collections import defaultdict
from typing import Optional, Protocol

from signal_engine.metrics import BUFFERED_LOG_EVENTS
from signal_engine.models.domain import LogEvent, TriggerKey


class WindowedCounterStore(Protocol):
    def append(self, key: TriggerKey, event: LogEvent) -> None: ...

    def prune(self, key: TriggerKey, now_ms: int, ttl_ms: int) -> int: ...

    def count_since(self, key: TriggerKey, since_ms: int, level: Optional[str] = None) -> int: ...

    def recent(self, key: TriggerKey, limit: int, level: Optional[str] = None,
               since_ms: Optional[int] = None) -> list[LogEvent]: ...


class LogIntakeBuffer:
    """In-memory WindowedCounterStore. Not shared across server instances."""

    def __init__(self) -> None:
        self._buffers: dict[TriggerKey, list[LogEvent]] = defaultdict(list)
        self._lock = threading.Lock()
        self._size = 0

    # ── Write ──

    def append(self, key: TriggerKey, event: LogEvent) -> None:
        with self._lock:
            self._buffers[key].append(event)
            self._size += 1
        BUFFERED_LOG_EVENTS.set(self._size)

    def prune(self, key: TriggerKey, now_ms: int, ttl_ms: int) -> int:
        """Drop entries older than ``ttl_ms``. Returns how many were removed."""
        with self._lock:
            entries = self._buffers.get(key)
            if not entries:
                return 0
            fresh = [e for e in entries if now_ms - e.timestamp_ms <= ttl_ms]
            removed = len(entries) - len(fresh)
            self._buffers[key] = fresh
            self._size -= removed
        BUFFERED_LOG_EVENTS.set(self._size)
        return removed

    # ── Read ──

    def count_since(self, key: TriggerKey, since_ms: int, level: Optional[str] = None) -> int:
        with self._lock:
            return sum(
                1 for e in self._buffers.get(key, ())
                if e.timestamp_ms >= since_ms and (level is None or e.level == level)
            )

    def recent(self, key: TriggerKey, limit: int, level: Optional[str] = None,
               since_ms: Optional[int] = None) -> list[LogEvent]:
        """Most recent ``limit`` entries in arrival order, optionally filtered."""
        if limit <= 0:
            return []
        with self._lock:
            matched = [
                e for e in self._buffers.get(key, ())
                if (level is None or e.level == level)
                and (since_ms is None or e.timestamp_ms >= since_ms)
            ]
        return matched[-limit:]

    def entries(self, key: TriggerKey) -> list[LogEvent]:
        with self._lock:
            return list(self._buffers.get(key, ()))

    def size(self) -> int:
        return self._size

    def key_count(self) -> int:
        return len(self._buffers)
