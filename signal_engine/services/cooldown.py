# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Per-key trigger cooldown with an atomic check-and-set."""
import threading
from typing import Optional, Protocol

from signal_engine.models.domain import TriggerKey


class CooldownGate(Protocol):
    def in_cooldown(self, key: TriggerKey, now_ms: int, cooldown_ms: int) -> bool: ...

    def try_acquire(self, key: TriggerKey, now_ms: int, cooldown_ms: int) -> bool: ...

    def release(self, key: TriggerKey, acquired_at_ms: int) -> None: ...


class InMemoryCooldownGate:
    """Process-local gate. A multi-instance deployment needs a shared CAS store instead."""

    def __init__(self) -> None:
        self._last: dict[TriggerKey, int] = {}
        self._previous: dict[TriggerKey, Optional[int]] = {}
        self._lock = threading.Lock()

    def last_trigger_at(self, key: TriggerKey) -> Optional[int]:
        return self._last.get(key)

    def in_cooldown(self, key: TriggerKey, now_ms: int, cooldown_ms: int) -> bool:
        last = self._last.get(key)
        return last is not None and now_ms - last < cooldown_ms

    def try_acquire(self, key: TriggerKey, now_ms: int, cooldown_ms: int) -> bool:
        """Record ``now_ms`` as the last trigger unless ``key`` is still cooling down."""
        with self._lock:
            last = self._last.get(key)
            if last is not None and now_ms - last < cooldown_ms:
                return False
            self._previous[key] = last
            self._last[key] = now_ms
            return True

    def release(self, key: TriggerKey, acquired_at_ms: int) -> None:
        """Undo an acquisition that did not produce an incident."""
        with self._lock:
            if self._last.get(key) != acquired_at_ms:
                return
            previous = self._previous.pop(key, None)
            if previous is None:
                self._last.pop(key, None)
            else:
                self._last[key] = previous
