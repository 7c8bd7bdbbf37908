# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: read-through trigger settings with a bounded-staleness cache.
Missing rows are cached too, so an org without settings does not hit the DB per log line.
"""
import threading
import time
from typing import Any, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from signal_engine.core.config import settings
from signal_engine.models.domain import TriggerSettings
from signal_engine.repositories.settings_repository import SettingsRepository

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

MAX_SUMMARY_LINES = 200


class TTLCache(Generic[K, V]):
    def __init__(self, ttl_seconds: float, timer: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._timer = timer
        self._entries: Dict[K, Tuple[float, V]] = {}
        self._lock = threading.Lock()

    def get_or_load(self, key: K, loader: Callable[[K], V], force: bool = False) -> V:
        now = self._timer()
        if not force:
            with self._lock:
                hit = self._entries.get(key)
            if hit is not None and hit[0] > now:
                return hit[1]
        value = loader(key)
        with self._lock:
            self._entries[key] = (now + self._ttl, value)
        return value

    def invalidate(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)


def resolve_trigger_settings(row: Optional[Dict[str, Any]]) -> TriggerSettings:
    """Merge a stored settings row over the process-wide defaults."""
    row = row or {}

    def pick(field: str, default: int) -> int:
        value = row.get(field)
        return default if value is None else int(value)

    lines = row.get("auto_incident_summary_lines")
    if lines is None or int(lines) <= 0:
        lines = settings.AUTO_INCIDENT_SUMMARY_LINES
    return TriggerSettings(
        enabled=bool(row.get("auto_incident_enabled") or False),
        error_threshold=pick("auto_incident_error_threshold", settings.AUTO_INCIDENT_ERROR_THRESHOLD),
        window_seconds=pick("auto_incident_window_seconds", settings.AUTO_INCIDENT_WINDOW_SECONDS),
        cooldown_seconds=pick("auto_incident_cooldown_seconds", settings.AUTO_INCIDENT_COOLDOWN_SECONDS),
        ai_summary_enabled=bool(row.get("auto_incident_ai_enabled") or False),
        summary_line_cap=min(MAX_SUMMARY_LINES, int(lines)),
    )


class SettingsCache:
    def __init__(self, repo: SettingsRepository,
                 ttl_seconds: float = settings.SETTINGS_CACHE_TTL_SECONDS,
                 timer: Callable[[], float] = time.monotonic) -> None:
        self._repo = repo
        self._cache: TTLCache[str, Optional[Dict[str, Any]]] = TTLCache(ttl_seconds, timer)

    def get(self, organization_id: str, force: bool = False) -> TriggerSettings:
        row = self._cache.get_or_load(organization_id, self._repo.get, force=force)
        return resolve_trigger_settings(row)

    def save(self, organization_id: str, fields: Dict[str, Any]) -> TriggerSettings:
        row = self._repo.upsert(organization_id, fields)
        self.invalidate(organization_id)
        return resolve_trigger_settings(row)

    def invalidate(self, organization_id: str) -> None:
        self._cache.invalidate(organization_id)
