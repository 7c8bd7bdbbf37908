# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: cached public status.

A cached snapshot is served until it is stale by either signal:
  * timer: older than STATUS_STALE_SECONDS
  * activity: an incident or incident update changed after it was computed
Recompute failures propagate; there is no safe fallback payload.
"""
import time
from datetime import datetime, timedelta
from typing import Optional

from signal_engine.core.clock import Clock, utc_now
from signal_engine.core.config import settings
from signal_engine.core.logging import get_logger
from signal_engine.metrics import STATUS_CACHE_LOOKUPS, STATUS_SNAPSHOT_LATENCY
from signal_engine.models.domain import StatusCacheRecord
from signal_engine.repositories.incident_repository import IncidentRepository
from signal_engine.repositories.service_repository import ServiceRepository
from signal_engine.repositories.status_cache_repository import StatusCacheRepository
from signal_engine.services.status_snapshot import StatusSnapshot, build_status_snapshot

logger = get_logger(__name__)


def is_timer_stale(cache_updated_at: datetime, now: datetime, stale_seconds: float) -> bool:
    return abs((now - cache_updated_at).total_seconds()) > stale_seconds


def is_activity_stale(cache_updated_at: datetime,
                      latest_incident_at: Optional[datetime],
                      latest_update_at: Optional[datetime]) -> bool:
    activity = [t for t in (latest_incident_at, latest_update_at) if t is not None]
    return bool(activity) and max(activity) > cache_updated_at


class StatusService:
    def __init__(self, incident_repo: IncidentRepository, service_repo: ServiceRepository,
                 cache_repo: StatusCacheRepository, clock: Clock = utc_now,
                 stale_seconds: float = settings.STATUS_STALE_SECONDS) -> None:
        self._incidents = incident_repo
        self._services = service_repo
        self._cache = cache_repo
        self._clock = clock
        self._stale_seconds = stale_seconds

    def compute(self) -> StatusSnapshot:
        now = self._clock()
        return build_status_snapshot(
            active_incidents=self._incidents.find_active(),
            services=self._services.list_all(),
            incidents_last_24h=self._incidents.count_created_since(now - timedelta(hours=24)),
        )

    def refresh(self, reason: str = "manual") -> StatusCacheRecord:
        """Recompute and persist unconditionally."""
        start = time.time()
        snapshot = self.compute()
        record = self._cache.upsert(StatusCacheRecord(
            state=snapshot.state,
            uptime24h=snapshot.uptime24h,
            payload=snapshot.payload,
            updated_at=self._clock(),
        ))
        STATUS_SNAPSHOT_LATENCY.observe(time.time() - start)
        STATUS_CACHE_LOOKUPS.labels(result=reason).inc()
        logger.info("Status snapshot refreshed state=%s uptime=%s", snapshot.state, snapshot.uptime24h,
                    extra={"reason": reason})
        return record

    def fetch_fresh(self) -> StatusCacheRecord:
        cache = self._cache.get()
        if cache is None:
            return self.refresh(reason="missing")
        if "services" not in cache.payload:
            return self.refresh(reason="legacy")
        if is_timer_stale(cache.updated_at, self._clock(), self._stale_seconds):
            return self.refresh(reason="timer_stale")
        if is_activity_stale(cache.updated_at,
                             self._incidents.latest_updated_at(),
                             self._incidents.latest_update_created_at()):
            return self.refresh(reason="activity_stale")
        STATUS_CACHE_LOOKUPS.labels(result="hit").inc()
        return cache
