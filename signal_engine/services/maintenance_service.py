# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: scheduled maintenance lifecycle.

    scheduled ─► in_progress ─► completed     (driven by the clock)
    scheduled | in_progress ─► canceled       (explicit action only)

``completed`` and ``canceled`` are terminal. The clock-driven transitions run
before every read; the scan is idempotent and takes no locks. Status writes are
compare-and-set on the status that was read, so a concurrent cancel is never
overwritten and a terminal row never moves.
"""
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from signal_engine.core.clock import Clock, utc_now
from signal_engine.core.logging import get_logger
from signal_engine.metrics import MAINTENANCE_TRANSITIONS
from signal_engine.models.domain import NON_TERMINAL_MAINTENANCE, TERMINAL_MAINTENANCE, MaintenanceEvent
from signal_engine.repositories.maintenance_repository import MaintenanceRepository

logger = get_logger(__name__)

VALID_WINDOWS = ("upcoming", "past", "all")
EDITABLE_FIELDS = ("title", "description", "starts_at", "ends_at", "applies_to_all", "service_id")


def target_status(event: MaintenanceEvent, now: datetime) -> str:
    """Status the event should have at ``now``. Terminal states never change."""
    if event.status in TERMINAL_MAINTENANCE:
        return event.status
    if now >= event.ends_at:
        return "completed"
    if event.status == "scheduled" and event.starts_at <= now:
        return "in_progress"
    return event.status


def is_active_maintenance(event: MaintenanceEvent, now: datetime) -> bool:
    return event.status == "in_progress" or (
        event.status == "scheduled" and event.starts_at <= now <= event.ends_at
    )


def serialize_maintenance_event(event: MaintenanceEvent, now: datetime) -> Dict[str, Any]:
    service = None
    if not event.applies_to_all and event.service_id:
        service = event.service or {"id": event.service_id, "name": None, "slug": None}
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "status": event.status,
        "starts_at": event.starts_at.isoformat(),
        "ends_at": event.ends_at.isoformat(),
        "applies_to_all": event.applies_to_all,
        "service": service,
        "active": is_active_maintenance(event, now),
        "created_at": event.created_at.isoformat() if event.created_at else None,
        "updated_at": event.updated_at.isoformat() if event.updated_at else None,
    }


class MaintenanceService:
    def __init__(self, repo: MaintenanceRepository, clock: Clock = utc_now,
                 on_change: Optional[Callable[[], Any]] = None) -> None:
        self._repo = repo
        self._clock = clock
        self._on_change = on_change

    def transition(self) -> int:
        """Advance every non-terminal event to its clock-derived status. Returns rows changed."""
        now = self._clock()
        changed = 0
        for event in self._repo.list_non_terminal():
            new_status = target_status(event, now)
            if new_status == event.status:
                continue
            if not self._repo.update_status(event.id, new_status, from_statuses=(event.status,)):
                continue
            MAINTENANCE_TRANSITIONS.labels(to_status=new_status).inc()
            logger.info("Maintenance %s transitioned %s -> %s", event.id, event.status, new_status)
            changed += 1
        return changed

    def safe_transition(self) -> int:
        try:
            return self.transition()
        except Exception as exc:
            logger.warning("Maintenance transition pass failed: %s", exc)
            return 0

    def list_events(self, status: Optional[str] = None, window: str = "upcoming",
                    service_id: Optional[str] = None) -> List[MaintenanceEvent]:
        if window not in VALID_WINDOWS:
            raise ValueError(f"window must be one of {VALID_WINDOWS}")
        self.safe_transition()
        now = self._clock()
        statuses = [status] if status else None
        if window == "upcoming":
            return self._repo.list_events(
                statuses=statuses or list(NON_TERMINAL_MAINTENANCE),
                ends_after=now, service_id=service_id,
            )
        if window == "past":
            return self._repo.list_events(statuses=statuses, ends_before=now, service_id=service_id)
        return self._repo.list_events(statuses=statuses, service_id=service_id)

    def get_event(self, event_id: str) -> MaintenanceEvent:
        self.safe_transition()
        event = self._repo.get(event_id)
        if event is None:
            raise KeyError(f"Maintenance event {event_id} not found")
        return event

    def create_event(self, title: str, starts_at: datetime, ends_at: datetime,
                     description: Optional[str] = None, applies_to_all: bool = True,
                     service_id: Optional[str] = None) -> MaintenanceEvent:
        if starts_at >= ends_at:
            raise ValueError("starts_at must be before ends_at")
        if not applies_to_all and not service_id:
            raise ValueError("service_id is required when applies_to_all is false")
        event = self._repo.create(
            title=title, description=description, starts_at=starts_at, ends_at=ends_at,
            applies_to_all=applies_to_all,
            service_id=None if applies_to_all else service_id,
        )
        logger.info("Maintenance %s scheduled %s -> %s", event.id,
                    starts_at.isoformat(), ends_at.isoformat())
        self.safe_transition()
        self._notify_change()
        return self._repo.get(event.id) or event

    def update_event(self, event_id: str, fields: Dict[str, Any]) -> MaintenanceEvent:
        """Partial edit of title, description, window or scope.

        The window and scope are validated against the merged result, so moving
        only ``ends_at`` before the stored ``starts_at`` is rejected. Terminal
        events keep their status; a live event rescheduled into the past
        completes on the transition pass that follows.
        """
        existing = self._repo.get(event_id)
        if existing is None:
            raise KeyError(f"Maintenance event {event_id} not found")
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        if "title" in changes and not changes["title"]:
            raise ValueError("title cannot be empty")
        starts_at = changes.get("starts_at", existing.starts_at)
        ends_at = changes.get("ends_at", existing.ends_at)
        if starts_at >= ends_at:
            raise ValueError("starts_at must be before ends_at")
        applies_to_all = changes.get("applies_to_all", existing.applies_to_all)
        if applies_to_all:
            if "applies_to_all" in changes or "service_id" in changes:
                changes["service_id"] = None
        elif not changes.get("service_id", existing.service_id):
            raise ValueError("service_id is required when applies_to_all is false")

        if not self._repo.update(event_id, changes):
            raise KeyError(f"Maintenance event {event_id} not found")
        logger.info("Maintenance %s updated (%s)", event_id, ", ".join(sorted(changes)) or "no fields")
        self.safe_transition()
        self._notify_change()
        return self._repo.get(event_id) or existing.model_copy(update=changes)

    def cancel_event(self, event_id: str) -> MaintenanceEvent:
        event = self._repo.get(event_id)
        if event is None:
            raise KeyError(f"Maintenance event {event_id} not found")
        if event.status in TERMINAL_MAINTENANCE:
            raise ValueError(f"Event already {event.status}")
        if not self._repo.update_status(event_id, "canceled", from_statuses=NON_TERMINAL_MAINTENANCE):
            current = self._repo.get(event_id)
            if current is None:
                raise KeyError(f"Maintenance event {event_id} not found")
            raise ValueError(f"Event already {current.status}")
        logger.info("Maintenance %s canceled (was %s)", event_id, event.status)
        self._notify_change()
        return event.model_copy(update={"status": "canceled", "updated_at": self._clock()})

    def serialize(self, event: MaintenanceEvent) -> Dict[str, Any]:
        return serialize_maintenance_event(event, self._clock())

    def _notify_change(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception as exc:
            logger.warning("Status refresh after maintenance change failed: %s", exc)
