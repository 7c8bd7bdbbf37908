# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared fixtures: a controllable clock and in-memory stand-ins for every repository."""
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from signal_engine.models.domain import MaintenanceEvent, StatusCacheRecord, TERMINAL_MAINTENANCE
from signal_engine.repositories.settings_repository import SETTINGS_FIELDS

T0 = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeIncidentRepo:
    def __init__(self):
        self.created: List[Dict[str, Any]] = []
        self.updates: List[Dict[str, Any]] = []
        self.active: List[Dict[str, Any]] = []
        self.month_count = 0
        self.last_24h = 0
        self.latest_incident_at: Optional[datetime] = None
        self.latest_update_at: Optional[datetime] = None
        self.fail_create = False
        self._ids = itertools.count(1)

    def create_incident(self, organization_id, service_id, title, description,
                        severity, status, created_by_id):
        if self.fail_create:
            raise RuntimeError("insert failed")
        incident = {
            "id": f"inc-{next(self._ids)}",
            "organization_id": organization_id,
            "service_id": service_id,
            "title": title,
            "description": description,
            "severity": severity,
            "status": status,
            "created_by_id": created_by_id,
        }
        self.created.append(incident)
        return incident

    def add_update(self, incident_id, author_id, message):
        update = {"incident_id": incident_id, "author_id": author_id, "message": message}
        self.updates.append(update)
        return update

    def count_since(self, organization_id, since):
        return self.month_count + len(self.created)

    def count_created_since(self, since):
        return self.last_24h

    def find_active(self):
        return list(self.active)

    def latest_updated_at(self):
        return self.latest_incident_at

    def latest_update_created_at(self):
        return self.latest_update_at


class FakeOrgRepo:
    def __init__(self, plan: Optional[str] = "pro", admin_id: Optional[str] = "admin-1"):
        self.plan = plan
        self.admin_id = admin_id
        self.keys: Dict[str, str] = {}
        self.touched: List[str] = []

    def get_plan(self, organization_id):
        return self.plan

    def find_organization_id(self, hashed_key):
        return self.keys.get(hashed_key)

    def touch_api_key(self, hashed_key):
        self.touched.append(hashed_key)

    def first_active_admin(self, organization_id):
        return self.admin_id


class FakeServiceRepo:
    def __init__(self, services: Optional[List[Dict[str, Any]]] = None):
        self.services = services if services is not None else [
            {"id": "svc-api", "organization_id": "org-1", "name": "API", "slug": "api",
             "description": "Public API"},
            {"id": "svc-web", "organization_id": "org-1", "name": "Web", "slug": "web",
             "description": None},
        ]

    def find_by_org_and_name_or_slug(self, organization_id, name):
        for service in self.services:
            if service["organization_id"] == organization_id and name in (service["name"], service["slug"]):
                return service
        return None

    def list_all(self):
        return sorted(self.services, key=lambda s: s["name"])


class FakeSettingsRepo:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.reads = 0

    def get(self, organization_id):
        self.reads += 1
        row = self.rows.get(organization_id)
        return dict(row) if row else None

    def upsert(self, organization_id, fields):
        row = self.rows.setdefault(organization_id, {"organization_id": organization_id})
        row.update({k: v for k, v in fields.items() if k in SETTINGS_FIELDS})
        return dict(row)


class FakeMaintenanceRepo:
    def __init__(self):
        self.events: Dict[str, MaintenanceEvent] = {}
        self.status_updates: List[tuple] = []
        self._ids = itertools.count(1)

    def add(self, **kwargs) -> MaintenanceEvent:
        event = MaintenanceEvent(id=kwargs.pop("id", f"mw-{next(self._ids)}"), **kwargs)
        self.events[event.id] = event
        return event

    def create(self, title, description, starts_at, ends_at, applies_to_all, service_id):
        return self.add(title=title, description=description, starts_at=starts_at,
                        ends_at=ends_at, applies_to_all=applies_to_all, service_id=service_id)

    def update_status(self, event_id, status, from_statuses):
        event = self.events.get(event_id)
        if event is None or event.status not in from_statuses:
            return 0
        self.status_updates.append((event_id, status))
        self.events[event_id] = event.model_copy(update={"status": status})
        return 1

    def update(self, event_id, fields):
        event = self.events.get(event_id)
        if event is None:
            return 0
        self.events[event_id] = event.model_copy(update=fields)
        return 1

    def get(self, event_id):
        return self.events.get(event_id)

    def list_non_terminal(self):
        return [e for e in self.events.values() if e.status not in TERMINAL_MAINTENANCE]

    def list_events(self, statuses=None, ends_after=None, ends_before=None, service_id=None):
        result = []
        for event in self.events.values():
            if statuses and event.status not in statuses:
                continue
            if ends_after is not None and event.ends_at < ends_after:
                continue
            if ends_before is not None and event.ends_at >= ends_before:
                continue
            if service_id and not (event.applies_to_all or event.service_id == service_id):
                continue
            result.append(event)
        return sorted(result, key=lambda e: e.starts_at)


class FakeStatusCacheRepo:
    def __init__(self, record: Optional[StatusCacheRecord] = None):
        self.record = record
        self.writes = 0

    def get(self):
        return self.record

    def upsert(self, record):
        self.writes += 1
        self.record = record
        return record


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def incident_repo():
    return FakeIncidentRepo()


@pytest.fixture
def org_repo():
    return FakeOrgRepo()


@pytest.fixture
def service_repo():
    return FakeServiceRepo()


@pytest.fixture
def settings_repo():
    return FakeSettingsRepo()


@pytest.fixture
def maintenance_repo():
    return FakeMaintenanceRepo()


@pytest.fixture
def status_cache_repo():
    return FakeStatusCacheRepo()
