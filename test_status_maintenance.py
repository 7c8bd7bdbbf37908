# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Status snapshot, status cache and maintenance lifecycle tests
=============================================================
Run:  pytest test_status_maintenance.py -v
"""
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from conftest import T0, FakeMaintenanceRepo, FakeStatusCacheRepo
from signal_engine.models.domain import MaintenanceEvent, StatusCacheRecord
from signal_engine.services.maintenance_service import (
    MaintenanceService, is_active_maintenance, serialize_maintenance_event, target_status,
)
from signal_engine.services.status_service import StatusService, is_activity_stale, is_timer_stale
from signal_engine.services.status_snapshot import build_status_snapshot, calculate_uptime, determine_state

SERVICES = [
    {"id": "svc-api", "name": "API", "slug": "api", "description": "Public API"},
    {"id": "svc-web", "name": "Web", "slug": "web", "description": None},
]


def _incident(iid, severity, service_id="svc-api", status="investigating"):
    return {
        "id": iid, "title": f"Incident {iid}", "severity": severity, "status": status,
        "service_id": service_id, "created_at": T0 - timedelta(minutes=5),
        "service": {"id": service_id, "name": "API", "slug": "api"},
    }


def _cache(updated_at, payload=None):
    return StatusCacheRecord(
        state="operational", uptime24h=100,
        payload=payload if payload is not None else {"services": [], "overall_state": "operational"},
        updated_at=updated_at,
    )


# ═══════════════════════════════════════════════════════════════════════════
# SNAPSHOT
# ═══════════════════════════════════════════════════════════════════════════
class TestStatusSnapshot:
    def test_no_incidents_is_fully_operational(self):
        snap = build_status_snapshot([], SERVICES, 0)
        assert snap.state == "operational"
        assert snap.uptime24h == 100
        assert [s["state"] for s in snap.payload["services"]] == ["operational", "operational"]
        assert snap.payload["last_24h"] == {"uptime_percent": 100, "incident_count": 0}

    def test_worst_severity_drives_state(self):
        assert determine_state([{"severity": "low"}, {"severity": "high"}]) == "partial_outage"
        assert determine_state([{"severity": "high"}, {"severity": "critical"}]) == "major_outage"
        assert determine_state([{"severity": "medium"}]) == "operational"

    def test_per_service_state_and_counts(self):
        active = [_incident("i1", "high"), _incident("i2", "medium", service_id="svc-web")]
        snap = build_status_snapshot(active, SERVICES, 4)
        by_id = {s["id"]: s for s in snap.payload["services"]}
        assert snap.state == "partial_outage"
        assert by_id["svc-api"]["state"] == "partial_outage"
        assert by_id["svc-api"]["activeIncidentCount"] == 1
        assert by_id["svc-web"]["state"] == "operational"
        assert by_id["svc-web"]["activeIncidentCount"] == 1
        assert snap.payload["last_24h"]["incident_count"] == 4

    def test_uptime_weights(self):
        assert calculate_uptime([{"severity": "high"}, {"severity": "medium"}]) == 85
        assert calculate_uptime([{"severity": "low"}]) == 99
        assert calculate_uptime([{"severity": "critical"}] * 10) == 5

    def test_public_incident_shape(self):
        snap = build_status_snapshot([_incident("i1", "critical")], SERVICES, 1)
        public = snap.payload["active_incidents"][0]
        assert public["startedAt"] == (T0 - timedelta(minutes=5)).isoformat()
        assert public["service"] == {"id": "svc-api", "name": "API", "slug": "api"}
        assert "description" not in public

    def test_incident_for_unknown_service_counts_overall_only(self):
        snap = build_status_snapshot([_incident("i1", "critical", service_id="svc-gone")], SERVICES, 1)
        assert snap.state == "major_outage"
        assert all(s["activeIncidentCount"] == 0 for s in snap.payload["services"])


# ═══════════════════════════════════════════════════════════════════════════
# STATUS CACHE
# ═══════════════════════════════════════════════════════════════════════════
class TestStatusService:
    def _service(self, clock, incident_repo, service_repo, cache_repo):
        return StatusService(incident_repo, service_repo, cache_repo, clock=clock, stale_seconds=15)

    def test_missing_cache_is_computed_and_stored(self, clock, incident_repo, service_repo, status_cache_repo):
        incident_repo.active = [_incident("i1", "high")]
        record = self._service(clock, incident_repo, service_repo, status_cache_repo).fetch_fresh()
        assert status_cache_repo.writes == 1
        assert record.state == "partial_outage"
        assert record.uptime24h == 90
        assert record.updated_at == T0
        assert {s["slug"] for s in record.payload["services"]} == {"api", "web"}

    def test_fresh_cache_is_served(self, clock, incident_repo, service_repo):
        cache_repo = FakeStatusCacheRepo(_cache(T0 - timedelta(seconds=5)))
        record = self._service(clock, incident_repo, service_repo, cache_repo).fetch_fresh()
        assert cache_repo.writes == 0
        assert record.updated_at == T0 - timedelta(seconds=5)

    def test_legacy_payload_forces_refresh(self, clock, incident_repo, service_repo):
        cache_repo = FakeStatusCacheRepo(_cache(T0, payload={"overall_state": "operational"}))
        record = self._service(clock, incident_repo, service_repo, cache_repo).fetch_fresh()
        assert cache_repo.writes == 1
        assert "services" in record.payload

    def test_timer_staleness(self, clock, incident_repo, service_repo):
        cache_repo = FakeStatusCacheRepo(_cache(T0 - timedelta(seconds=16)))
        self._service(clock, incident_repo, service_repo, cache_repo).fetch_fresh()
        assert cache_repo.writes == 1

    def test_future_timestamp_counts_as_stale(self, clock, incident_repo, service_repo):
        cache_repo = FakeStatusCacheRepo(_cache(T0 + timedelta(seconds=30)))
        self._service(clock, incident_repo, service_repo, cache_repo).fetch_fresh()
        assert cache_repo.writes == 1

    def test_newer_incident_activity_forces_refresh(self, clock, incident_repo, service_repo):
        cache_repo = FakeStatusCacheRepo(_cache(T0 - timedelta(seconds=5)))
        incident_repo.latest_incident_at = T0 - timedelta(seconds=1)
        incident_repo.active = [_incident("i1", "critical")]
        record = self._service(clock, incident_repo, service_repo, cache_repo).fetch_fresh()
        assert cache_repo.writes == 1
        assert record.state == "major_outage"

    def test_newer_incident_update_forces_refresh(self, clock, incident_repo, service_repo):
        cache_repo = FakeStatusCacheRepo(_cache(T0 - timedelta(seconds=5)))
        incident_repo.latest_update_at = T0 - timedelta(seconds=2)
        self._service(clock, incident_repo, service_repo, cache_repo).fetch_fresh()
        assert cache_repo.writes == 1

    def test_older_activity_keeps_cache(self, clock, incident_repo, service_repo):
        cache_repo = FakeStatusCacheRepo(_cache(T0 - timedelta(seconds=5)))
        incident_repo.latest_incident_at = T0 - timedelta(minutes=10)
        incident_repo.latest_update_at = T0 - timedelta(minutes=9)
        self._service(clock, incident_repo, service_repo, cache_repo).fetch_fresh()
        assert cache_repo.writes == 0

    def test_recompute_failure_propagates(self, clock, incident_repo, service_repo, status_cache_repo):
        incident_repo.find_active = MagicMock(side_effect=RuntimeError("db down"))
        with pytest.raises(RuntimeError):
            self._service(clock, incident_repo, service_repo, status_cache_repo).fetch_fresh()
        assert status_cache_repo.writes == 0

    def test_staleness_predicates(self):
        assert is_timer_stale(T0, T0 + timedelta(seconds=15), 15) is False
        assert is_timer_stale(T0, T0 + timedelta(seconds=16), 15) is True
        assert is_activity_stale(T0, None, None) is False
        assert is_activity_stale(T0, T0, None) is False
        assert is_activity_stale(T0, None, T0 + timedelta(milliseconds=1)) is True


# ═══════════════════════════════════════════════════════════════════════════
# MAINTENANCE LIFECYCLE
# ═══════════════════════════════════════════════════════════════════════════
def _window(status="scheduled", start_in=timedelta(hours=1), length=timedelta(hours=2), **kwargs):
    starts_at = T0 + start_in
    return MaintenanceEvent(id=kwargs.pop("id", "mw"), status=status, starts_at=starts_at,
                            ends_at=starts_at + length, **kwargs)


class TestTargetStatus:
    def test_future_window_stays_scheduled(self):
        assert target_status(_window(), T0) == "scheduled"

    def test_started_window_moves_to_in_progress(self):
        assert target_status(_window(start_in=timedelta(0)), T0) == "in_progress"

    def test_ended_window_completes_at_exact_end(self):
        event = _window(start_in=-timedelta(hours=2), length=timedelta(hours=2), status="in_progress")
        assert target_status(event, T0) == "completed"

    def test_missed_window_jumps_straight_to_completed(self):
        event = _window(start_in=-timedelta(hours=3))
        assert target_status(event, T0) == "completed"

    def test_terminal_states_never_change(self):
        past = dict(start_in=-timedelta(hours=3))
        assert target_status(_window(status="canceled", **past), T0) == "canceled"
        assert target_status(_window(status="completed", start_in=timedelta(hours=5)), T0) == "completed"

    def test_is_active(self):
        assert is_active_maintenance(_window(start_in=-timedelta(minutes=1)), T0) is True
        assert is_active_maintenance(_window(), T0) is False
        assert is_active_maintenance(_window(status="in_progress"), T0) is True
        assert is_active_maintenance(_window(status="canceled", start_in=-timedelta(minutes=1)), T0) is False


class _InterleavedRepo(FakeMaintenanceRepo):
    """Runs ``between`` once, after the scan has read its rows and before any write."""

    def __init__(self):
        super().__init__()
        self.between = None

    def list_non_terminal(self):
        rows = super().list_non_terminal()
        if self.between is not None:
            between, self.between = self.between, None
            between()
        return rows


class TestMaintenanceService:
    def _service(self, clock, repo, on_change=None):
        return MaintenanceService(repo, clock=clock, on_change=on_change)

    def test_transition_persists_changes_and_is_idempotent(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", starts_at=T0 - timedelta(minutes=5), ends_at=T0 + timedelta(hours=1))
        maintenance_repo.add(id="b", starts_at=T0 - timedelta(hours=3), ends_at=T0 - timedelta(hours=1))
        maintenance_repo.add(id="c", starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        svc = self._service(clock, maintenance_repo)
        assert svc.transition() == 2
        assert maintenance_repo.get("a").status == "in_progress"
        assert maintenance_repo.get("b").status == "completed"
        assert maintenance_repo.get("c").status == "scheduled"
        assert svc.transition() == 0
        assert len(maintenance_repo.status_updates) == 2

    def test_clock_advance_completes_in_progress(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", starts_at=T0 - timedelta(minutes=5), ends_at=T0 + timedelta(minutes=10))
        svc = self._service(clock, maintenance_repo)
        svc.transition()
        clock.advance(minutes=10)
        svc.transition()
        assert [s for _, s in maintenance_repo.status_updates] == ["in_progress", "completed"]

    def test_safe_transition_swallows_errors(self, clock, maintenance_repo):
        maintenance_repo.list_non_terminal = MagicMock(side_effect=RuntimeError("db"))
        assert self._service(clock, maintenance_repo).safe_transition() == 0

    def test_list_windows(self, clock, maintenance_repo):
        maintenance_repo.add(id="future", starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        maintenance_repo.add(id="now", starts_at=T0 - timedelta(hours=1), ends_at=T0 + timedelta(hours=1))
        maintenance_repo.add(id="done", starts_at=T0 - timedelta(hours=3), ends_at=T0 - timedelta(hours=2))
        maintenance_repo.add(id="off", status="canceled",
                             starts_at=T0 + timedelta(hours=3), ends_at=T0 + timedelta(hours=4))
        svc = self._service(clock, maintenance_repo)
        assert [e.id for e in svc.list_events()] == ["now", "future"]
        assert [e.id for e in svc.list_events(window="past")] == ["done"]
        assert {e.id for e in svc.list_events(window="all")} == {"future", "now", "done", "off"}
        assert [e.id for e in svc.list_events(status="canceled", window="all")] == ["off"]
        assert maintenance_repo.get("done").status == "completed"

    def test_list_service_filter_includes_global_windows(self, clock, maintenance_repo):
        maintenance_repo.add(id="global", starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        maintenance_repo.add(id="web", applies_to_all=False, service_id="svc-web",
                             starts_at=T0 + timedelta(hours=2), ends_at=T0 + timedelta(hours=3))
        maintenance_repo.add(id="api", applies_to_all=False, service_id="svc-api",
                             starts_at=T0 + timedelta(hours=3), ends_at=T0 + timedelta(hours=4))
        svc = self._service(clock, maintenance_repo)
        assert [e.id for e in svc.list_events(service_id="svc-api")] == ["global", "api"]

    def test_list_rejects_unknown_window(self, clock, maintenance_repo):
        with pytest.raises(ValueError):
            self._service(clock, maintenance_repo).list_events(window="someday")

    def test_get_unknown_raises(self, clock, maintenance_repo):
        with pytest.raises(KeyError):
            self._service(clock, maintenance_repo).get_event("nope")

    def test_create_validates_window(self, clock, maintenance_repo):
        svc = self._service(clock, maintenance_repo)
        with pytest.raises(ValueError):
            svc.create_event("Bad", starts_at=T0, ends_at=T0)
        with pytest.raises(ValueError):
            svc.create_event("Bad", starts_at=T0, ends_at=T0 + timedelta(hours=1), applies_to_all=False)
        assert maintenance_repo.events == {}

    def test_create_applies_lifecycle_and_notifies(self, clock, maintenance_repo):
        on_change = MagicMock()
        svc = self._service(clock, maintenance_repo, on_change=on_change)
        event = svc.create_event("DB upgrade", starts_at=T0 - timedelta(minutes=1),
                                 ends_at=T0 + timedelta(hours=1))
        assert event.status == "in_progress"
        on_change.assert_called_once()

    def test_create_for_all_services_drops_service_id(self, clock, maintenance_repo):
        svc = self._service(clock, maintenance_repo)
        event = svc.create_event("Net", starts_at=T0 + timedelta(hours=1),
                                 ends_at=T0 + timedelta(hours=2), service_id="svc-api")
        assert event.service_id is None

    def test_cancel(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        on_change = MagicMock()
        event = self._service(clock, maintenance_repo, on_change=on_change).cancel_event("a")
        assert event.status == "canceled"
        assert maintenance_repo.get("a").status == "canceled"
        on_change.assert_called_once()

    def test_cancel_terminal_is_rejected(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", status="completed",
                             starts_at=T0 - timedelta(hours=2), ends_at=T0 - timedelta(hours=1))
        svc = self._service(clock, maintenance_repo)
        with pytest.raises(ValueError, match="already completed"):
            svc.cancel_event("a")
        with pytest.raises(KeyError):
            svc.cancel_event("missing")

    def test_refresh_failure_after_change_is_not_raised(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        svc = self._service(clock, maintenance_repo, on_change=MagicMock(side_effect=RuntimeError("boom")))
        assert svc.cancel_event("a").status == "canceled"

    def test_serialize(self):
        scoped = _window(applies_to_all=False, service_id="svc-api",
                         service={"id": "svc-api", "name": "API", "slug": "api"})
        data = serialize_maintenance_event(scoped, T0)
        assert data["service"] == {"id": "svc-api", "name": "API", "slug": "api"}
        assert data["starts_at"] == (T0 + timedelta(hours=1)).isoformat()
        assert data["active"] is False
        assert serialize_maintenance_event(_window(service_id="svc-api"), T0)["service"] is None
        assert serialize_maintenance_event(_window(status="in_progress"), T0)["active"] is True

    def test_terminal_events_survive_any_number_of_passes(self, clock, maintenance_repo):
        maintenance_repo.add(id="off", status="canceled",
                             starts_at=T0 - timedelta(minutes=5), ends_at=T0 + timedelta(hours=1))
        maintenance_repo.add(id="done", status="completed",
                             starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        svc = self._service(clock, maintenance_repo)
        for _ in range(3):
            assert svc.transition() == 0
            clock.advance(hours=1)
        assert maintenance_repo.status_updates == []
        assert maintenance_repo.get("off").status == "canceled"
        assert maintenance_repo.get("done").status == "completed"

    def test_cancel_during_transition_pass_is_kept(self, clock):
        repo = _InterleavedRepo()
        repo.add(id="mw", starts_at=T0 - timedelta(minutes=10), ends_at=T0 + timedelta(minutes=10))
        svc = self._service(clock, repo)
        repo.between = lambda: svc.cancel_event("mw")
        assert svc.transition() == 0
        assert repo.get("mw").status == "canceled"
        assert repo.status_updates == [("mw", "canceled")]
        clock.advance(minutes=20)
        assert svc.transition() == 0
        assert repo.get("mw").status == "canceled"

    def test_cancel_losing_to_completion_is_rejected(self, clock):
        repo = _InterleavedRepo()
        repo.add(id="mw", status="in_progress",
                 starts_at=T0 - timedelta(hours=1), ends_at=T0 + timedelta(minutes=1))
        svc = self._service(clock, repo)
        clock.advance(minutes=2)
        original_get = repo.get

        def completed_after_read(event_id):
            event = original_get(event_id)
            repo.get = original_get
            svc.transition()
            return event

        repo.get = completed_after_read
        with pytest.raises(ValueError, match="already completed"):
            svc.cancel_event("mw")
        assert repo.get("mw").status == "completed"

    def test_update_renames_and_reschedules(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", title="Old", starts_at=T0 + timedelta(hours=1),
                             ends_at=T0 + timedelta(hours=2))
        on_change = MagicMock()
        svc = self._service(clock, maintenance_repo, on_change=on_change)
        event = svc.update_event("a", {"title": "New", "starts_at": T0 - timedelta(minutes=1)})
        assert event.title == "New"
        assert event.status == "in_progress"
        on_change.assert_called_once()

    def test_update_into_the_past_completes(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", status="in_progress",
                             starts_at=T0 - timedelta(hours=1), ends_at=T0 + timedelta(hours=1))
        svc = self._service(clock, maintenance_repo)
        assert svc.update_event("a", {"ends_at": T0}).status == "completed"

    def test_update_validates_merged_window(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        svc = self._service(clock, maintenance_repo)
        with pytest.raises(ValueError, match="starts_at must be before ends_at"):
            svc.update_event("a", {"ends_at": T0})
        with pytest.raises(ValueError, match="service_id is required"):
            svc.update_event("a", {"applies_to_all": False})
        with pytest.raises(ValueError, match="title cannot be empty"):
            svc.update_event("a", {"title": None})
        assert maintenance_repo.get("a").ends_at == T0 + timedelta(hours=2)

    def test_update_scope(self, clock, maintenance_repo):
        maintenance_repo.add(id="a", starts_at=T0 + timedelta(hours=1), ends_at=T0 + timedelta(hours=2))
        svc = self._service(clock, maintenance_repo)
        scoped = svc.update_event("a", {"applies_to_all": False, "service_id": "svc-api"})
        assert (scoped.applies_to_all, scoped.service_id) == (False, "svc-api")
        widened = svc.update_event("a", {"applies_to_all": True})
        assert (widened.applies_to_all, widened.service_id) == (True, None)

    def test_update_unknown_raises(self, clock, maintenance_repo):
        with pytest.raises(KeyError):
            self._service(clock, maintenance_repo).update_event("nope", {"title": "x"})
