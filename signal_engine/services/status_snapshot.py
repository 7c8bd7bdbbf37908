# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Public status snapshot: a pure function of active incidents and the service catalog.

    any critical  ─► major_outage
    any high      ─► partial_outage
    otherwise     ─► operational
"""
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

SEVERITY_WEIGHTS = {"critical": 20, "high": 10, "medium": 5}
DEFAULT_WEIGHT = 1
MAX_DOWNTIME_WEIGHT = 95


class StatusSnapshot(NamedTuple):
    state: str
    uptime24h: float
    payload: Dict[str, Any]


def determine_state(incidents: Iterable[Dict[str, Any]]) -> str:
    severities = {i.get("severity") for i in incidents}
    if "critical" in severities:
        return "major_outage"
    if "high" in severities:
        return "partial_outage"
    return "operational"


def calculate_uptime(incidents: List[Dict[str, Any]]) -> float:
    """100 with nothing active; otherwise never below 5."""
    if not incidents:
        return 100
    weight = sum(SEVERITY_WEIGHTS.get(i.get("severity"), DEFAULT_WEIGHT) for i in incidents)
    return max(0, 100 - min(weight, MAX_DOWNTIME_WEIGHT))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else value


def _public_incident(incident: Dict[str, Any]) -> Dict[str, Any]:
    service = incident.get("service") or {}
    return {
        "id": incident["id"],
        "title": incident["title"],
        "severity": incident["severity"],
        "status": incident["status"],
        "startedAt": _iso(incident.get("created_at")),
        "service": {
            "id": service.get("id", incident.get("service_id")),
            "name": service.get("name"),
            "slug": service.get("slug"),
        },
    }


def build_status_snapshot(active_incidents: List[Dict[str, Any]],
                          services: List[Dict[str, Any]],
                          incidents_last_24h: int) -> StatusSnapshot:
    """``active_incidents`` must already exclude resolved incidents."""
    by_service: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for incident in active_incidents:
        by_service[incident.get("service_id")].append(incident)

    service_snapshots = []
    for service in services:
        service_incidents = by_service.get(service["id"], [])
        service_snapshots.append({
            "id": service["id"],
            "name": service["name"],
            "slug": service["slug"],
            "description": service.get("description"),
            "state": determine_state(service_incidents),
            "activeIncidentCount": len(service_incidents),
        })

    overall_state = determine_state(active_incidents)
    uptime = calculate_uptime(active_incidents)
    return StatusSnapshot(
        state=overall_state,
        uptime24h=uptime,
        payload={
            "overall_state": overall_state,
            "active_incidents": [_public_incident(i) for i in active_incidents],
            "services": service_snapshots,
            "last_24h": {
                "uptime_percent": uptime,
                "incident_count": incidents_last_24h,
            },
        },
    )
