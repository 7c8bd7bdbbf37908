# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for incidents and incident updates."""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from signal_engine.core.clock import ensure_utc

INCIDENT_COLS = (
    "i.id, i.organization_id, i.service_id, i.title, i.description, i.severity, "
    "i.status, i.created_by_id, i.created_at, i.updated_at"
)
SERVICE_REF_COLS = "s.id, s.name, s.slug"


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row[0]),
        "organization_id": str(row[1]) if row[1] else None,
        "service_id": str(row[2]) if row[2] else None,
        "title": row[3],
        "description": row[4],
        "severity": row[5],
        "status": row[6],
        "created_by_id": str(row[7]) if row[7] else None,
        "created_at": ensure_utc(row[8]),
        "updated_at": ensure_utc(row[9]),
    }


def _active_row_to_dict(row) -> Dict[str, Any]:
    incident = _row_to_dict(row)
    incident["service"] = {
        "id": str(row[10]) if row[10] else incident["service_id"],
        "name": row[11],
        "slug": row[12],
    }
    return incident


class IncidentRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create_incident(self, organization_id: str, service_id: str, title: str,
                        description: str, severity: str, status: str,
                        created_by_id: str) -> Dict[str, Any]:
        incident_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO incidents
                        (id, organization_id, service_id, title, description, severity,
                         status, created_by_id, created_at, updated_at)
                    VALUES
                        (:id, :org, :svc, :title, :description, :severity,
                         :status, :created_by, :ts, :ts)
                """),
                {"id": incident_id, "org": organization_id, "svc": service_id,
                 "title": title, "description": description, "severity": severity,
                 "status": status, "created_by": created_by_id, "ts": now},
            )
        return {
            "id": incident_id, "organization_id": organization_id,
            "service_id": service_id, "title": title, "description": description,
            "severity": severity, "status": status, "created_by_id": created_by_id,
            "created_at": now, "updated_at": now,
        }

    def add_update(self, incident_id: str, author_id: str, message: str) -> Dict[str, Any]:
        update_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO incident_updates (id, incident_id, author_id, message, created_at)
                    VALUES (:id, :iid, :author, :message, :ts)
                """),
                {"id": update_id, "iid": incident_id, "author": author_id,
                 "message": message, "ts": now},
            )
        return {"id": update_id, "incident_id": incident_id, "author_id": author_id,
                "message": message, "created_at": now}

    # ── Read ───────────────────────────────────────────────────────────

    def count_since(self, organization_id: str, since: datetime) -> int:
        with self._engine.connect() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM incidents WHERE organization_id = :org AND created_at >= :since"),
                {"org": organization_id, "since": since},
            ).scalar() or 0

    def count_created_since(self, since: datetime) -> int:
        with self._engine.connect() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM incidents WHERE created_at >= :since"),
                {"since": since},
            ).scalar() or 0

    def find_active(self) -> List[Dict[str, Any]]:
        """Every incident not yet resolved, newest first, with its service reference."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"""
                    SELECT {INCIDENT_COLS}, {SERVICE_REF_COLS}
                    FROM incidents i
                    LEFT JOIN services s ON s.id = i.service_id
                    WHERE i.status <> 'resolved'
                    ORDER BY i.created_at DESC
                """),
            ).fetchall()
        return [_active_row_to_dict(r) for r in rows]

    def latest_updated_at(self) -> Optional[datetime]:
        with self._engine.connect() as conn:
            return ensure_utc(conn.execute(text("SELECT MAX(updated_at) FROM incidents")).scalar())

    def latest_update_created_at(self) -> Optional[datetime]:
        with self._engine.connect() as conn:
            return ensure_utc(conn.execute(text("SELECT MAX(created_at) FROM incident_updates")).scalar())
