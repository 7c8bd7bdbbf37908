# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for scheduled maintenance events."""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from signal_engine.core.clock import ensure_utc
from signal_engine.models.domain import MaintenanceEvent

MAINTENANCE_COLS = (
    "m.id, m.title, m.description, m.status, m.starts_at, m.ends_at, "
    "m.applies_to_all, m.service_id, m.created_at, m.updated_at, s.name, s.slug"
)
FROM_CLAUSE = "FROM maintenance_events m LEFT JOIN services s ON s.id = m.service_id"
EDITABLE_COLUMNS = ("title", "description", "starts_at", "ends_at", "applies_to_all", "service_id")


def _row_to_event(row) -> MaintenanceEvent:
    service_id = str(row[7]) if row[7] else None
    return MaintenanceEvent(
        id=str(row[0]),
        title=row[1],
        description=row[2],
        status=row[3],
        starts_at=ensure_utc(row[4]),
        ends_at=ensure_utc(row[5]),
        applies_to_all=bool(row[6]),
        service_id=service_id,
        service={"id": service_id, "name": row[10], "slug": row[11]} if service_id else None,
        created_at=ensure_utc(row[8]),
        updated_at=ensure_utc(row[9]),
    )


class MaintenanceRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Write ──────────────────────────────────────────────────────────

    def create(self, title: str, description: Optional[str], starts_at: datetime,
               ends_at: datetime, applies_to_all: bool,
               service_id: Optional[str]) -> MaintenanceEvent:
        event_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO maintenance_events
                        (id, title, description, status, starts_at, ends_at,
                         applies_to_all, service_id, created_at, updated_at)
                    VALUES
                        (:id, :title, :description, 'scheduled', :starts_at, :ends_at,
                         :applies_to_all, :service_id, :ts, :ts)
                """),
                {"id": event_id, "title": title, "description": description,
                 "starts_at": starts_at, "ends_at": ends_at,
                 "applies_to_all": applies_to_all, "service_id": service_id, "ts": now},
            )
        return MaintenanceEvent(
            id=event_id, title=title, description=description, status="scheduled",
            starts_at=starts_at, ends_at=ends_at, applies_to_all=applies_to_all,
            service_id=service_id, created_at=now, updated_at=now,
        )

    def update_status(self, event_id: str, status: str, from_statuses: Sequence[str]) -> int:
        """Compare-and-set: only rows still in ``from_statuses`` move. Returns rows changed."""
        stmt = text("""
            UPDATE maintenance_events SET status = :status, updated_at = :ts
            WHERE id = :id AND status IN :from_statuses
        """).bindparams(bindparam("from_statuses", expanding=True))
        with self._engine.begin() as conn:
            result = conn.execute(
                stmt,
                {"status": status, "ts": datetime.now(timezone.utc), "id": event_id,
                 "from_statuses": list(from_statuses)},
            )
        return result.rowcount

    def update(self, event_id: str, fields: Dict[str, Any]) -> int:
        """Partial update of the editable columns. Status is never touched here."""
        columns = [c for c in EDITABLE_COLUMNS if c in fields]
        if not columns:
            return 1 if self.get(event_id) else 0
        assignments = ", ".join(f"{c} = :{c}" for c in columns)
        params = {c: fields[c] for c in columns}
        params.update({"id": event_id, "ts": datetime.now(timezone.utc)})
        with self._engine.begin() as conn:
            result = conn.execute(
                text(f"UPDATE maintenance_events SET {assignments}, updated_at = :ts WHERE id = :id"),
                params,
            )
        return result.rowcount

    # ── Read ───────────────────────────────────────────────────────────

    def get(self, event_id: str) -> Optional[MaintenanceEvent]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {MAINTENANCE_COLS} {FROM_CLAUSE} WHERE m.id = :id"),
                {"id": event_id},
            ).fetchone()
        return _row_to_event(row) if row else None

    def list_non_terminal(self) -> List[MaintenanceEvent]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"""
                    SELECT {MAINTENANCE_COLS} {FROM_CLAUSE}
                    WHERE m.status IN ('scheduled', 'in_progress')
                """),
            ).fetchall()
        return [_row_to_event(r) for r in rows]

    def list_events(self, statuses: Optional[List[str]] = None,
                    ends_after: Optional[datetime] = None,
                    ends_before: Optional[datetime] = None,
                    service_id: Optional[str] = None) -> List[MaintenanceEvent]:
        conditions = []
        params: Dict[str, Any] = {}
        if statuses:
            conditions.append("m.status IN :statuses")
            params["statuses"] = list(statuses)
        if ends_after is not None:
            conditions.append("m.ends_at >= :ends_after")
            params["ends_after"] = ends_after
        if ends_before is not None:
            conditions.append("m.ends_at < :ends_before")
            params["ends_before"] = ends_before
        if service_id:
            conditions.append("(m.applies_to_all OR m.service_id = :service_id)")
            params["service_id"] = service_id
        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""

        stmt = text(f"SELECT {MAINTENANCE_COLS} {FROM_CLAUSE}{where} ORDER BY m.starts_at ASC, m.created_at DESC")
        if statuses:
            stmt = stmt.bindparams(bindparam("statuses", expanding=True))
        with self._engine.connect() as conn:
            rows = conn.execute(stmt, params).fetchall()
        return [_row_to_event(r) for r in rows]
