# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for the service catalog."""
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

SERVICE_COLS = "id, organization_id, name, slug, description"


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": str(row[0]),
        "organization_id": str(row[1]) if row[1] else None,
        "name": row[2],
        "slug": row[3],
        "description": row[4],
    }


class ServiceRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def find_by_org_and_name_or_slug(self, organization_id: str, name: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"""
                    SELECT {SERVICE_COLS} FROM services
                    WHERE organization_id = :org AND (slug = :name OR name = :name)
                    ORDER BY (slug = :name) DESC
                    LIMIT 1
                """),
                {"org": organization_id, "name": name},
            ).fetchone()
        return _row_to_dict(row) if row else None

    def list_all(self) -> List[Dict[str, Any]]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(f"SELECT {SERVICE_COLS} FROM services ORDER BY name ASC"),
            ).fetchall()
        return [_row_to_dict(r) for r in rows]
