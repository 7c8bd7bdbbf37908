# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for organizations, their API keys and admin memberships."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine


class OrganizationRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def get_plan(self, organization_id: str) -> Optional[str]:
        with self._engine.connect() as conn:
            return conn.execute(
                text("SELECT plan FROM organizations WHERE id = :org"), {"org": organization_id}
            ).scalar()

    def find_organization_id(self, hashed_key: str) -> Optional[str]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT organization_id FROM api_keys WHERE hashed_key = :h LIMIT 1"),
                {"h": hashed_key},
            ).fetchone()
        return str(row[0]) if row else None

    def touch_api_key(self, hashed_key: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                text("UPDATE api_keys SET last_used_at = :ts WHERE hashed_key = :h"),
                {"ts": datetime.now(timezone.utc), "h": hashed_key},
            )

    def first_active_admin(self, organization_id: str) -> Optional[str]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("""
                    SELECT u.id FROM users u
                    JOIN memberships m ON m.user_id = u.id
                    WHERE m.organization_id = :org AND m.role = 'admin' AND u.is_active
                    ORDER BY m.created_at ASC
                    LIMIT 1
                """),
                {"org": organization_id},
            ).fetchone()
        return str(row[0]) if row else None
