# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for per-organization auto-incident settings."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

SETTINGS_FIELDS = (
    "auto_incident_enabled",
    "auto_incident_error_threshold",
    "auto_incident_window_seconds",
    "auto_incident_cooldown_seconds",
    "auto_incident_ai_enabled",
    "auto_incident_summary_lines",
)
SETTINGS_COLS = "organization_id, " + ", ".join(SETTINGS_FIELDS) + ", updated_at"


def _row_to_dict(row) -> Dict[str, Any]:
    data: Dict[str, Any] = {"organization_id": str(row[0])}
    for idx, field in enumerate(SETTINGS_FIELDS, start=1):
        data[field] = row[idx]
    data["updated_at"] = row[len(SETTINGS_FIELDS) + 1]
    return data


class SettingsRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    def get(self, organization_id: str) -> Optional[Dict[str, Any]]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text(f"SELECT {SETTINGS_COLS} FROM integration_settings WHERE organization_id = :org"),
                {"org": organization_id},
            ).fetchone()
        return _row_to_dict(row) if row else None

    def upsert(self, organization_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or partially update the org's row; unknown keys are ignored."""
        values = {k: v for k, v in fields.items() if k in SETTINGS_FIELDS}
        params: Dict[str, Any] = {"org": organization_id, "ts": datetime.now(timezone.utc), **values}
        columns = ", ".join(["organization_id", *values.keys(), "updated_at"])
        placeholders = ", ".join([":org", *(f":{k}" for k in values), ":ts"])
        assignments = ", ".join([*(f"{k} = EXCLUDED.{k}" for k in values), "updated_at = EXCLUDED.updated_at"])
        with self._engine.begin() as conn:
            row = conn.execute(
                text(f"""
                    INSERT INTO integration_settings ({columns})
                    VALUES ({placeholders})
                    ON CONFLICT (organization_id) DO UPDATE SET {assignments}
                    RETURNING {SETTINGS_COLS}
                """),
                params,
            ).fetchone()
        return _row_to_dict(row)
