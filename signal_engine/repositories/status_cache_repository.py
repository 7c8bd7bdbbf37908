# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for the persisted status snapshot (single row)."""
import json
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from signal_engine.core.clock import ensure_utc
from signal_engine.models.domain import StatusCacheRecord

STATUS_CACHE_ID = "global-status-cache"


class StatusCacheRepository:
    def __init__(self, engine: Engine, cache_id: str = STATUS_CACHE_ID):
        self._engine = engine
        self._cache_id = cache_id

    def get(self) -> Optional[StatusCacheRecord]:
        with self._engine.connect() as conn:
            row = conn.execute(
                text("SELECT id, state, uptime24h, payload, updated_at FROM status_cache WHERE id = :id"),
                {"id": self._cache_id},
            ).fetchone()
        if not row:
            return None
        payload = row[3] if isinstance(row[3], dict) else json.loads(row[3] or "{}")
        return StatusCacheRecord(
            id=str(row[0]), state=row[1], uptime24h=float(row[2]),
            payload=payload, updated_at=ensure_utc(row[4]),
        )

    def upsert(self, record: StatusCacheRecord) -> StatusCacheRecord:
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO status_cache (id, state, uptime24h, payload, updated_at, created_at)
                    VALUES (:id, :state, :uptime, CAST(:payload AS JSONB), :ts, :ts)
                    ON CONFLICT (id) DO UPDATE SET
                        state = EXCLUDED.state,
                        uptime24h = EXCLUDED.uptime24h,
                        payload = EXCLUDED.payload,
                        updated_at = EXCLUDED.updated_at
                """),
                {"id": self._cache_id, "state": record.state, "uptime": record.uptime24h,
                 "payload": json.dumps(record.payload, default=str), "ts": record.updated_at},
            )
        return record.model_copy(update={"id": self._cache_id})
