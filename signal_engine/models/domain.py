# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: pure data structures, NO FastAPI dependency.
"""

from datetime import datetime
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, Field

LOG_LEVELS = ("debug", "info", "warn", "error")

MAINTENANCE_STATUSES = ("scheduled", "in_progress", "completed", "canceled")
NON_TERMINAL_MAINTENANCE = ("scheduled", "in_progress")
TERMINAL_MAINTENANCE = ("completed", "canceled")


class TriggerKey(NamedTuple):
    """One buffer / cooldown pair."""
    organization_id: str
    service_id: str

    def __str__(self) -> str:
        return f"{self.organization_id}:{self.service_id}"


class LogEvent(BaseModel):
    """A buffered log line. Never persisted."""
    timestamp_ms: int
    level: str = Field(..., pattern="^(debug|info|warn|error)$")
    message: str
    context: Optional[dict[str, Any]] = None


class TriggerSettings(BaseModel):
    """Effective per-organization auto-incident configuration."""
    enabled: bool = False
    error_threshold: int = 20
    window_seconds: int = 60
    cooldown_seconds: int = 300
    ai_summary_enabled: bool = False
    summary_line_cap: int = 200


class MaintenanceEvent(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    status: str = "scheduled"
    starts_at: datetime
    ends_at: datetime
    applies_to_all: bool = True
    service_id: Optional[str] = None
    service: Optional[dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StatusCacheRecord(BaseModel):
    """Persisted status snapshot row."""
    id: str = "global-status-cache"
    state: str
    uptime24h: float
    payload: dict[str, Any]
    updated_at: datetime
