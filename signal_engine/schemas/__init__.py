# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Pydantic request/response schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from signal_engine.core.clock import ensure_utc
from signal_engine.models.domain import LOG_LEVELS, MAINTENANCE_STATUSES


# ── Log intake ──

class LogIngestRequest(BaseModel):
    service: str = Field(..., min_length=1, max_length=120)
    level: str
    message: str = Field(..., min_length=1, max_length=5000)
    timestamp: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    @field_validator("level")
    @classmethod
    def normalise_level(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in LOG_LEVELS:
            raise ValueError(f"level must be one of {LOG_LEVELS}")
        return v

    @field_validator("service")
    @classmethod
    def strip_service(cls, v: str) -> str:
        return v.strip()


class LogIngestResponse(BaseModel):
    error: bool = False
    message: str
    incident_id: Optional[str] = None


# ── Trigger settings ──

class TriggerSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    auto_incident_enabled: Optional[bool] = None
    auto_incident_error_threshold: Optional[int] = Field(None, ge=1, le=100000)
    auto_incident_window_seconds: Optional[int] = Field(None, ge=1, le=86400)
    auto_incident_cooldown_seconds: Optional[int] = Field(None, ge=0, le=86400)
    auto_incident_ai_enabled: Optional[bool] = None
    auto_incident_summary_lines: Optional[int] = Field(None, ge=1, le=200)


class TriggerSettingsOut(BaseModel):
    organization_id: str
    enabled: bool
    error_threshold: int
    window_seconds: int
    cooldown_seconds: int
    ai_summary_enabled: bool
    summary_line_cap: int


# ── Status ──

class StatusMeta(BaseModel):
    state: str
    uptime24h: float
    updated_at: str


class StatusResponse(BaseModel):
    data: Dict[str, Any]
    meta: StatusMeta


# ── Maintenance ──

class MaintenanceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    starts_at: datetime
    ends_at: datetime
    applies_to_all: bool = True
    service_id: Optional[str] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.starts_at >= self.ends_at:
            raise ValueError("starts_at must be before ends_at")
        if not self.applies_to_all and not self.service_id:
            raise ValueError("service_id is required when applies_to_all is false")
        return self


class MaintenanceUpdate(BaseModel):
    """Every field optional; only the ones sent are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    applies_to_all: Optional[bool] = None
    service_id: Optional[str] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.starts_at and self.ends_at and self.starts_at >= self.ends_at:
            raise ValueError("starts_at must be before ends_at")
        if self.applies_to_all is False and not self.service_id:
            raise ValueError("service_id is required when applies_to_all is false")
        return self


class MaintenanceOut(BaseModel):
    id: str
    title: str
    description: Optional[str]
    status: str
    starts_at: str
    ends_at: str
    applies_to_all: bool
    service: Optional[Dict[str, Any]] = None
    active: bool = False
    created_at: Optional[str]
    updated_at: Optional[str]


class MaintenanceList(BaseModel):
    total: int
    events: List[MaintenanceOut]


def validate_maintenance_status(v: Optional[str]) -> Optional[str]:
    if v is not None:
        v = v.lower().strip()
        if v not in MAINTENANCE_STATUSES:
            raise ValueError(f"status must be one of {MAINTENANCE_STATUSES}")
    return v


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    request_id: Optional[str] = None
