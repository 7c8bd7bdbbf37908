# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection: wire repositories and services.
The log buffer, cooldown gate and settings cache are process-wide singletons.
"""
from signal_engine.core.database import engine
from signal_engine.repositories import (
    IncidentRepository,
    MaintenanceRepository,
    OrganizationRepository,
    ServiceRepository,
    SettingsRepository,
    StatusCacheRepository,
)
from signal_engine.services.ai_summarizer import AiSummarizer
from signal_engine.services.cooldown import InMemoryCooldownGate
from signal_engine.services.identity import IdentityResolver
from signal_engine.services.log_buffer import LogIntakeBuffer
from signal_engine.services.log_ingest_service import LogIngestService
from signal_engine.services.maintenance_service import MaintenanceService
from signal_engine.services.settings_cache import SettingsCache
from signal_engine.services.status_service import StatusService
from signal_engine.services.trigger_service import TriggerEvaluator

# ── Repositories ──
_incident_repo = IncidentRepository(engine)
_service_repo = ServiceRepository(engine)
_org_repo = OrganizationRepository(engine)
_settings_repo = SettingsRepository(engine)
_maintenance_repo = MaintenanceRepository(engine)
_status_cache_repo = StatusCacheRepository(engine)

# ── In-memory state ──
_log_buffer = LogIntakeBuffer()
_cooldown_gate = InMemoryCooldownGate()
_settings_cache = SettingsCache(_settings_repo)

# ── Services ──
_trigger_evaluator = TriggerEvaluator(
    buffer=_log_buffer,
    cooldown=_cooldown_gate,
    settings_cache=_settings_cache,
    incident_repo=_incident_repo,
    org_repo=_org_repo,
    identity=IdentityResolver(_org_repo),
    summarizer=AiSummarizer(),
)
_log_ingest_service = LogIngestService(_org_repo, _service_repo, _trigger_evaluator)
_status_service = StatusService(_incident_repo, _service_repo, _status_cache_repo)
_maintenance_service = MaintenanceService(
    _maintenance_repo,
    on_change=lambda: _status_service.refresh(reason="maintenance_change"),
)


# ── FastAPI dependency functions ──
def get_log_buffer() -> LogIntakeBuffer:
    return _log_buffer


def get_settings_cache() -> SettingsCache:
    return _settings_cache


def get_log_ingest_service() -> LogIngestService:
    return _log_ingest_service


def get_status_service() -> StatusService:
    return _status_service


def get_maintenance_service() -> MaintenanceService:
    return _maintenance_service
