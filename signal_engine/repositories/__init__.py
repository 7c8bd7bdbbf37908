# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package: re-exports every repository."""
from signal_engine.repositories.incident_repository import IncidentRepository
from signal_engine.repositories.maintenance_repository import MaintenanceRepository
from signal_engine.repositories.organization_repository import OrganizationRepository
from signal_engine.repositories.service_repository import ServiceRepository
from signal_engine.repositories.settings_repository import SettingsRepository
from signal_engine.repositories.status_cache_repository import StatusCacheRepository

__all__ = [
    "IncidentRepository",
    "MaintenanceRepository",
    "OrganizationRepository",
    "ServiceRepository",
    "SettingsRepository",
    "StatusCacheRepository",
]
