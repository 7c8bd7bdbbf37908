# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: per-organization auto-incident settings."""
from fastapi import APIRouter, Depends

from signal_engine.core.dependencies import get_settings_cache
from signal_engine.models.domain import TriggerSettings
from signal_engine.schemas import TriggerSettingsOut, TriggerSettingsUpdate
from signal_engine.services.settings_cache import SettingsCache

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])


def _to_out(organization_id: str, trigger: TriggerSettings) -> TriggerSettingsOut:
    return TriggerSettingsOut(organization_id=organization_id, **trigger.model_dump())


@router.get("/auto-incidents/{organization_id}", response_model=TriggerSettingsOut)
def get_auto_incident_settings(organization_id: str,
                               cache: SettingsCache = Depends(get_settings_cache)):
    return _to_out(organization_id, cache.get(organization_id, force=True))


@router.put("/auto-incidents/{organization_id}", response_model=TriggerSettingsOut)
def update_auto_incident_settings(organization_id: str, body: TriggerSettingsUpdate,
                                  cache: SettingsCache = Depends(get_settings_cache)):
    fields = body.model_dump(exclude_unset=True)
    return _to_out(organization_id, cache.save(organization_id, fields))
