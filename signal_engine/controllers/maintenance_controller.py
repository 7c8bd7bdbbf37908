# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: scheduled maintenance. Every read advances lifecycle statuses first."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from signal_engine.core.dependencies import get_maintenance_service
from signal_engine.schemas import (
    MaintenanceCreate, MaintenanceList, MaintenanceOut, MaintenanceUpdate, validate_maintenance_status,
)
from signal_engine.services.maintenance_service import MaintenanceService

router = APIRouter(prefix="/api/v1/maintenance", tags=["Maintenance"])


@router.get("", response_model=MaintenanceList)
def list_maintenance(
    status: Optional[str] = None,
    window: str = Query(default="upcoming", pattern="^(upcoming|past|all)$"),
    service_id: Optional[str] = None,
    service: MaintenanceService = Depends(get_maintenance_service),
):
    try:
        status = validate_maintenance_status(status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    events = service.list_events(status=status, window=window, service_id=service_id)
    return MaintenanceList(
        total=len(events),
        events=[MaintenanceOut(**service.serialize(e)) for e in events],
    )


@router.get("/{event_id}", response_model=MaintenanceOut)
def get_maintenance(event_id: str,
                    service: MaintenanceService = Depends(get_maintenance_service)):
    try:
        event = service.get_event(event_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Maintenance event not found")
    return MaintenanceOut(**service.serialize(event))


@router.post("", status_code=201, response_model=MaintenanceOut)
def create_maintenance(body: MaintenanceCreate,
                       service: MaintenanceService = Depends(get_maintenance_service)):
    try:
        event = service.create_event(
            title=body.title, description=body.description,
            starts_at=body.starts_at, ends_at=body.ends_at,
            applies_to_all=body.applies_to_all, service_id=body.service_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return MaintenanceOut(**service.serialize(event))


@router.patch("/{event_id}", response_model=MaintenanceOut)
def update_maintenance(event_id: str, body: MaintenanceUpdate,
                       service: MaintenanceService = Depends(get_maintenance_service)):
    try:
        event = service.update_event(event_id, body.model_dump(exclude_unset=True))
    except KeyError:
        raise HTTPException(status_code=404, detail="Maintenance event not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return MaintenanceOut(**service.serialize(event))


@router.post("/{event_id}/cancel", response_model=MaintenanceOut)
def cancel_maintenance(event_id: str,
                       service: MaintenanceService = Depends(get_maintenance_service)):
    try:
        event = service.cancel_event(event_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Maintenance event not found")
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return MaintenanceOut(**service.serialize(event))
