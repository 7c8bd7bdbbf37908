# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: public status page and explicit cache refresh."""
from fastapi import APIRouter, Depends

from signal_engine.core.dependencies import get_status_service
from signal_engine.models.domain import StatusCacheRecord
from signal_engine.schemas import StatusMeta, StatusResponse
from signal_engine.services.status_service import StatusService

router = APIRouter(prefix="/api/v1", tags=["Status"])


def _to_response(record: StatusCacheRecord) -> StatusResponse:
    return StatusResponse(
        data=record.payload,
        meta=StatusMeta(
            state=record.state,
            uptime24h=record.uptime24h,
            updated_at=record.updated_at.isoformat(),
        ),
    )


@router.get("/public/status", response_model=StatusResponse)
def get_public_status(service: StatusService = Depends(get_status_service)):
    return _to_response(service.fetch_fresh())


@router.post("/status/refresh", response_model=StatusResponse)
def refresh_status(service: StatusService = Depends(get_status_service)):
    return _to_response(service.refresh(reason="manual"))
