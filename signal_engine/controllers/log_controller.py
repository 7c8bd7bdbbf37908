# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: log ingestion. Soft failures still answer 200 with an informational message."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from signal_engine.core.dependencies import get_log_ingest_service
from signal_engine.schemas import LogIngestRequest, LogIngestResponse
from signal_engine.services.log_ingest_service import LogIngestService

router = APIRouter(prefix="/api/v1/logs", tags=["Logs"])


def _bearer_token(authorization: Optional[str]) -> str:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return ""


@router.post("/ingest", response_model=LogIngestResponse)
def ingest_log(body: LogIngestRequest,
               authorization: Optional[str] = Header(default=None),
               service: LogIngestService = Depends(get_log_ingest_service)):
    try:
        organization_id = service.authenticate(_bearer_token(authorization))
    except PermissionError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    try:
        result = service.ingest(
            organization_id,
            service_name=body.service,
            level=body.level,
            message=body.message,
            timestamp=body.timestamp,
            context=body.context,
        )
    except KeyError:
        raise HTTPException(status_code=400, detail="Service not found for org")
    return LogIngestResponse(message=result.message, incident_id=result.incident_id)
