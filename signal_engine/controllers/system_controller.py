# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""System endpoints: health, readiness and metrics."""
from fastapi import APIRouter, HTTPException
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from signal_engine.core.config import settings
from signal_engine.core.database import ping
from signal_engine.core.dependencies import get_log_buffer

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    buffer = get_log_buffer()
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "buffered_events": buffer.size(),
        "buffered_keys": buffer.key_count(),
    }


@router.get("/health/ready")
def readiness_check():
    try:
        ping()
        return {"status": "ok", "database": "connected"}
    except Exception as exc:
        raise HTTPException(status_code=503, detail=f"Database unavailable: {exc}")


@router.get("/metrics")
def prometheus_metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
