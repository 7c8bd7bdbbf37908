# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Signal Engine
=============
Turns raw operational signals into platform state:

    log lines      ─► windowed error counter ─► auto-created incidents
    incidents      ─► status snapshot        ─► cached public status page
    maintenance    ─► clock-driven lifecycle ─► status refresh

Port: 8005
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from signal_engine.controllers import (
    log_controller,
    maintenance_controller,
    settings_controller,
    status_controller,
    system_controller,
)
from signal_engine.core.config import settings
from signal_engine.core.database import engine, ping
from signal_engine.core.dependencies import get_maintenance_service
from signal_engine.core.logging import get_logger
from signal_engine.middleware import MetricsMiddleware, RequestIDMiddleware
from signal_engine.schemas import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    try:
        ping()
        logger.info("Database connection verified")
    except Exception as exc:
        logger.warning("Database not reachable at startup: %s", exc)
    changed = get_maintenance_service().safe_transition()
    logger.info("%s v%s started (maintenance transitions: %d)",
                settings.SERVICE_NAME, settings.SERVICE_VERSION, changed)
    yield
    engine.dispose()
    logger.info("%s shutting down", settings.SERVICE_NAME)


app = FastAPI(
    title="Signal Engine",
    description="Log-driven auto incidents, cached public status and maintenance lifecycle.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": request_id})
    body = ErrorResponse(error="internal_server_error", detail=str(exc), request_id=request_id)
    return JSONResponse(status_code=500, content=body.model_dump())


app.include_router(system_controller.router)
app.include_router(log_controller.router)
app.include_router(status_controller.router)
app.include_router(settings_controller.router)
app.include_router(maintenance_controller.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
