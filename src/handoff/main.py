import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.handoff.api.v1.routes_auth import router as auth_router_v1
from src.handoff.api.v1.routes_census_stream import router as census_stream_router_v1
from src.handoff.api.v1.routes_patients import router as patients_router_v1
from src.handoff.api.v1.routes_system import router as system_router_v1
from src.handoff.api.v1.routes_systems import router as systems_router_v1
from src.handoff.config import BackendConfig, settings
from src.handoff.domain.errors import (
    AuthFailure,
    ConfigMissing,
    DeletionNotConfirmed,
    RecordNotFound,
    WriteFailed,
)
from src.handoff.infra.db.bootstrap import init_repositories

logger = logging.getLogger("handoff")

app = FastAPI(title="Nurse Handoff Charting API")
app.state.config_error = None


@app.on_event("startup")
async def on_startup() -> None:
    """Application startup hook.

    Configures the record store from the environment. A missing or unusable
    configuration does not stop the process: the reason is kept on
    ``app.state`` so /health reports it and store-backed routes answer 503.
    """

    try:
        init_repositories(BackendConfig.from_settings())
    except ConfigMissing as exc:
        logger.error("Record store configuration missing: %s", exc)
        app.state.config_error = str(exc)


@app.exception_handler(RecordNotFound)
async def record_not_found_handler(request: Request, exc: RecordNotFound) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Patient not found"})


@app.exception_handler(WriteFailed)
async def write_failed_handler(request: Request, exc: WriteFailed) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": f"Write failed: {exc}"})


@app.exception_handler(DeletionNotConfirmed)
async def deletion_not_confirmed_handler(request: Request, exc: DeletionNotConfirmed) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Deletion requires confirmation; repeat with ?confirm=true"},
    )


@app.exception_handler(AuthFailure)
async def auth_failure_handler(request: Request, exc: AuthFailure) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})


# CORS configuration – permissive by default for development. Tighten via
# CORS_ALLOW_ORIGINS in production deployments.
allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Basic liveness probe for the API root."""
    if app.state.config_error:
        return {"status": "error", "detail": app.state.config_error}
    return {"status": "ok"}


# Versioned API routers
app.include_router(system_router_v1, prefix="/api/v1")
app.include_router(auth_router_v1, prefix="/api/v1")
app.include_router(systems_router_v1, prefix="/api/v1")
app.include_router(census_stream_router_v1, prefix="/api/v1")
app.include_router(patients_router_v1, prefix="/api/v1")
