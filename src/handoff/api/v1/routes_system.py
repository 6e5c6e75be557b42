from fastapi import APIRouter, Request

router = APIRouter(prefix="", tags=["system"])


@router.get("/health")
async def health_check_v1(request: Request) -> dict:
    """API v1 health endpoint.

    Reports ``{"status": "error"}`` with the reason when the record store
    could not be configured at startup.
    """

    config_error = getattr(request.app.state, "config_error", None)
    if config_error:
        return {"status": "error", "version": "v1", "detail": config_error}
    return {"status": "ok", "version": "v1"}
