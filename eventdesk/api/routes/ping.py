from fastapi import APIRouter, HTTPException, Request

from eventdesk.dependencies.tickets import AdminUser

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health probe")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/database", summary="Database connectivity probe")
async def ping_database(request: Request, _: AdminUser) -> dict[str, object]:
    probe = getattr(request.app.state, "database_probe", None)
    if probe is None:
        raise HTTPException(status_code=503, detail="Database probe is not configured")
    health = await probe.check()
    if not health.ok:
        raise HTTPException(status_code=503, detail=health.detail)
    return {"status": "ok", "latency_ms": health.latency_ms, "detail": health.detail}
