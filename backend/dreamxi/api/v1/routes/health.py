from fastapi import APIRouter, HTTPException

from dreamxi.services.team_store import StoreError, get_store

router = APIRouter()


@router.get("/live")
def live() -> dict:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/ready")
def ready() -> dict:
    """Readiness probe reporting which store backs the teams."""
    try:
        store = get_store()
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {"status": "ready", "store": store.backend}
