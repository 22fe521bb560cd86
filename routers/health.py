# routers/health.py
from fastapi import APIRouter, Depends

from core.state import get_presence
from services.presence import PresenceRegistry

router = APIRouter()


@router.get("/health", summary="Health check")
async def healthcheck(presence: PresenceRegistry = Depends(get_presence)):
    return {"status": "ok", "online": len(presence)}
