"""Admin API: full reset."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.envelope import get_service, ok
from src.mail.service import MailService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reset")
async def reset(service: MailService = Depends(get_service)) -> JSONResponse:
    """Delete every message, thread and group. Irreversible."""
    counts = service.reset()
    return ok({"message": "Database reset", "deleted": counts})
