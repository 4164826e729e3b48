"""
Public ingestion route.

Accepts any method and any content type on /webhook/{endpoint}.
"""
import time

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hookrelay.config import Settings
from hookrelay.database import get_db
from hookrelay.dependencies.config import get_settings
from hookrelay.errors import NotFoundError, ProcessingError, UnauthorizedError
from hookrelay.routes.metrics import track_ingestion
from hookrelay.services.ingestion_service import IngestionService


router = APIRouter(tags=["ingest"])

INGEST_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]

_OUTCOMES = {
    NotFoundError: "not_found",
    UnauthorizedError: "rejected",
    ProcessingError: "failed",
}


@router.api_route("/webhook/{endpoint}", methods=INGEST_METHODS)
async def receive_webhook(
    endpoint: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """
    Record an inbound webhook call.

    The body is stored as raw text, so payloads of any format are kept
    even when they are not valid JSON.
    """
    started_at = getattr(request.state, "received_at", None) or time.monotonic()
    service = IngestionService(db, config)

    try:
        result = await service.ingest(endpoint, request, started_at=started_at)
    except (NotFoundError, UnauthorizedError, ProcessingError) as e:
        track_ingestion(_OUTCOMES[type(e)])
        raise

    track_ingestion("accepted", time.monotonic() - started_at)
    return result
