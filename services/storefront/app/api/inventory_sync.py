from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from sqlalchemy.orm import Session, sessionmaker
from typing import List, Optional
import logging

from app.db.database import get_db, get_session_factory
from app.legacy.inventory_reader import LegacyInventoryReader, LegacySourceError, get_legacy_reader
from app.schemas.inventory_sync import LegacySite, ProgressEvent, SyncRequest, SyncRunResponse
from app.services.inventory_sync_service import InventorySyncService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/inventory",
    tags=["Inventory Sync"]
)

SITE_CODE_REQUIRED = "Site code is required"


def _stream_sync(session_factory: sessionmaker, reader: LegacyInventoryReader, site_code: str):
    """Yield SSE frames for one sync run, owning its own database session

    The session outlives the request handler, so it is opened and closed here
    rather than through get_db.
    """
    db = session_factory()
    try:
        service = InventorySyncService(db, reader)
        for event in service.iter_progress(site_code):
            yield event.to_sse()
    except Exception as e:
        # Anything escaping the service still ends the stream with an error frame
        logger.error(f"Inventory sync stream failed: {e}", exc_info=True)
        message = str(e) or "Unknown error"
        yield ProgressEvent(type="error", current=0, total=0, message=message, errors=[message]).to_sse()
    finally:
        db.close()


@router.post(
    "/sync-stream",
    summary="Sync a site's inventory from the legacy system (streamed)",
    description="""
    Pull on-hand inventory for one legacy site and reconcile sites, categories,
    products and inventories.

    **Response:** `text/event-stream`. Each frame is `data: <json>` with
    `type` one of `progress`, `complete` or `error`. The final frame is
    `complete` (with stats and per-item errors) or `error`.

    A missing or empty `siteCode` returns **400** with a plain-text body.
    """,
    responses={
        200: {"description": "Event stream of sync progress", "content": {"text/event-stream": {}}},
        400: {"description": "Site code is required", "content": {"text/plain": {}}}
    }
)
def sync_stream(
    request: Optional[SyncRequest] = Body(None),
    session_factory: sessionmaker = Depends(get_session_factory),
    reader: LegacyInventoryReader = Depends(get_legacy_reader)
):
    site_code = (request.site_code or "").strip() if request else ""
    if not site_code:
        return PlainTextResponse(SITE_CODE_REQUIRED, status_code=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Starting streamed inventory sync for site {site_code}")
    return StreamingResponse(
        _stream_sync(session_factory, reader, site_code),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )


@router.post(
    "/sync",
    response_model=ProgressEvent,
    response_model_exclude_none=True,
    summary="Sync a site's inventory from the legacy system",
    description="""
    Same run as `/sync-stream`, answered with the final `complete` or `error`
    event once the run finishes.
    """,
    responses={
        400: {"description": "Site code is required"},
        502: {"description": "Legacy system unavailable"}
    }
)
def sync(
    request: SyncRequest,
    db: Session = Depends(get_db),
    reader: LegacyInventoryReader = Depends(get_legacy_reader)
):
    site_code = (request.site_code or "").strip()
    if not site_code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=SITE_CODE_REQUIRED)

    service = InventorySyncService(db, reader)
    final_event = None
    for event in service.iter_progress(site_code):
        final_event = event

    if final_event.type == "error":
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=final_event.message)
    return final_event


@router.get(
    "/sites",
    response_model=List[LegacySite],
    summary="List legacy sites",
    responses={502: {"description": "Legacy system unavailable"}}
)
def list_sites(reader: LegacyInventoryReader = Depends(get_legacy_reader)):
    """Sites known to the legacy system, for choosing what to sync"""
    try:
        return reader.list_sites()
    except LegacySourceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get(
    "/sync-runs",
    response_model=List[SyncRunResponse],
    summary="Recent sync runs",
)
def list_sync_runs(
    limit: int = Query(10, ge=1, le=100, description="Number of runs to return"),
    db: Session = Depends(get_db)
):
    """Sync history, latest first"""
    return InventorySyncService(db).list_runs(limit)
