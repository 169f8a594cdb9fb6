"""Realtime API v1 endpoints: row changes streamed via Server-Sent Events."""

import json
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from campaign.auth.local import auth_service
from campaign.auth.middleware import get_current_session
from campaign.auth.models import Principal, SessionType
from campaign.logging_config import get_logger
from campaign.rankings.service import leaderboard_sort_key, rank_rows, ranking_service
from campaign.realtime.changes import LiveCollection, RowChange
from campaign.realtime.feed import feed
from campaign.settings import settings
from campaign.storage.models import TABLES

logger = get_logger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def require_stream_admin(
    token: str | None = Query(default=None),
    principal: Principal | None = Depends(get_current_session),
) -> Principal:
    """Admin check that also accepts ``?token=``; EventSource cannot set headers."""
    if principal is None and token:
        principal = auth_service.get_principal_from_token(token)
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if principal.type != SessionType.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal


def format_event(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@router.get("/status")
async def realtime_status():
    """Connection indicator for dashboards."""
    return feed.status()


@router.get("/leaderboard")
async def stream_leaderboard(
    request: Request,
    admin: Principal = Depends(require_stream_admin),
):
    """Stream the top influencers, re-sent after every influencer change.

    The first event is the snapshot taken once the stream starts. The feed
    subscription is opened before the snapshot is read, so a change that
    commits in between is replayed on top of it rather than lost.
    """

    async def event_generator() -> AsyncIterator[str]:
        subscription = feed.subscribe(tables=["influencers"])
        try:
            collection = LiveCollection(
                "influencers",
                ranking_service.influencer_rows(),
                sort_key=leaderboard_sort_key,
                limit=settings.leaderboard_size,
            )
            yield format_event("leaderboard", rank_rows(collection.items()))
            while not await request.is_disconnected():
                change = await subscription.next(timeout=settings.realtime_heartbeat_seconds)
                if change is None:
                    yield ": heartbeat\n\n"
                    continue
                _apply_influencer_change(collection, change)
                yield format_event("leaderboard", rank_rows(collection.items()))
        finally:
            feed.unsubscribe(subscription)

    return StreamingResponse(event_generator(), media_type="text/event-stream", headers=SSE_HEADERS)


def _apply_influencer_change(collection: LiveCollection, change: RowChange) -> None:
    """Apply an influencer change and refresh that influencer's redemption count.

    Every redemption commits together with an influencer UPDATE, so the
    count is re-read here. Replaying a change already in the snapshot
    leaves the row unchanged.
    """
    collection.apply(change)
    row = collection.get(change.key())
    if row is not None:
        row["redemptions"] = ranking_service.redemption_count(row["id"])


@router.get("/{table}")
async def stream_table(
    table: str,
    request: Request,
    admin: Principal = Depends(require_stream_admin),
):
    """Stream INSERT/UPDATE/DELETE events for one table."""
    if table not in TABLES:
        raise HTTPException(status_code=404, detail=f"Unknown table '{table}'")

    async def event_generator() -> AsyncIterator[str]:
        subscription = feed.subscribe(tables=[table])
        logger.info("realtime_stream_opened", table=table)
        try:
            while not await request.is_disconnected():
                change = await subscription.next(timeout=settings.realtime_heartbeat_seconds)
                if change is None:
                    yield ": heartbeat\n\n"
                    continue
                yield format_event(change.event.value, change.to_dict())
        finally:
            feed.unsubscribe(subscription)
            logger.info("realtime_stream_closed", table=table)

    return StreamingResponse(event_generator(), media_type="text/event-stream", headers=SSE_HEADERS)
