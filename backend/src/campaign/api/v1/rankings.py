"""Rankings API v1 endpoints."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from campaign.auth.middleware import require_admin
from campaign.auth.models import Principal
from campaign.rankings.service import EXPORT_FILENAME, ranking_service

router = APIRouter(prefix="/rankings", tags=["rankings"])


@router.get("")
async def get_rankings(
    limit: int | None = Query(default=None, ge=1, le=1000),
    admin: Principal = Depends(require_admin),
):
    """Complete rankings plus the top three performers."""
    entries = ranking_service.leaderboard(limit=limit)
    return {
        "top": entries[:3],
        "rankings": entries,
        "max_points": max([e["points"] for e in entries], default=0),
    }


@router.get("/export")
async def export_rankings(admin: Principal = Depends(require_admin)):
    """Download the rankings as CSV."""
    return StreamingResponse(
        iter([ranking_service.export_csv()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={EXPORT_FILENAME}",
        },
    )
