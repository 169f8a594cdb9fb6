"""Influencer API v1 endpoints: own dashboard and admin management."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from campaign.auth.middleware import require_admin, require_influencer
from campaign.auth.models import Principal
from campaign.influencers.service import influencer_service
from campaign.redemption.service import redemption_service

router = APIRouter(tags=["influencers"])


class CreateInfluencerRequest(BaseModel):
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)


@router.get("/influencers/me")
async def my_dashboard(principal: Principal = Depends(require_influencer)):
    """Points, consumers reached and profile for the logged-in influencer."""
    return influencer_service.dashboard(principal.id)


@router.get("/influencers/me/redemptions")
async def my_redemptions(principal: Principal = Depends(require_influencer)):
    return redemption_service.history(influencer_id=principal.id)


@router.get("/admin/influencers")
async def list_influencers(admin: Principal = Depends(require_admin)):
    return [influencer.to_dict() for influencer in influencer_service.list_influencers()]


@router.post("/admin/influencers", status_code=status.HTTP_201_CREATED)
async def create_influencer(
    body: CreateInfluencerRequest,
    admin: Principal = Depends(require_admin),
):
    """Add an influencer; a code is generated for them."""
    influencer = influencer_service.create_by_admin(body.first_name, body.last_name)
    return {
        "title": "Influencer Added!",
        "detail": f"{influencer.full_name} has been added with code {influencer.code}",
        "influencer": influencer.to_dict(),
    }


@router.get("/admin/influencers/performance")
async def influencer_performance(admin: Principal = Depends(require_admin)):
    return influencer_service.performance()


@router.get("/admin/redemptions")
async def recent_redemptions(admin: Principal = Depends(require_admin)):
    return redemption_service.history()
