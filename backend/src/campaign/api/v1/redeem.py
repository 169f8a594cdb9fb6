"""Redemption API v1 endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from campaign.api.rate_limit import REDEEM_LIMIT, limiter
from campaign.auth.middleware import optional_consumer
from campaign.auth.models import Principal
from campaign.redemption.service import redemption_service

router = APIRouter(tags=["redeem"])


class RedeemRequest(BaseModel):
    """Codes entered on the landing page."""
    influencer_code: str = Field(default="", max_length=32)
    product_code: str = Field(default="", max_length=64)
    consumer_info: dict[str, Any] | None = None


class RedeemResponse(BaseModel):
    title: str = "Success!"
    detail: str = "Your product has been redeemed successfully!"
    redemption: dict[str, Any]


@router.post("/redeem", response_model=RedeemResponse)
@limiter.limit(REDEEM_LIMIT)
async def redeem(
    request: Request,
    body: RedeemRequest,
    consumer: Principal | None = Depends(optional_consumer),
):
    """Redeem a product code against an influencer code.

    Logged-in consumers get the redemption credited to their account.
    """
    result = redemption_service.redeem(
        influencer_code=body.influencer_code,
        product_code=body.product_code,
        consumer_id=consumer.id if consumer else None,
        consumer_info=body.consumer_info,
    )
    return RedeemResponse(redemption=result.to_dict())
