"""API v1 routers."""

from campaign.api.v1.auth import router as auth_router
from campaign.api.v1.influencers import router as influencers_router
from campaign.api.v1.product_codes import router as product_codes_router
from campaign.api.v1.rankings import router as rankings_router
from campaign.api.v1.realtime import router as realtime_router
from campaign.api.v1.redeem import router as redeem_router

routers = [
    auth_router,
    redeem_router,
    influencers_router,
    product_codes_router,
    rankings_router,
    realtime_router,
]

__all__ = ["routers"]
