"""Product code redemption."""

from campaign.redemption.service import (
    CodeAlreadyUsedError,
    InvalidInfluencerCodeError,
    InvalidProductCodeError,
    RedemptionResult,
    RedemptionService,
    redemption_service,
)

__all__ = [
    "CodeAlreadyUsedError",
    "InvalidInfluencerCodeError",
    "InvalidProductCodeError",
    "RedemptionResult",
    "RedemptionService",
    "redemption_service",
]
