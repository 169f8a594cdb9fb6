"""Influencer management."""

from campaign.influencers.service import CodeTakenError, InfluencerService, generate_code, influencer_service

__all__ = ["CodeTakenError", "InfluencerService", "generate_code", "influencer_service"]
