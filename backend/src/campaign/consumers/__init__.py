"""Consumer accounts."""

from campaign.consumers.service import ConsumerService, consumer_service

__all__ = ["ConsumerService", "consumer_service"]
