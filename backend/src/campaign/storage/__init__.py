"""Persistence layer: models and session management."""

from campaign.storage.db import Database, db
from campaign.storage.models import TABLES, Base, Consumer, Influencer, ProductCode, Redemption

__all__ = [
    "TABLES",
    "Base",
    "Consumer",
    "Database",
    "Influencer",
    "ProductCode",
    "Redemption",
    "db",
]
