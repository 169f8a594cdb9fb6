"""Realtime row-change feed for keeping client collections in sync."""

from campaign.realtime.changes import ChangeEvent, LiveCollection, RowChange, apply_change
from campaign.realtime.feed import ChangeFeed, Subscription, feed, record_change

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "LiveCollection",
    "RowChange",
    "Subscription",
    "apply_change",
    "feed",
    "record_change",
]
