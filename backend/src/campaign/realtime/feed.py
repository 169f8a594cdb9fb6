"""In-process change feed.

Row changes are collected from ORM sessions on flush and published to
subscribers once the transaction commits. Each subscriber owns an
``asyncio.Queue`` bound to the loop it subscribed from; publishing is safe
from any thread.
"""

import asyncio
import threading
from typing import Any, Iterable

from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker

from campaign.logging_config import get_logger
from campaign.realtime.changes import ChangeEvent, RowChange

logger = get_logger(__name__)

_PENDING_KEY = "campaign_pending_changes"


class Subscription:
    """A subscriber's view of the feed."""

    def __init__(
        self,
        tables: Iterable[str] | None,
        loop: asyncio.AbstractEventLoop,
    ):
        self.tables = frozenset(tables) if tables is not None else None
        self.queue: asyncio.Queue[RowChange] = asyncio.Queue()
        self._loop = loop

    def wants(self, change: RowChange) -> bool:
        return self.tables is None or change.table in self.tables

    def deliver(self, change: RowChange) -> bool:
        """Hand a change to the subscriber's loop. False if the loop is gone."""
        if self._loop.is_closed():
            return False
        try:
            self._loop.call_soon_threadsafe(self.queue.put_nowait, change)
        except RuntimeError:
            return False
        return True

    async def next(self, timeout: float | None = None) -> RowChange | None:
        """Wait for the next change; None on timeout."""
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class ChangeFeed:
    """Fan-out of committed row changes to subscribers."""

    def __init__(self):
        self._subscribers: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, tables: Iterable[str] | None = None) -> Subscription:
        """Subscribe from inside a running event loop."""
        subscription = Subscription(tables, asyncio.get_running_loop())
        with self._lock:
            self._subscribers.append(subscription)
        logger.debug("feed_subscribed", tables=sorted(subscription.tables or []))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)
        logger.debug("feed_unsubscribed")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, change: RowChange) -> int:
        """Deliver a change to every interested subscriber.

        Returns the number of subscribers it was handed to.
        """
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for subscription in subscribers:
            if not subscription.wants(change):
                continue
            if subscription.deliver(change):
                delivered += 1
            else:
                logger.warning("feed_subscriber_dropped", table=change.table)
                self.unsubscribe(subscription)
        return delivered

    def status(self) -> dict[str, Any]:
        return {"connected": True, "subscribers": self.subscriber_count}


# Global feed instance
feed = ChangeFeed()


# ==================== SESSION HOOKS ====================


def record_change(session: Session, event_type: ChangeEvent, obj: Any) -> None:
    """Queue a change on the session; published after commit.

    Used directly for writes that bypass the unit of work (Core updates).
    """
    row = obj.to_dict()
    if event_type is ChangeEvent.DELETE:
        change = RowChange(event_type, obj.__tablename__, new={}, old={"id": row["id"]})
    elif event_type is ChangeEvent.UPDATE:
        change = RowChange(event_type, obj.__tablename__, new=row, old={"id": row["id"]})
    else:
        change = RowChange(event_type, obj.__tablename__, new=row)
    session.info.setdefault(_PENDING_KEY, []).append(change)


def _after_flush(session: Session, flush_context) -> None:
    for obj in session.new:
        if hasattr(obj, "to_dict"):
            record_change(session, ChangeEvent.INSERT, obj)
    for obj in session.dirty:
        if hasattr(obj, "to_dict") and session.is_modified(obj, include_collections=False):
            record_change(session, ChangeEvent.UPDATE, obj)
    for obj in session.deleted:
        if hasattr(obj, "to_dict"):
            record_change(session, ChangeEvent.DELETE, obj)


def _after_commit(session: Session) -> None:
    for change in session.info.pop(_PENDING_KEY, []):
        feed.publish(change)


def _after_soft_rollback(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)


def install_session_hooks(session_factory: sessionmaker) -> None:
    """Attach change collection to every session the factory creates."""
    event.listen(session_factory, "after_flush", _after_flush)
    event.listen(session_factory, "after_commit", _after_commit)
    event.listen(session_factory, "after_soft_rollback", _after_soft_rollback)
