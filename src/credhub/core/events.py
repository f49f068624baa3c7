"""Realtime change feed for certificate rows.

Writers publish a ChangeEvent after each insert/update. Subscribers get an
asyncio.Queue that receives matching events; None on the queue means the
subscription was closed.

Subscriptions filter by table, event type ("*" for all) and an optional
column-equality filter in "column=eq.value" form.
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

logger = structlog.get_logger(__name__)

EventType = Literal["INSERT", "UPDATE", "DELETE"]

APPROVED_DURATION_MS = 5000
REJECTED_DURATION_MS = 8000


@dataclass
class ChangeEvent:
    """A row change on a table."""

    event_type: EventType
    table: str
    record: dict[str, Any]
    old_record: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "table": self.table,
            "new": self.record,
            "old": self.old_record,
        }


@dataclass
class Subscription:
    """A listener registered on the feed."""

    subscription_id: str
    channel: str
    table: str
    event: str = "*"
    filter_column: str | None = None
    filter_value: str | None = None
    queue: asyncio.Queue[ChangeEvent | None] = field(default_factory=asyncio.Queue)
    loop: asyncio.AbstractEventLoop | None = None

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if self.event != "*" and event.event_type != self.event:
            return False
        if self.filter_column is not None:
            return str(event.record.get(self.filter_column)) == self.filter_value
        return True

    def deliver(self, item: ChangeEvent | None) -> None:
        """Put item on the queue from any thread."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self.loop is None or running is self.loop:
            self.queue.put_nowait(item)
        elif not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self.queue.put_nowait, item)


@dataclass
class Notification:
    """User-facing message for a certificate status change."""

    level: Literal["success", "error"]
    title: str
    description: str
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "title": self.title,
            "description": self.description,
            "duration_ms": self.duration_ms,
        }


class InvalidFilterError(ValueError):
    """Filter string is not of the form column=eq.value."""


def parse_filter(filter_expr: str) -> tuple[str, str]:
    """Split "student_id=eq.abc" into ("student_id", "abc").

    Raises:
        InvalidFilterError: If the expression is malformed or not an eq filter
    """
    column, sep, rest = filter_expr.partition("=")
    if not sep or not column:
        raise InvalidFilterError(f"Invalid filter: {filter_expr!r}")
    op, dot, value = rest.partition(".")
    if op != "eq" or not dot:
        raise InvalidFilterError(f"Unsupported filter operator: {filter_expr!r}")
    return column, value


def certificate_notification(record: dict[str, Any]) -> Notification | None:
    """Build the student notification for an updated certificate row.

    Returns None for statuses that do not notify (pending).
    """
    title = record.get("title", "")
    status = record.get("status")

    if status == "approved":
        return Notification(
            level="success",
            title="Certificate Approved",
            description=f'Your certificate "{title}" has been approved by faculty.',
            duration_ms=APPROVED_DURATION_MS,
        )
    if status == "rejected":
        reason = record.get("rejection_reason")
        suffix = f"Reason: {reason}" if reason else ""
        return Notification(
            level="error",
            title="Certificate Rejected",
            description=f'Your certificate "{title}" was rejected. {suffix}'.rstrip(),
            duration_ms=REJECTED_DURATION_MS,
        )
    return None


class ChangeFeed:
    """Fan-out of row changes to subscribers."""

    def __init__(self):
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(
        self,
        channel: str,
        table: str,
        event: str = "*",
        filter: str | None = None,
    ) -> Subscription:
        """Register a listener.

        Args:
            channel: Free-form channel name, used in logs
            table: Table to watch
            event: "INSERT", "UPDATE", "DELETE" or "*"
            filter: Optional "column=eq.value" row filter

        Raises:
            InvalidFilterError: If filter is malformed
        """
        column = value = None
        if filter:
            column, value = parse_filter(filter)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        sub = Subscription(
            subscription_id=str(uuid.uuid4())[:8],
            channel=channel,
            table=table,
            event=event,
            filter_column=column,
            filter_value=value,
            loop=loop,
        )
        with self._lock:
            self._subscriptions[sub.subscription_id] = sub

        logger.debug(
            "events.subscribed",
            channel=channel,
            subscription_id=sub.subscription_id,
            table=table,
            event_filter=event,
        )
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        """Remove a listener and close its queue."""
        with self._lock:
            removed = self._subscriptions.pop(sub.subscription_id, None)

        if removed is None:
            return False

        removed.deliver(None)
        logger.debug("events.unsubscribed", subscription_id=sub.subscription_id)
        return True

    def close_all(self) -> int:
        """Remove every listener and close its queue.

        Returns:
            Number of subscriptions closed
        """
        with self._lock:
            subs = list(self._subscriptions.values())
            self._subscriptions.clear()

        for sub in subs:
            sub.deliver(None)

        logger.debug("events.closed_all", count=len(subs))
        return len(subs)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver event to every matching subscription.

        Returns:
            Number of subscriptions that received the event
        """
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.matches(event)]

        for sub in targets:
            sub.deliver(event)

        logger.debug(
            "events.published",
            table=event.table,
            event_type=event.event_type,
            delivered=len(targets),
        )
        return len(targets)

    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


# Global change feed instance
_change_feed: ChangeFeed | None = None


def get_change_feed() -> ChangeFeed:
    """Get the global change feed instance."""
    global _change_feed
    if _change_feed is None:
        _change_feed = ChangeFeed()
    return _change_feed


def reset_change_feed() -> None:
    """Reset the change feed (for testing)."""
    global _change_feed
    _change_feed = None
