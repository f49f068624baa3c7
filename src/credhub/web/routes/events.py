"""Realtime certificate events over Server-Sent Events."""

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials

from credhub.core.auth import ROLE_STUDENT
from credhub.core.certificates import CERTIFICATES_TABLE
from credhub.core.events import (
    ChangeFeed,
    Subscription,
    certificate_notification,
    get_change_feed,
)
from credhub.web.deps import bearer_scheme, user_from_token

router = APIRouter(prefix="/api/events", tags=["events"])

KEEPALIVE_SECONDS = 30.0


def format_sse(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


def subscribe_for_user(feed: ChangeFeed, user_id: str, role: str) -> Subscription:
    """Students follow updates to their own rows, faculty every change."""
    if role == ROLE_STUDENT:
        return feed.subscribe(
            channel="certificate_updates",
            table=CERTIFICATES_TABLE,
            event="UPDATE",
            filter=f"student_id=eq.{user_id}",
        )
    return feed.subscribe(
        channel="faculty_certificate_updates",
        table=CERTIFICATES_TABLE,
        event="*",
    )


async def event_generator(
    feed: ChangeFeed,
    user_id: str,
    role: str,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncGenerator[str, None]:
    """Subscribe for the user and generate SSE frames until the feed closes it.

    The subscription lives only while the body is being iterated.
    """
    sub = subscribe_for_user(feed, user_id, role)
    try:
        while True:
            try:
                change = await asyncio.wait_for(sub.queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield format_sse("keepalive", "ping")
                continue

            if change is None:
                yield format_sse("close", "Subscription ended")
                return

            if role == ROLE_STUDENT:
                notification = certificate_notification(change.record)
                payload = {
                    **change.to_dict(),
                    "notification": notification.to_dict() if notification else None,
                }
                yield format_sse("certificate_update", json.dumps(payload))
            else:
                yield format_sse("certificate_change", json.dumps(change.to_dict()))
    finally:
        feed.unsubscribe(sub)


@router.get("/certificates")
async def stream_certificate_events(
    token: str | None = Query(None),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> StreamingResponse:
    """Stream certificate changes for the signed-in user.

    EventSource clients cannot set headers, so the access token may also be
    passed as ?token=.

    Events:
    - certificate_update: (students) status change on one of their certificates,
      with a notification message for approved/rejected
    - certificate_change: (faculty) any insert or update
    - keepalive: Sent every 30s to keep connection alive
    - close: Subscription has ended
    """
    user = user_from_token(credentials.credentials if credentials else token)
    return StreamingResponse(
        event_generator(get_change_feed(), user.id, user.role),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
