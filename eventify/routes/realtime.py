# eventify/routes/realtime.py
"""WebSocket endpoints for the change feed and live reactions.

Every socket gets a snapshot right after it connects and then only what is
published while it stays connected. Nothing is replayed on reconnect; a
client that drops simply connects again and starts from a fresh snapshot.
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, WebSocketException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import InvalidToken, user_from_token
from eventify.database import get_db
from eventify.models.event import Event
from eventify.models.registration import Registration
from eventify.models.user import User
from eventify.realtime import (
    EVENTS_TOPIC,
    ChangeFeed,
    LiveTable,
    ReactionBroadcaster,
    Subscription,
    UnknownReaction,
    get_change_feed,
    get_reaction_broadcaster,
    live_events,
    live_registrations,
    registrations_topic,
)
from eventify.realtime.feed import event_record, registration_record
from eventify.services.registrations import get_event_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["Realtime"])

FrameHandler = Callable[[dict], Awaitable[None]]


async def _authenticate(db: AsyncSession, token: Optional[str]) -> User:
    try:
        return await user_from_token(db, token)
    except InvalidToken:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="unauthorized")


async def _require_event(db: AsyncSession, event_id: int) -> None:
    try:
        await get_event_or_404(db, event_id)
    except HTTPException:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="event not found")


async def _receive_frames(websocket: WebSocket, handle: FrameHandler) -> None:
    while True:
        raw = await websocket.receive_text()
        try:
            frame = json.loads(raw)
        except ValueError:
            await websocket.send_json({"type": "error", "detail": "Frames must be JSON objects"})
            continue
        if not isinstance(frame, dict):
            await websocket.send_json({"type": "error", "detail": "Frames must be JSON objects"})
            continue
        await handle(frame)


async def _run_until_disconnect(*coros: Awaitable[None]) -> None:
    """Run the socket's pumps side by side; the first one to stop ends them all."""

    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            task.result()
    except WebSocketDisconnect:
        pass
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


async def _stream_table(websocket: WebSocket, sub: Subscription, table: LiveTable) -> None:
    await websocket.send_json({"type": "snapshot", "table": table.table, "records": table.snapshot()})

    async def forward() -> None:
        async for change in sub:
            table.apply(change)
            await websocket.send_json({"type": "change", **change})

    async def handle(frame: dict) -> None:
        if frame.get("action") == "snapshot":
            await websocket.send_json({"type": "snapshot", "table": table.table, "records": table.snapshot()})
        else:
            await websocket.send_json({"type": "error", "detail": "Unknown action"})

    await _run_until_disconnect(forward(), _receive_frames(websocket, handle))


@router.websocket("/events")
async def events_feed(
    websocket: WebSocket,
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    await websocket.accept()
    # subscribe before reading so nothing published in between is lost
    async with feed.listen(EVENTS_TOPIC) as sub:
        events = (await db.execute(select(Event).order_by(Event.date.asc()))).scalars().all()
        table = live_events(event_record(e) for e in events)
        await db.close()
        await _stream_table(websocket, sub, table)
    logger.debug("events feed socket closed")


@router.websocket("/events/{event_id}/registrations")
async def registrations_feed(
    websocket: WebSocket,
    event_id: int,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    user = await _authenticate(db, token)
    if not user.is_admin:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="admin only")
    await _require_event(db, event_id)

    await websocket.accept()
    async with feed.listen(registrations_topic(event_id)) as sub:
        rows = (
            await db.execute(select(Registration).where(Registration.event_id == event_id))
        ).scalars().all()
        table = live_registrations(registration_record(r) for r in rows)
        await db.close()
        await _stream_table(websocket, sub, table)
    logger.debug("registrations feed for event %s closed (admin %s)", event_id, user.id)


@router.websocket("/events/{event_id}/reactions")
async def reactions_feed(
    websocket: WebSocket,
    event_id: int,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    reactions: ReactionBroadcaster = Depends(get_reaction_broadcaster),
):
    user = await _authenticate(db, token)
    await _require_event(db, event_id)
    await db.close()

    await websocket.accept()
    async with reactions.listen(event_id) as sub:
        await websocket.send_json({"type": "snapshot", "event_id": event_id, "reactions": reactions.board.state(event_id)})

        async def forward() -> None:
            async for message in sub:
                await websocket.send_json({"type": "reaction", **message})

        async def handle(frame: dict) -> None:
            try:
                toggled = reactions.toggle(event_id, user.id, str(frame.get("reaction", "")), origin=sub)
            except UnknownReaction as exc:
                await websocket.send_json({"type": "error", "detail": str(exc)})
                return
            await websocket.send_json({"type": "ack", **toggled.as_message()})

        await _run_until_disconnect(forward(), _receive_frames(websocket, handle))
