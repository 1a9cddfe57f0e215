import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import require_admin
from eventify.database import get_db
from eventify.models.event import Event
from eventify.models.user import User
from eventify.realtime import ChangeFeed, ReactionBroadcaster, get_change_feed, get_reaction_broadcaster
from eventify.realtime.feed import INSERT
from eventify.schemas import EventCreate, EventRead, EventUpdate, ReminderReport, SlotIncrease
from eventify.services.registrations import (
    SLOTS_BELOW_REGISTRATIONS,
    get_event_or_404,
    increase_slots,
    resize_event,
)
from eventify.services.reminders import send_event_reminders
from eventify.utils import as_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])
admin = APIRouter(prefix="/admin", tags=["Admin: Events"])


# ---------------------------------------------------------------
# Public
# ---------------------------------------------------------------

@router.get("", response_model=List[EventRead])
async def list_events(db: AsyncSession = Depends(get_db)):
    rows = (await db.execute(select(Event).order_by(Event.date.asc()))).scalars().all()
    return rows


@router.get("/{event_id}", response_model=EventRead)
async def get_event(event_id: int, db: AsyncSession = Depends(get_db)):
    return await get_event_or_404(db, event_id)


# ---------------------------------------------------------------
# Admin
# ---------------------------------------------------------------

@admin.post("/events", response_model=EventRead, status_code=201)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
    feed: ChangeFeed = Depends(get_change_feed),
):
    event = Event(
        title=payload.title,
        description=payload.description,
        date=as_naive_utc(payload.date),
        location=payload.location,
        image_url=payload.image_url,
        total_slots=payload.total_slots,
        available_slots=payload.total_slots,
        creator_id=user.id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    logger.info("Admin %s created event %s (%d slots)", user.id, event.id, event.total_slots)
    feed.event_changed(event, INSERT)
    return event


@admin.patch("/events/{event_id}", response_model=EventRead)
async def update_event(
    event_id: int,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
    feed: ChangeFeed = Depends(get_change_feed),
):
    event = await get_event_or_404(db, event_id)
    data = payload.model_dump(exclude_unset=True)

    new_total = data.pop("total_slots", None)
    if new_total is not None and not await resize_event(db, event_id, new_total):
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLOTS_BELOW_REGISTRATIONS)

    if "date" in data:
        data["date"] = as_naive_utc(data["date"])
    for key, value in data.items():
        if key in {"title", "location", "date"} and value is None:
            continue
        setattr(event, key, value)

    await db.commit()
    await db.refresh(event)
    feed.event_changed(event)
    return event


@admin.delete("/events/{event_id}", status_code=204)
async def delete_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
    feed: ChangeFeed = Depends(get_change_feed),
    reactions: ReactionBroadcaster = Depends(get_reaction_broadcaster),
):
    event = await get_event_or_404(db, event_id)
    await db.delete(event)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("Admin %s tried to delete event %s which still has registrations", user.id, event_id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Event still has registrations or feedback and cannot be deleted",
        )
    logger.info("Admin %s deleted event %s", user.id, event_id)
    feed.event_deleted(event_id)
    reactions.board.clear(event_id)


@admin.post("/events/{event_id}/slots", response_model=EventRead)
async def add_slots(
    event_id: int,
    payload: Optional[SlotIncrease] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_admin),
    feed: ChangeFeed = Depends(get_change_feed),
):
    payload = payload or SlotIncrease()
    event = await get_event_or_404(db, event_id)
    if not await increase_slots(db, event_id, payload.amount):
        await db.rollback()
        raise HTTPException(status_code=404, detail="Event not found")
    await db.commit()
    await db.refresh(event)
    logger.info("Admin %s added %d slots to event %s", user.id, payload.amount, event_id)
    feed.event_changed(event)
    return event


@admin.post("/reminders", response_model=ReminderReport)
async def send_reminders(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    run = await send_event_reminders(db)
    return ReminderReport.model_validate(run)
