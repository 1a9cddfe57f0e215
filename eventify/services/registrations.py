# eventify/services/registrations.py
"""Slot accounting and registration writes.

Every write that moves ``available_slots`` is a single conditional UPDATE,
so ``0 <= available_slots <= total_slots`` holds no matter how requests
interleave. The SELECT-based checks that run first only exist to give a
quick answer in the common case; they are never what admits a registration.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.models.event import Event
from eventify.models.registration import Registration
from eventify.models.team_member import TeamMember
from eventify.models.user import User, utcnow
from eventify.schemas import RegistrationCreate

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "You have already registered for this event"
NO_SLOTS = "No slots available for this event"
SLOTS_BELOW_REGISTRATIONS = "Total slots cannot be lower than the number of existing registrations"


async def get_event_or_404(db: AsyncSession, event_id: int) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


async def get_registration_or_404(db: AsyncSession, registration_id: int) -> Registration:
    registration = (
        await db.execute(select(Registration).where(Registration.id == registration_id))
    ).scalar_one_or_none()
    if registration is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")
    return registration


async def find_registration(db: AsyncSession, event_id: int, user_id: int) -> Optional[Registration]:
    return (
        await db.execute(
            select(Registration).where(
                Registration.event_id == event_id,
                Registration.user_id == user_id,
            )
        )
    ).scalar_one_or_none()


def build_team(user: User, payload: RegistrationCreate) -> Tuple[str, List[dict]]:
    """Team name and member rows for a submission; the submitter is always a member."""

    team_name = payload.team_name or f"{user.name}'s Team"
    members = [m.model_dump() for m in payload.team_members]

    own_email = (user.email or "").lower()
    if not any(str(m["email"]).lower() == own_email for m in members):
        members.insert(
            0,
            {
                "name": user.name,
                "email": user.email,
                "department": user.department or "",
                "roll_number": None,
            },
        )
    return team_name, members


async def decrease_slot(db: AsyncSession, event_id: int) -> bool:
    """Take one slot if any is left. False means the event is full (or gone)."""

    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.available_slots > 0)
        .values(available_slots=Event.available_slots - 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def increase_slots(db: AsyncSession, event_id: int, amount: int) -> bool:
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(
            total_slots=Event.total_slots + amount,
            available_slots=Event.available_slots + amount,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def resize_event(db: AsyncSession, event_id: int, new_total: int) -> bool:
    """Set ``total_slots`` and shift ``available_slots`` by the same delta.

    Refused (False) when the new total would not cover the registrations
    already taken at the moment the UPDATE runs.
    """

    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.total_slots - Event.available_slots <= new_total,
        )
        .values(
            available_slots=new_total - (Event.total_slots - Event.available_slots),
            total_slots=new_total,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def submit_registration(
    db: AsyncSession,
    *,
    event_id: int,
    user: User,
    payload: RegistrationCreate,
) -> Tuple[Registration, Event]:
    """Create a registration with its team and take a slot, all or nothing.

    Raises 404 for an unknown event and 409 for a duplicate registration or
    a full event. Returns the committed registration and the refreshed event.
    """

    event = await get_event_or_404(db, event_id)

    if await find_registration(db, event_id, user.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ALREADY_REGISTERED)
    if event.available_slots <= 0:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=NO_SLOTS)

    team_name, members = build_team(user, payload)
    registration = Registration(
        event_id=event_id,
        user_id=user.id,
        team_name=team_name,
        registration_date=utcnow(),
        attended=False,
        certificate_generated=False,
        od_letter_generated=False,
        team_members=[TeamMember(**m) for m in members],
    )
    db.add(registration)

    try:
        await db.flush()
        taken = await decrease_slot(db, event_id)
        if taken:
            await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("Duplicate registration rejected for event=%s user=%s", event_id, user.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ALREADY_REGISTERED)
    except DBAPIError:
        await db.rollback()
        logger.exception("Registration for event %s failed (user=%s)", event_id, user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed, please try again",
        )

    if not taken:
        await db.rollback()
        logger.info("Registration for full event %s rejected (user=%s)", event_id, user.id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=NO_SLOTS)

    await db.refresh(event)
    logger.info(
        "User %s registered team %r for event %s (%d slots left)",
        user.id,
        team_name,
        event_id,
        event.available_slots,
    )
    return registration, event


async def set_attendance(db: AsyncSession, registration_id: int, attended: bool) -> Registration:
    registration = await get_registration_or_404(db, registration_id)
    registration.attended = attended
    await db.commit()
    await db.refresh(registration)
    return registration
