# eventify/routes/dashboard.py
"""Role-specific landing data for the two kinds of users."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import get_current_user
from eventify.database import get_db
from eventify.models.event import Event
from eventify.models.feedback import Feedback
from eventify.models.registration import Registration
from eventify.models.user import User, utcnow
from eventify.schemas import (
    AchievementSummaryRead,
    AdminEventStats,
    DashboardRead,
    EventRead,
    ExploreEventRead,
    RegistrationWithEvent,
    UserRead,
)
from eventify.services.achievements import achievements_for

router = APIRouter(tags=["Dashboard"])


async def _registered_event_ids(db: AsyncSession, user_id: int) -> set:
    rows = await db.execute(select(Registration.event_id).where(Registration.user_id == user_id))
    return set(rows.scalars().all())


async def explore_events(db: AsyncSession, user: User, *, upcoming_only: bool = False) -> List[ExploreEventRead]:
    stmt = select(Event).order_by(Event.date.asc())
    if upcoming_only:
        stmt = stmt.where(Event.date >= utcnow())
    events = (await db.execute(stmt)).scalars().all()
    registered = await _registered_event_ids(db, user.id)
    return [
        ExploreEventRead(**EventRead.model_validate(e).model_dump(), is_registered=e.id in registered)
        for e in events
    ]


async def admin_event_stats(db: AsyncSession) -> List[AdminEventStats]:
    events = (await db.execute(select(Event).order_by(Event.date.desc()))).scalars().all()

    reg_rows = (
        await db.execute(
            select(
                Registration.event_id,
                func.count(Registration.id),
                func.sum(case((Registration.attended.is_(True), 1), else_=0)),
            ).group_by(Registration.event_id)
        )
    ).all()
    fb_rows = (
        await db.execute(
            select(Feedback.event_id, func.count(Feedback.id), func.avg(Feedback.overall_rating))
            .group_by(Feedback.event_id)
        )
    ).all()

    registrations = {r[0]: (int(r[1] or 0), int(r[2] or 0)) for r in reg_rows}
    feedback = {r[0]: (int(r[1] or 0), float(r[2]) if r[2] is not None else None) for r in fb_rows}

    stats = []
    for e in events:
        reg_count, attended = registrations.get(e.id, (0, 0))
        fb_count, avg = feedback.get(e.id, (0, None))
        stats.append(
            AdminEventStats(
                event=EventRead.model_validate(e),
                registrations=reg_count,
                attended=attended,
                feedback_count=fb_count,
                average_rating=round(avg, 2) if avg is not None else None,
            )
        )
    return stats


@router.get("/dashboard", response_model=DashboardRead)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if user.is_admin:
        return DashboardRead(
            role=user.role,
            user=UserRead.model_validate(user),
            events=await admin_event_stats(db),
            achievements=AchievementSummaryRead.model_validate(await achievements_for(db, user)),
        )

    rows = (
        await db.execute(
            select(Registration)
            .join(Event, Event.id == Registration.event_id)
            .where(Registration.user_id == user.id)
            .order_by(Event.date.asc())
        )
    ).scalars().all()
    return DashboardRead(
        role=user.role,
        user=UserRead.model_validate(user),
        registrations=[RegistrationWithEvent.model_validate(r) for r in rows],
        achievements=AchievementSummaryRead.model_validate(await achievements_for(db, user)),
        upcoming_events=await explore_events(db, user, upcoming_only=True),
    )


@router.get("/explore", response_model=List[ExploreEventRead])
async def explore(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await explore_events(db, user)
