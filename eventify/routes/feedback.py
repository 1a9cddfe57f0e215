from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import get_current_user, require_admin
from eventify.database import get_db
from eventify.models.event import Event
from eventify.models.feedback import Feedback
from eventify.models.user import User
from eventify.schemas import EventFeedbackOverview, FeedbackIn, FeedbackRead, FeedbackSummary, FeedbackWithUser
from eventify.services.feedback import feedback_for_event, find_feedback, summarize_feedback, upsert_feedback
from eventify.services.registrations import get_event_or_404

router = APIRouter(tags=["Feedback"])
admin = APIRouter(prefix="/admin", tags=["Admin: Feedback"])


@router.put("/events/{event_id}/feedback", response_model=FeedbackRead)
async def submit_feedback(
    event_id: int,
    payload: FeedbackIn,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await upsert_feedback(db, event_id=event_id, user=user, payload=payload)


@router.get("/events/{event_id}/feedback/me", response_model=FeedbackRead)
async def my_feedback(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    feedback = await find_feedback(db, event_id, user.id)
    if feedback is None:
        raise HTTPException(status_code=404, detail="No feedback submitted for this event")
    return feedback


@admin.get("/events/{event_id}/feedback", response_model=List[FeedbackWithUser])
async def event_feedback(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    await get_event_or_404(db, event_id)
    rows = await feedback_for_event(db, event_id)
    return [
        FeedbackWithUser(
            **FeedbackRead.model_validate(f).model_dump(),
            user_name=f.user.name if f.user else "Unknown",
        )
        for f in rows
    ]


@admin.get("/events/{event_id}/feedback/summary", response_model=FeedbackSummary)
async def event_feedback_summary(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    await get_event_or_404(db, event_id)
    return summarize_feedback(event_id, await feedback_for_event(db, event_id))


@admin.get("/feedback", response_model=List[EventFeedbackOverview])
async def feedback_overview(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    events = (await db.execute(select(Event).order_by(Event.date.desc()))).scalars().all()
    rows = (await db.execute(select(Feedback))).scalars().all()

    by_event = {}
    for f in rows:
        by_event.setdefault(f.event_id, []).append(f)

    return [
        EventFeedbackOverview(
            event_id=e.id,
            title=e.title,
            date=e.date,
            summary=summarize_feedback(e.id, by_event.get(e.id, [])),
        )
        for e in events
    ]
