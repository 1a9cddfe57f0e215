# eventify/services/feedback.py
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.models.feedback import Feedback, OrganizationRating
from eventify.models.user import User
from eventify.schemas import FeedbackIn, FeedbackSummary
from eventify.services.registrations import find_registration, get_event_or_404

logger = logging.getLogger(__name__)


async def find_feedback(db: AsyncSession, event_id: int, user_id: int) -> Optional[Feedback]:
    return (
        await db.execute(
            select(Feedback).where(Feedback.event_id == event_id, Feedback.user_id == user_id)
        )
    ).scalar_one_or_none()


async def upsert_feedback(db: AsyncSession, *, event_id: int, user: User, payload: FeedbackIn) -> Feedback:
    """Create the caller's feedback for an event, or overwrite the existing one."""

    await get_event_or_404(db, event_id)
    if await find_registration(db, event_id, user.id) is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only registered participants can leave feedback",
        )

    values = dict(
        overall_rating=payload.overall_rating,
        was_informative=payload.was_informative,
        organization_rating=payload.organization_rating.value,
        additional_comments=payload.additional_comments,
    )

    feedback = await find_feedback(db, event_id, user.id)
    if feedback is None:
        feedback = Feedback(event_id=event_id, user_id=user.id, **values)
        db.add(feedback)
    else:
        for key, value in values.items():
            setattr(feedback, key, value)

    try:
        await db.commit()
    except IntegrityError:
        # a concurrent submit from the same user created the row first
        await db.rollback()
        feedback = await find_feedback(db, event_id, user.id)
        if feedback is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Feedback could not be saved")
        for key, value in values.items():
            setattr(feedback, key, value)
        await db.commit()

    await db.refresh(feedback)
    logger.info("Feedback saved for event=%s user=%s rating=%s", event_id, user.id, feedback.overall_rating)
    return feedback


def summarize_feedback(event_id: int, rows: Iterable[Feedback]) -> FeedbackSummary:
    rows = list(rows)
    ratings = Counter(str(r.overall_rating) for r in rows)
    organization = Counter(r.organization_rating for r in rows)
    total = len(rows)
    return FeedbackSummary(
        event_id=event_id,
        total_responses=total,
        average_rating=round(sum(r.overall_rating for r in rows) / total, 2) if total else 0.0,
        informative_count=sum(1 for r in rows if r.was_informative),
        organization_ratings={o.value: organization.get(o.value, 0) for o in OrganizationRating},
        rating_distribution={str(n): ratings.get(str(n), 0) for n in range(1, 6)},
    )


async def feedback_for_event(db: AsyncSession, event_id: int) -> list[Feedback]:
    return list(
        (
            await db.execute(
                select(Feedback).where(Feedback.event_id == event_id).order_by(Feedback.created_at.desc())
            )
        ).scalars().all()
    )
