import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy import func, select

from eventify.models.feedback import Feedback
from eventify.models.user import UserRole
from eventify.routes.feedback import (
    event_feedback,
    event_feedback_summary,
    feedback_overview,
    my_feedback,
    submit_feedback,
)
from eventify.schemas import FeedbackIn

from factories import make_event, make_registration, make_user


def _feedback(rating=4, informative=True, organization="Good", comment=None):
    return FeedbackIn(
        overall_rating=rating,
        was_informative=informative,
        organization_rating=organization,
        additional_comments=comment,
    )


def test_rating_outside_range_is_rejected():
    with pytest.raises(ValidationError):
        _feedback(rating=6)
    with pytest.raises(ValidationError):
        _feedback(organization="Superb")


@pytest.mark.anyio
async def test_only_participants_can_leave_feedback(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    student = await make_user(session_factory)
    event = await make_event(session_factory, admin)

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await submit_feedback(event.id, _feedback(), db=db, user=student)
    assert exc.value.status_code == 403


@pytest.mark.anyio
async def test_second_submission_updates_the_same_row(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    student = await make_user(session_factory)
    event = await make_event(session_factory, admin)
    await make_registration(session_factory, event, student)

    async with session_factory() as db:
        first = await submit_feedback(event.id, _feedback(rating=3, comment="Too long"), db=db, user=student)
    async with session_factory() as db:
        second = await submit_feedback(event.id, _feedback(rating=5, organization="Excellent"), db=db, user=student)

    assert second.id == first.id
    assert second.overall_rating == 5
    assert second.organization_rating == "Excellent"
    assert second.additional_comments is None

    async with session_factory() as db:
        assert await db.scalar(select(func.count(Feedback.id))) == 1
        mine = await my_feedback(event.id, db=db, user=student)
    assert mine.overall_rating == 5


@pytest.mark.anyio
async def test_my_feedback_is_404_before_submitting(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    student = await make_user(session_factory)
    event = await make_event(session_factory, admin)

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await my_feedback(event.id, db=db, user=student)
    assert exc.value.status_code == 404


@pytest.mark.anyio
async def test_admin_analytics(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    event = await make_event(session_factory, admin, title="Tech Talk")
    quiet = await make_event(session_factory, admin, title="Quiet Event")

    votes = [(5, True, "Excellent"), (4, True, "Good"), (2, False, "Poor")]
    for i, (rating, informative, organization) in enumerate(votes):
        student = await make_user(session_factory, name=f"Student{i} User")
        await make_registration(session_factory, event, student)
        async with session_factory() as db:
            await submit_feedback(event.id, _feedback(rating, informative, organization), db=db, user=student)

    async with session_factory() as db:
        rows = await event_feedback(event.id, db=db, _=admin)
    assert sorted(r.user_name for r in rows) == ["Student0 User", "Student1 User", "Student2 User"]

    async with session_factory() as db:
        summary = await event_feedback_summary(event.id, db=db, _=admin)
    assert summary.total_responses == 3
    assert summary.average_rating == 3.67
    assert summary.informative_count == 2
    assert summary.organization_ratings == {"Excellent": 1, "Good": 1, "Average": 0, "Poor": 1}
    assert summary.rating_distribution == {"1": 0, "2": 1, "3": 0, "4": 1, "5": 1}

    async with session_factory() as db:
        overview = await feedback_overview(db=db, _=admin)
    by_title = {o.title: o.summary for o in overview}
    assert by_title["Tech Talk"].total_responses == 3
    assert by_title["Quiet Event"].total_responses == 0
    assert by_title["Quiet Event"].average_rating == 0.0
    assert quiet.id in {o.event_id for o in overview}
