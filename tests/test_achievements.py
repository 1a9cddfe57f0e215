from datetime import timedelta
from itertools import product

import pytest

from eventify.models.feedback import Feedback
from eventify.models.user import UserRole, utcnow
from eventify.routes.achievements import my_achievements
from eventify.services.achievements import BADGES, ActivityStats, collect_stats, level_for, summarize

from factories import make_event, make_registration, make_user


def _earned(summary):
    return {b.id for b in summary.badges if b.earned}


def test_new_student_has_nothing():
    summary = summarize(1, ActivityStats())
    assert summary.earned_count == 0
    assert summary.total_points == 0
    assert summary.level == 1
    assert (summary.previous_level_points, summary.next_level_points) == (0, 100)


def test_thresholds():
    summary = summarize(1, ActivityStats(registrations=5, feedback=3, largest_team=3))
    assert _earned(summary) == {"first-event", "feedback-king", "event-master", "social-butterfly"}
    assert summary.total_points == 50 + 100 + 200 + 75
    assert summary.level == 5

    assert _earned(summarize(1, ActivityStats(registrations=4, feedback=2, largest_team=2))) == {"first-event"}


def test_level_matches_points_for_every_badge_combination():
    for flags in product([False, True], repeat=len(BADGES)):
        points = sum(b.points for b, on in zip(BADGES, flags) if on)
        assert level_for(points) == points // 100 + 1


def test_summary_level_formula_holds_for_generated_stats():
    for regs, fb, team, early, admin in product(range(0, 7), range(0, 4), range(0, 4), range(0, 2), (False, True)):
        stats = ActivityStats(registrations=regs, feedback=fb, largest_team=team, early_registrations=early, is_admin=admin)
        summary = summarize(1, stats)
        assert summary.total_points == sum(b.points for b in summary.badges if b.earned)
        assert summary.level == summary.total_points // 100 + 1


def test_new_achievement_flag_compares_with_previous_count():
    stats = ActivityStats(registrations=1)
    assert summarize(1, stats).has_new_achievement is False
    assert summarize(1, stats, previous_count=0).has_new_achievement is True
    assert summarize(1, stats, previous_count=1).has_new_achievement is False


def test_summarize_is_idempotent():
    stats = ActivityStats(registrations=2, feedback=1, is_admin=True)
    assert summarize(7, stats) == summarize(7, stats)


@pytest.mark.anyio
async def test_collect_stats_from_database(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    student = await make_user(session_factory)
    soon = await make_event(session_factory, admin, title="Soon", date=utcnow() + timedelta(days=2))
    later = await make_event(session_factory, admin, title="Later", date=utcnow() + timedelta(days=30))
    await make_registration(session_factory, soon, student, team_size=3)
    await make_registration(session_factory, later, student)

    async with session_factory() as db:
        db.add(
            Feedback(
                event_id=soon.id,
                user_id=student.id,
                overall_rating=5,
                was_informative=True,
                organization_rating="Excellent",
            )
        )
        await db.commit()

    async with session_factory() as db:
        stats = await collect_stats(db, student)
    assert stats == ActivityStats(registrations=2, feedback=1, largest_team=3, early_registrations=1, is_admin=False)

    async with session_factory() as db:
        summary = await my_achievements(previous_count=1, db=db, user=student)
    assert {b.id for b in summary.badges if b.earned} == {"first-event", "social-butterfly", "early-bird"}
    assert summary.total_points == 175
    assert summary.level == 2
    assert summary.has_new_achievement is True


@pytest.mark.anyio
async def test_admins_get_the_organizer_badge(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    async with session_factory() as db:
        summary = await my_achievements(previous_count=None, db=db, user=admin)
    assert [b.id for b in summary.badges if b.earned] == ["organizer"]
    assert summary.level == 4
