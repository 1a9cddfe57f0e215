# eventify/services/achievements.py
"""Badges, points and levels derived from a user's activity.

Nothing here is stored: every call recounts registrations and feedback and
projects them onto the fixed badge catalog, so the result is the same no
matter how often it is computed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.models.event import Event
from eventify.models.feedback import Feedback
from eventify.models.registration import Registration
from eventify.models.team_member import TeamMember
from eventify.models.user import User, UserRole

POINTS_PER_LEVEL = 100
EARLY_BIRD_LEAD = timedelta(days=7)
LARGE_TEAM_SIZE = 3


@dataclass
class ActivityStats:
    registrations: int = 0
    feedback: int = 0
    largest_team: int = 0
    early_registrations: int = 0
    is_admin: bool = False


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    icon: str
    points: int
    category: str
    rule: Callable[[ActivityStats], bool]


BADGES = (
    Badge("first-event", "First Steps", "Attend your first event", "first-event", 50, "attendance",
          lambda s: s.registrations >= 1),
    Badge("feedback-king", "Feedback Champion", "Submit feedback for 3 events", "feedback-king", 100, "feedback",
          lambda s: s.feedback >= 3),
    Badge("event-master", "Event Master", "Attend 5 different events", "event-master", 200, "attendance",
          lambda s: s.registrations >= 5),
    Badge("social-butterfly", "Social Butterfly", "Register with a team of 3 or more", "social-butterfly", 75,
          "participation", lambda s: s.largest_team >= LARGE_TEAM_SIZE),
    Badge("early-bird", "Early Bird", "Register for an event at least 1 week before it happens", "early-bird", 50,
          "participation", lambda s: s.early_registrations >= 1),
    Badge("organizer", "Event Organizer", "Create and manage an event (admin only)", "organizer", 300,
          "organization", lambda s: s.is_admin),
)


@dataclass
class BadgeStatus:
    id: str
    name: str
    description: str
    icon: str
    points: int
    category: str
    earned: bool


@dataclass
class AchievementSummary:
    user_id: int
    badges: List[BadgeStatus] = field(default_factory=list)
    earned_count: int = 0
    total_points: int = 0
    level: int = 1
    previous_level_points: int = 0
    next_level_points: int = POINTS_PER_LEVEL
    has_new_achievement: bool = False


def level_for(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1


def summarize(user_id: int, stats: ActivityStats, previous_count: Optional[int] = None) -> AchievementSummary:
    """Project ``stats`` onto the badge catalog.

    ``previous_count`` is the earned-badge count the caller saw last time;
    when it is lower than the current one the summary is flagged as new.
    """

    badges = [
        BadgeStatus(
            id=b.id,
            name=b.name,
            description=b.description,
            icon=b.icon,
            points=b.points,
            category=b.category,
            earned=bool(b.rule(stats)),
        )
        for b in BADGES
    ]
    earned = [b for b in badges if b.earned]
    total = sum(b.points for b in earned)
    level = level_for(total)
    return AchievementSummary(
        user_id=user_id,
        badges=badges,
        earned_count=len(earned),
        total_points=total,
        level=level,
        previous_level_points=(level - 1) * POINTS_PER_LEVEL,
        next_level_points=level * POINTS_PER_LEVEL,
        has_new_achievement=previous_count is not None and previous_count < len(earned),
    )


async def collect_stats(db: AsyncSession, user: User) -> ActivityStats:
    team_size = func.count(TeamMember.id).label("team_size")
    rows = (
        await db.execute(
            select(Registration.id, Registration.registration_date, Event.date.label("event_date"), team_size)
            .join(Event, Event.id == Registration.event_id)
            .outerjoin(TeamMember, TeamMember.registration_id == Registration.id)
            .where(Registration.user_id == user.id)
            .group_by(Registration.id, Registration.registration_date, Event.date)
        )
    ).all()

    feedback_count = (
        await db.execute(select(func.count(Feedback.id)).where(Feedback.user_id == user.id))
    ).scalar_one() or 0

    return ActivityStats(
        registrations=len(rows),
        feedback=int(feedback_count),
        largest_team=max((int(r.team_size or 0) for r in rows), default=0),
        early_registrations=sum(
            1 for r in rows if r.event_date is not None and r.event_date - r.registration_date >= EARLY_BIRD_LEAD
        ),
        is_admin=user.role == UserRole.ADMIN,
    )


async def achievements_for(db: AsyncSession, user: User, previous_count: Optional[int] = None) -> AchievementSummary:
    return summarize(user.id, await collect_stats(db, user), previous_count)
