"""Small helpers for putting users, events and registrations in a test database."""

from datetime import datetime, timedelta
from itertools import count
from typing import Optional

from eventify.models.event import Event
from eventify.models.registration import Registration
from eventify.models.team_member import TeamMember
from eventify.models.user import User, UserRole, utcnow

_seq = count(100000)


def college_email(name: str = "student", dept: str = "cse") -> str:
    return f"{name}.{next(_seq)}@{dept}.ritchennai.edu.in"


async def make_user(
    session_factory,
    *,
    name: str = "Student User",
    role: str = UserRole.STUDENT,
    email: Optional[str] = None,
    department: Optional[str] = "Computer Science",
) -> User:
    async with session_factory() as session:
        user = User(
            email=email or college_email(name.split()[0].lower()),
            name=name,
            role=role,
            department=department,
            password_hash="not-used-in-test",
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def make_event(
    session_factory,
    creator: User,
    *,
    title: str = "Hackathon 2025",
    total_slots: int = 10,
    available_slots: Optional[int] = None,
    date: Optional[datetime] = None,
) -> Event:
    async with session_factory() as session:
        event = Event(
            title=title,
            description="A 24-hour coding competition.",
            date=date or utcnow() + timedelta(days=30),
            location="Main Auditorium",
            total_slots=total_slots,
            available_slots=total_slots if available_slots is None else available_slots,
            creator_id=creator.id,
        )
        session.add(event)
        await session.commit()
        await session.refresh(event)
        return event


async def make_registration(
    session_factory,
    event: Event,
    user: User,
    *,
    team_size: int = 1,
    attended: bool = False,
    registered_at: Optional[datetime] = None,
) -> Registration:
    """Insert a registration directly and take its slot, bypassing the workflow."""

    async with session_factory() as session:
        members = [
            TeamMember(name=user.name, email=user.email, department=user.department or "CSE")
        ] + [
            TeamMember(name=f"Member {i}", email=college_email(f"member{i}"), department="ECE")
            for i in range(2, team_size + 1)
        ]
        registration = Registration(
            event_id=event.id,
            user_id=user.id,
            team_name=f"{user.name}'s Team",
            registration_date=registered_at or utcnow(),
            attended=attended,
            team_members=members,
        )
        session.add(registration)
        db_event = await session.get(Event, event.id)
        db_event.available_slots -= 1
        await session.commit()
        await session.refresh(registration)
        return registration
