import asyncio
import os
from datetime import datetime

from sqlalchemy import select

import eventify.database as database
from eventify.models.event import Event
from eventify.models.user import User, UserRole
from eventify.security import hash_password

DEMO_USERS = [
    dict(email="admin.123456@cse.ritchennai.edu.in", name="Admin User", role=UserRole.ADMIN, department=None),
    dict(
        email="student.123456@cse.ritchennai.edu.in",
        name="Student User",
        role=UserRole.STUDENT,
        department="Computer Science",
    ),
]

DEMO_EVENTS = [
    dict(
        title="Hackathon 2025",
        description="A 24-hour coding competition to build innovative solutions.",
        date=datetime(2025, 5, 15),
        location="Main Auditorium",
        total_slots=50,
        image_url="https://images.unsplash.com/photo-1504384308090-c894fdcc538d?auto=format&fit=crop&w=1740&q=80",
    ),
    dict(
        title="Tech Talk Series",
        description="Industry experts sharing insights on emerging technologies.",
        date=datetime(2025, 6, 10),
        location="Seminar Hall",
        total_slots=100,
        image_url="https://images.unsplash.com/photo-1540575467063-178a50c2df87?auto=format&fit=crop&w=1740&q=80",
    ),
    dict(
        title="Design Challenge",
        description="Show off your UX/UI skills in this design competition.",
        date=datetime(2025, 7, 5),
        location="Design Lab",
        total_slots=30,
        image_url="https://images.unsplash.com/photo-1581291518633-83b4ebd1d83e?auto=format&fit=crop&w=1740&q=80",
    ),
]


async def main() -> None:
    """Create base tables and seed the demo accounts and events."""

    # Ensure engine is configured using current env (DATABASE_URL normalised inside database.py)
    await database.init_models()
    password = os.getenv("SEED_PASSWORD", "eventify123")

    async with database.async_session() as session:
        users = {}
        for data in DEMO_USERS:
            user = (await session.execute(select(User).where(User.email == data["email"]))).scalar_one_or_none()
            if user is None:
                user = User(password_hash=hash_password(password), **data)
                session.add(user)
            users[data["role"]] = user
        await session.flush()

        admin = users[UserRole.ADMIN]
        for data in DEMO_EVENTS:
            exists = await session.scalar(select(Event.id).where(Event.title == data["title"]))
            if exists:
                continue
            session.add(Event(creator_id=admin.id, available_slots=data["total_slots"], **data))
        await session.commit()
    print(f"Seeded {len(DEMO_USERS)} demo users and {len(DEMO_EVENTS)} events.")


if __name__ == "__main__":
    asyncio.run(main())
