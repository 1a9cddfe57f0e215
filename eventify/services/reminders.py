# eventify/services/reminders.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.email_templates import reminder_email_html, reminder_email_text, reminder_subject
from eventify.emailer import send_email
from eventify.models.event import Event
from eventify.models.registration import Registration
from eventify.models.user import utcnow

logger = logging.getLogger(__name__)

Sender = Callable[..., bool]


@dataclass
class ReminderRun:
    events: int = 0
    emails_sent: int = 0
    failures: int = 0
    skipped: int = 0


def tomorrow_window(now: datetime) -> Tuple[datetime, datetime]:
    start = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
    return start, start + timedelta(days=1)


async def send_event_reminders(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    sender: Sender = send_email,
) -> ReminderRun:
    """Email every team member of every event that takes place tomorrow.

    A failed send is logged and counted; the run carries on with the next
    recipient.
    """

    start, end = tomorrow_window(now or utcnow())
    events = (
        await db.execute(
            select(Event).where(Event.date >= start, Event.date < end).order_by(Event.date)
        )
    ).scalars().all()
    run = ReminderRun(events=len(events))
    logger.info("Found %d events happening tomorrow (%s)", len(events), start.date())

    for event in events:
        registrations = (
            await db.execute(select(Registration).where(Registration.event_id == event.id))
        ).scalars().all()
        logger.info("Found %d registrations for event %r", len(registrations), event.title)

        for registration in registrations:
            for member in registration.team_members:
                details = dict(
                    member_name=member.name,
                    event_title=event.title,
                    event_date=event.date,
                    location=event.location,
                    team_name=registration.team_name,
                )
                try:
                    delivered = await asyncio.to_thread(
                        sender,
                        member.email,
                        reminder_subject(event.title),
                        reminder_email_html(**details),
                        reminder_email_text(**details),
                    )
                except Exception:
                    logger.exception("Error sending reminder to %s for event %s", member.email, event.id)
                    run.failures += 1
                    continue
                if delivered:
                    run.emails_sent += 1
                else:
                    run.skipped += 1

    logger.info(
        "Sent %d reminder emails for %d events (%d failed, %d skipped)",
        run.emails_sent,
        run.events,
        run.failures,
        run.skipped,
    )
    return run
