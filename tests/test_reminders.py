from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from eventify.emailer import send_email
from eventify.models.user import UserRole
from eventify.services.reminders import send_event_reminders, tomorrow_window

from factories import make_event, make_registration, make_user

NOW = datetime(2025, 5, 14, 9, 30)


def test_tomorrow_window_covers_the_whole_next_day():
    start, end = tomorrow_window(NOW)
    assert start == datetime(2025, 5, 15)
    assert end == datetime(2025, 5, 16)


def test_send_email_skips_when_smtp_is_not_configured(monkeypatch):
    for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    with patch("eventify.emailer.smtplib.SMTP") as smtp:
        assert send_email("a@example.com", "Hi", "<p>Hi</p>") is False
    smtp.assert_not_called()


@pytest.mark.anyio
async def test_reminders_reach_every_team_member_and_survive_failures(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    tomorrow = await make_event(session_factory, admin, title="Hackathon", date=NOW + timedelta(days=1, hours=2))
    next_week = await make_event(session_factory, admin, title="Later", date=NOW + timedelta(days=7))

    first = await make_user(session_factory, name="Asha Kumar")
    second = await make_user(session_factory, name="Ravi Shankar")
    broken = await make_registration(session_factory, tomorrow, first, team_size=3)
    await make_registration(session_factory, tomorrow, second)
    await make_registration(session_factory, next_week, second)

    failing_address = broken.team_members[1].email
    sent = []

    def sender(to_email, subject, html, text):
        if to_email == failing_address:
            raise ConnectionError("smtp down")
        sent.append((to_email, subject))
        return True

    async with session_factory() as db:
        run = await send_event_reminders(db, now=NOW, sender=sender)

    assert run.events == 1
    assert run.emails_sent == 3
    assert run.failures == 1
    assert {to for to, _ in sent} == {
        first.email,
        broken.team_members[2].email,
        second.email,
    }
    assert all(subject == "Reminder: Hackathon is happening tomorrow!" for _, subject in sent)


@pytest.mark.anyio
async def test_unconfigured_smtp_counts_as_skipped(session_factory):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    student = await make_user(session_factory)
    event = await make_event(session_factory, admin, date=NOW + timedelta(days=1))
    await make_registration(session_factory, event, student)

    async with session_factory() as db:
        run = await send_event_reminders(db, now=NOW, sender=lambda *args: False)

    assert (run.events, run.emails_sent, run.failures, run.skipped) == (1, 0, 0, 1)
