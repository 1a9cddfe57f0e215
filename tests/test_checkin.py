import base64
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from eventify.models.user import UserRole
from eventify.realtime import registrations_topic
from eventify.routes.checkin import check_in_code, redeem_check_in
from eventify.services.checkin import InvalidCheckInCode, make_code, parse_code

from factories import make_event, make_registration, make_user


def test_code_round_trip_and_tampering():
    issued = make_code(42)
    assert issued.code.startswith("42-")
    assert parse_code(issued.code) == 42

    event_part, stamp, signature = issued.code.split("-")
    with pytest.raises(InvalidCheckInCode):
        parse_code(f"43-{stamp}-{signature}")
    with pytest.raises(InvalidCheckInCode):
        parse_code("garbage")


def test_expired_code(monkeypatch):
    monkeypatch.setenv("CHECKIN_CODE_TTL_MINUTES", "30")
    issued = make_code(7)
    assert parse_code(issued.code, now=issued.issued_at + timedelta(minutes=29)) == 7
    with pytest.raises(InvalidCheckInCode, match="expired"):
        parse_code(issued.code, now=issued.issued_at + timedelta(minutes=31))


@pytest.mark.anyio
async def test_admin_code_comes_with_a_qr_image(session_factory, monkeypatch):
    monkeypatch.setenv("FRONTEND_URL", "https://eventify.example/")
    monkeypatch.delenv("CHECKIN_CODE_TTL_MINUTES", raising=False)
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    event = await make_event(session_factory, admin)

    async with session_factory() as db:
        issued = await check_in_code(event.id, db=db, _=admin)

    assert issued.url == f"https://eventify.example/event-check-in/{issued.code}"
    assert base64.b64decode(issued.qr_png_base64).startswith(b"\x89PNG")
    remaining = issued.expires_at - datetime.now(timezone.utc)
    assert timedelta(minutes=239) < remaining <= timedelta(minutes=240)


@pytest.mark.anyio
async def test_redeeming_marks_attendance(session_factory, feed):
    admin = await make_user(session_factory, role=UserRole.ADMIN)
    student = await make_user(session_factory)
    outsider = await make_user(session_factory, name="Other Student")
    event = await make_event(session_factory, admin)
    registration = await make_registration(session_factory, event, student)
    sub = feed.subscribe(registrations_topic(event.id))
    code = make_code(event.id).code

    async with session_factory() as db:
        result = await redeem_check_in(code, db=db, user=student, feed=feed)
    assert result.id == registration.id
    assert result.attended is True
    assert sub.get_nowait()["record"]["attended"] is True

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await redeem_check_in(code, db=db, user=outsider, feed=feed)
    assert exc.value.status_code == 404

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await redeem_check_in(code + "0", db=db, user=student, feed=feed)
    assert exc.value.status_code == 400
