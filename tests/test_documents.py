import pytest
from fastapi import HTTPException
from fastapi.responses import FileResponse

from eventify.models.registration import Registration
from eventify.models.user import UserRole
from eventify.realtime import registrations_topic
from eventify.routes.registrations import (
    download_certificate,
    download_od_letter,
    generate_certificate,
    generate_od_letter,
    update_attendance,
)
from eventify.schemas import AttendanceUpdate
from eventify.services.documents import od_letter_lines, render_certificate, render_od_letter

from factories import make_event, make_registration, make_user


async def _setup(session_factory, *, attended=False, team_size=2):
    admin = await make_user(session_factory, name="Admin User", role=UserRole.ADMIN)
    student = await make_user(session_factory, name="Asha Kumar")
    event = await make_event(session_factory, admin)
    registration = await make_registration(
        session_factory, event, student, attended=attended, team_size=team_size
    )
    return admin, student, event, registration


@pytest.mark.anyio
async def test_certificate_blocked_until_attendance(session_factory, storage, feed):
    _, student, _, registration = await _setup(session_factory)

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await generate_certificate(registration.id, db=db, user=student, storage=storage, feed=feed)
    assert exc.value.status_code == 403

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await download_certificate(registration.id, db=db, user=student, storage=storage)
    assert exc.value.status_code == 403

    async with session_factory() as db:
        stored = await db.get(Registration, registration.id)
        assert stored.certificate_generated is False
        assert stored.certificate_path is None


@pytest.mark.anyio
async def test_certificate_after_attendance_is_stored(session_factory, storage, feed):
    admin, student, event, registration = await _setup(session_factory)
    sub = feed.subscribe(registrations_topic(event.id))

    async with session_factory() as db:
        marked = await update_attendance(
            registration.id, AttendanceUpdate(attended=True), db=db, admin_user=admin, feed=feed
        )
    assert marked.attended is True
    assert sub.get_nowait()["record"]["attended"] is True

    async with session_factory() as db:
        doc = await generate_certificate(registration.id, db=db, user=student, storage=storage, feed=feed)

    assert doc.kind == "certificate"
    assert doc.path == f"certificates/{registration.id}/certificate-{registration.id}.pdf"
    assert storage.get_file_path(doc.path).read_bytes().startswith(b"%PDF")
    assert sub.get_nowait()["record"]["certificate_generated"] is True

    async with session_factory() as db:
        response = await download_certificate(registration.id, db=db, user=student, storage=storage)
    assert isinstance(response, FileResponse)


@pytest.mark.anyio
async def test_od_letter_does_not_need_attendance(session_factory, storage, feed):
    _, student, _, registration = await _setup(session_factory)

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await download_od_letter(registration.id, db=db, user=student, storage=storage)
    assert exc.value.status_code == 404

    async with session_factory() as db:
        doc = await generate_od_letter(registration.id, db=db, user=student, storage=storage, feed=feed)
    assert doc.path.startswith("od-letters/")

    async with session_factory() as db:
        stored = await db.get(Registration, registration.id)
        assert stored.od_letter_generated is True
        assert stored.od_letter_path == doc.path


@pytest.mark.anyio
async def test_other_students_cannot_touch_a_registration(session_factory, storage, feed):
    _, _, _, registration = await _setup(session_factory, attended=True)
    outsider = await make_user(session_factory, name="Other Student")

    async with session_factory() as db:
        with pytest.raises(HTTPException) as exc:
            await generate_od_letter(registration.id, db=db, user=outsider, storage=storage, feed=feed)
    assert exc.value.status_code == 403


@pytest.mark.anyio
async def test_od_letter_text_lists_the_team(session_factory):
    _, _, event, registration = await _setup(session_factory, team_size=3)

    lines = od_letter_lines(registration, event)
    assert "To Whom It May Concern," in lines
    assert f"Team Name: {registration.team_name}" in lines
    assert any(line.startswith("1. Asha Kumar (") for line in lines)
    assert any(line.startswith("3. Member 3 (") for line in lines)
    assert "Please grant them On-Duty leave for the duration of the event." in lines

    assert render_od_letter(registration, event).startswith(b"%PDF")
    assert render_certificate(registration, event).startswith(b"%PDF")


@pytest.mark.anyio
async def test_regenerating_replaces_the_stored_document(session_factory, storage, feed):
    _, student, _, registration = await _setup(session_factory)

    async with session_factory() as db:
        first = await generate_od_letter(registration.id, db=db, user=student, storage=storage, feed=feed)
    async with session_factory() as db:
        second = await generate_od_letter(registration.id, db=db, user=student, storage=storage, feed=feed)

    assert second.path == first.path
    folder = storage.get_file_path(first.path).parent
    assert [p.name for p in folder.iterdir()] == [f"od-letter-{registration.id}.pdf"]

    async with session_factory() as db:
        response = await download_od_letter(registration.id, db=db, user=student, storage=storage)
    assert isinstance(response, FileResponse)
    assert response.path == storage.get_file_path(first.path)
