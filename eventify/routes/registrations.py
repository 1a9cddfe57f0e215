# eventify/routes/registrations.py

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import get_current_user, require_admin
from eventify.database import get_db
from eventify.models.event import Event
from eventify.models.registration import Registration
from eventify.models.user import User
from eventify.rate_limiter import RateLimiter, RateLimitExceeded, get_registration_rate_limiter
from eventify.realtime import ChangeFeed, get_change_feed
from eventify.realtime.feed import INSERT
from eventify.schemas import (
    AttendanceUpdate,
    DocumentRead,
    EventRead,
    RegistrationCreate,
    RegistrationRead,
    RegistrationWithEvent,
)
from eventify.services import DocumentStorage, get_document_storage
from eventify.services.documents import render_certificate, render_od_letter
from eventify.services.registrations import (
    get_event_or_404,
    get_registration_or_404,
    set_attendance,
    submit_registration,
)
from eventify.services.storage import CERTIFICATES, OD_LETTERS, document_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Registrations"])
admin = APIRouter(prefix="/admin", tags=["Admin: Registrations"])

CERTIFICATE_NEEDS_ATTENDANCE = "Certificate is available only after your attendance has been marked"


def _with_event(registration: Registration, event: Event) -> RegistrationWithEvent:
    return RegistrationWithEvent(
        **RegistrationRead.model_validate(registration).model_dump(),
        event=EventRead.model_validate(event),
    )


async def _own_registration(db: AsyncSession, registration_id: int, user: User) -> Registration:
    registration = await get_registration_or_404(db, registration_id)
    if registration.user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your registration")
    return registration


# ---------------------------------------------------------------
# Student
# ---------------------------------------------------------------

@router.post("/events/{event_id}/registrations", response_model=RegistrationWithEvent, status_code=201)
async def register_for_event(
    event_id: int,
    payload: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    feed: ChangeFeed = Depends(get_change_feed),
    limiter: Optional[RateLimiter] = Depends(get_registration_rate_limiter),
):
    if limiter is not None:
        try:
            await limiter.check(f"user:{user.id}")
        except RateLimitExceeded:
            logger.warning("Registration rate limit hit by user %s", user.id)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many registration attempts. Please wait and try again.",
            )

    registration, event = await submit_registration(db, event_id=event_id, user=user, payload=payload)
    feed.registration_changed(registration, INSERT)
    feed.event_changed(event)
    return _with_event(registration, event)


@router.get("/registrations/me", response_model=List[RegistrationWithEvent])
async def my_registrations(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = (
        await db.execute(
            select(Registration)
            .join(Event, Event.id == Registration.event_id)
            .where(Registration.user_id == user.id)
            .order_by(Event.date.asc())
        )
    ).scalars().all()
    return [RegistrationWithEvent.model_validate(r) for r in rows]


# ---------------------------------------------------------------
# Documents
# ---------------------------------------------------------------

async def _store_document(
    db: AsyncSession,
    registration: Registration,
    kind: str,
    storage: DocumentStorage,
    feed: ChangeFeed,
) -> DocumentRead:
    event = registration.event
    if kind == "certificate":
        data = await asyncio.to_thread(render_certificate, registration, event)
        key = document_key(CERTIFICATES, registration.id, f"certificate-{registration.id}.pdf")
    else:
        data = await asyncio.to_thread(render_od_letter, registration, event)
        key = document_key(OD_LETTERS, registration.id, f"od-letter-{registration.id}.pdf")

    await storage.save(key, data, "application/pdf")

    if kind == "certificate":
        registration.certificate_generated = True
        registration.certificate_path = key
    else:
        registration.od_letter_generated = True
        registration.od_letter_path = key
    await db.commit()
    await db.refresh(registration)
    logger.info("Generated %s for registration %s (%d bytes)", kind, registration.id, len(data))
    feed.registration_changed(registration)

    return DocumentRead(
        registration_id=registration.id,
        kind=kind,
        path=key,
        url=f"/registrations/{registration.id}/{kind}",
    )


async def _download(storage: DocumentStorage, key: Optional[str], filename: str):
    if not key:
        raise HTTPException(status_code=404, detail="Document has not been generated yet")

    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if storage.backend_name == "s3":
        url = await storage.signed_url(key)
        if not url:
            raise HTTPException(status_code=500, detail="Failed to generate download URL")
        return JSONResponse({"url": url})

    try:
        path = storage.get_file_path(key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Document missing from storage")
    return FileResponse(path, media_type="application/pdf", filename=filename, headers=headers)


@router.post("/registrations/{registration_id}/certificate", response_model=DocumentRead, status_code=201)
async def generate_certificate(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: DocumentStorage = Depends(get_document_storage),
    feed: ChangeFeed = Depends(get_change_feed),
):
    registration = await _own_registration(db, registration_id, user)
    if not registration.attended:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=CERTIFICATE_NEEDS_ATTENDANCE)
    return await _store_document(db, registration, "certificate", storage, feed)


@router.get("/registrations/{registration_id}/certificate")
async def download_certificate(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: DocumentStorage = Depends(get_document_storage),
):
    registration = await _own_registration(db, registration_id, user)
    if not registration.attended:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=CERTIFICATE_NEEDS_ATTENDANCE)
    return await _download(storage, registration.certificate_path, f"certificate-{registration.id}.pdf")


@router.post("/registrations/{registration_id}/od-letter", response_model=DocumentRead, status_code=201)
async def generate_od_letter(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: DocumentStorage = Depends(get_document_storage),
    feed: ChangeFeed = Depends(get_change_feed),
):
    registration = await _own_registration(db, registration_id, user)
    return await _store_document(db, registration, "od-letter", storage, feed)


@router.get("/registrations/{registration_id}/od-letter")
async def download_od_letter(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: DocumentStorage = Depends(get_document_storage),
):
    registration = await _own_registration(db, registration_id, user)
    return await _download(storage, registration.od_letter_path, f"od-letter-{registration.id}.pdf")


# ---------------------------------------------------------------
# Admin
# ---------------------------------------------------------------

@admin.get("/events/{event_id}/registrations", response_model=List[RegistrationRead])
async def event_registrations(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    await get_event_or_404(db, event_id)
    rows = (
        await db.execute(
            select(Registration)
            .where(Registration.event_id == event_id)
            .order_by(Registration.registration_date.asc())
        )
    ).scalars().all()
    return rows


@admin.patch("/registrations/{registration_id}/attendance", response_model=RegistrationRead)
async def update_attendance(
    registration_id: int,
    payload: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    admin_user: User = Depends(require_admin),
    feed: ChangeFeed = Depends(get_change_feed),
):
    registration = await set_attendance(db, registration_id, payload.attended)
    logger.info(
        "Admin %s marked registration %s as %s",
        admin_user.id,
        registration_id,
        "attended" if payload.attended else "not attended",
    )
    feed.registration_changed(registration)
    return registration
