import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventify.auth_token import get_current_user, require_admin
from eventify.database import get_db
from eventify.models.user import User
from eventify.realtime import ChangeFeed, get_change_feed
from eventify.schemas import CheckInCodeRead, RegistrationRead
from eventify.services.checkin import (
    InvalidCheckInCode,
    check_in_url,
    code_ttl,
    make_code,
    parse_code,
    qr_png_base64,
)
from eventify.services.registrations import find_registration, get_event_or_404

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Check-in"])


@router.get("/admin/events/{event_id}/check-in", response_model=CheckInCodeRead)
async def check_in_code(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
):
    await get_event_or_404(db, event_id)
    issued = make_code(event_id)
    url = check_in_url(issued.code)
    return CheckInCodeRead(
        event_id=event_id,
        code=issued.code,
        url=url,
        expires_at=issued.issued_at + code_ttl(),
        qr_png_base64=await asyncio.to_thread(qr_png_base64, url),
    )


@router.post("/check-in/{code}", response_model=RegistrationRead)
async def redeem_check_in(
    code: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    feed: ChangeFeed = Depends(get_change_feed),
):
    try:
        event_id = parse_code(code)
    except InvalidCheckInCode as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    await get_event_or_404(db, event_id)
    registration = await find_registration(db, event_id, user.id)
    if registration is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="You are not registered for this event")

    if not registration.attended:
        registration.attended = True
        await db.commit()
        await db.refresh(registration)
        logger.info("User %s checked in to event %s", user.id, event_id)
        feed.registration_changed(registration)
    return registration
