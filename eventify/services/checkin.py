# eventify/services/checkin.py
"""Signed, time-limited check-in codes for events.

A code looks like ``<event_id>-<unix_ms>-<signature>``. The signature is an
HMAC over the first two parts keyed with the JWT secret, so a code cannot be
forged for another event or pushed past its expiry.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import io
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import qrcode

from eventify.auth_token import SECRET_KEY
from eventify.email_templates import frontend_url


class InvalidCheckInCode(ValueError):
    pass


@dataclass
class CheckInCode:
    event_id: int
    issued_at: datetime
    code: str


def code_ttl() -> timedelta:
    try:
        minutes = int(os.getenv("CHECKIN_CODE_TTL_MINUTES", "240"))
    except ValueError:
        minutes = 240
    return timedelta(minutes=max(1, minutes))


def _sign(payload: str) -> str:
    return hmac.new(SECRET_KEY.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()[:16]


def make_code(event_id: int, *, now: Optional[datetime] = None) -> CheckInCode:
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    payload = f"{event_id}-{stamp}"
    return CheckInCode(event_id=event_id, issued_at=now, code=f"{payload}-{_sign(payload)}")


def parse_code(code: str, *, now: Optional[datetime] = None) -> int:
    """Return the event id of a valid, unexpired code."""

    parts = (code or "").split("-")
    if len(parts) != 3:
        raise InvalidCheckInCode("Malformed check-in code")
    event_part, stamp_part, signature = parts
    if not hmac.compare_digest(signature, _sign(f"{event_part}-{stamp_part}")):
        raise InvalidCheckInCode("Invalid check-in code")
    try:
        event_id = int(event_part)
        issued_at = datetime.fromtimestamp(int(stamp_part) / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise InvalidCheckInCode("Malformed check-in code")

    now = now or datetime.now(timezone.utc)
    if now - issued_at > code_ttl():
        raise InvalidCheckInCode("Check-in code has expired")
    return event_id


def check_in_url(code: str) -> str:
    return f"{frontend_url()}/event-check-in/{code}"


def qr_png_base64(data: str) -> str:
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_H, box_size=8, border=4)
    qr.add_data(data)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")
