# eventify/services/documents.py
"""PDF rendering for participation certificates and On-Duty letters."""

from __future__ import annotations

import io
from datetime import datetime
from typing import Optional

from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as pdf_canvas

from eventify.models.event import Event
from eventify.models.registration import Registration

ISSUER = "Eventify Platform"


def _display_date(value: Optional[datetime]) -> str:
    return value.strftime("%d %B %Y") if value else ""


def render_certificate(registration: Registration, event: Event, *, issued_at: Optional[datetime] = None) -> bytes:
    issued_at = issued_at or datetime.now()
    buffer = io.BytesIO()
    width, height = landscape(A4)
    c = pdf_canvas.Canvas(buffer, pagesize=(width, height))
    c.setTitle(f"Certificate - {event.title}")

    c.setLineWidth(3)
    c.rect(12 * mm, 12 * mm, width - 24 * mm, height - 24 * mm)

    c.setFont("Times-Bold", 34)
    c.drawCentredString(width / 2.0, height - 50 * mm, "Certificate of Participation")

    c.setFont("Times-Roman", 16)
    c.drawCentredString(width / 2.0, height - 70 * mm, "This is to certify that the team")
    c.setFont("Times-Bold", 22)
    c.drawCentredString(width / 2.0, height - 84 * mm, registration.team_name)

    members = ", ".join(m.name for m in registration.team_members)
    if members:
        c.setFont("Times-Italic", 13)
        c.drawCentredString(width / 2.0, height - 96 * mm, members)

    c.setFont("Times-Roman", 16)
    c.drawCentredString(width / 2.0, height - 112 * mm, "participated in")
    c.setFont("Times-Bold", 20)
    c.drawCentredString(width / 2.0, height - 126 * mm, event.title)
    c.setFont("Times-Roman", 14)
    c.drawCentredString(
        width / 2.0,
        height - 138 * mm,
        f"held on {_display_date(event.date)} at {event.location}",
    )

    c.setFont("Times-Roman", 11)
    c.drawString(24 * mm, 24 * mm, f"Issued {_display_date(issued_at)}")
    c.drawRightString(width - 24 * mm, 24 * mm, ISSUER)

    c.showPage()
    c.save()
    return buffer.getvalue()


def od_letter_lines(registration: Registration, event: Event, *, issued_at: Optional[datetime] = None) -> list[str]:
    issued_at = issued_at or datetime.now()
    members = list(registration.team_members)
    department = members[0].department if members else ""

    lines = [
        f"Date: {_display_date(issued_at)}",
        "",
        "To Whom It May Concern,",
        "",
        f"This is to certify that the following students from {department} department",
        f'are participating in "{event.title}" event on {_display_date(event.date)}.',
        "",
        f"Team Name: {registration.team_name}",
        "",
        "Team Members:",
    ]
    for i, member in enumerate(members, start=1):
        lines.append(f"{i}. {member.name} ({member.email}, {member.department})")
    lines += [
        "",
        "Please grant them On-Duty leave for the duration of the event.",
        "",
        "Regards,",
        "Event Coordinator",
        ISSUER,
    ]
    return lines


def render_od_letter(registration: Registration, event: Event, *, issued_at: Optional[datetime] = None) -> bytes:
    buffer = io.BytesIO()
    width, height = A4
    c = pdf_canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"OD Letter - {event.title}")

    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(width / 2.0, height - 25 * mm, "On-Duty Letter")

    text = c.beginText(25 * mm, height - 45 * mm)
    text.setFont("Helvetica", 11)
    text.setLeading(16)
    y = height - 45 * mm
    for line in od_letter_lines(registration, event, issued_at=issued_at):
        if y < 25 * mm:
            c.drawText(text)
            c.showPage()
            text = c.beginText(25 * mm, height - 25 * mm)
            text.setFont("Helvetica", 11)
            text.setLeading(16)
            y = height - 25 * mm
        text.textLine(line)
        y -= 16
    c.drawText(text)

    c.showPage()
    c.save()
    return buffer.getvalue()
