import logging
import os
import smtplib
import ssl
from email.message import EmailMessage

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html: str, text: str | None = None) -> bool:
    """Send one message over SMTP; returns False when SMTP is not configured."""
    host = os.getenv("SMTP_HOST")
    port = int(os.getenv("SMTP_PORT", "587"))
    user = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASSWORD")
    sender = os.getenv("SMTP_FROM", "Eventify <no-reply@eventify.local>")

    if not (host and user and password):
        logger.warning("SMTP not configured; skipping actual send. Would send to %s", to_email)
        logger.debug("Subject: %s\nBody (text): %s", subject, text)
        return False

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to_email
    msg["Subject"] = subject
    if html:
        msg.set_content(text or "Open in an HTML-capable client.")
        msg.add_alternative(html, subtype="html")
    else:
        msg.set_content(text or "")

    context = ssl.create_default_context()
    with smtplib.SMTP(host, port) as s:
        s.starttls(context=context)
        s.login(user, password)
        s.send_message(msg)

    return True
