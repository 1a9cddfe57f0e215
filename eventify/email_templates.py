import os
from datetime import datetime
from html import escape


def frontend_url() -> str:
    return os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")


def _when(value: datetime) -> str:
    return value.strftime("%B %d, %Y, %I:%M %p")


def reminder_subject(event_title: str) -> str:
    return f"Reminder: {event_title} is happening tomorrow!"


def reminder_email_html(*, member_name: str, event_title: str, event_date: datetime, location: str, team_name: str) -> str:
    return f"""
      <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
        <h1 style="color: #10b981; text-align: center;">Event Reminder</h1>
        <p>Hello {escape(member_name)},</p>
        <p>This is a friendly reminder that you are registered for the following event happening tomorrow:</p>
        <div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">
          <h2 style="color: #10b981; margin-top: 0;">{escape(event_title)}</h2>
          <p><strong>Date:</strong> {_when(event_date)}</p>
          <p><strong>Location:</strong> {escape(location)}</p>
          <p><strong>Team:</strong> {escape(team_name)}</p>
        </div>
        <p>Please make sure to arrive on time. We look forward to seeing you there!</p>
        <p>Best regards,<br>The Eventify Team</p>
      </div>
    """


def reminder_email_text(*, member_name: str, event_title: str, event_date: datetime, location: str, team_name: str) -> str:
    return (
        f"Hello {member_name},\n\n"
        f"You are registered for {event_title}, happening tomorrow.\n"
        f"Date: {_when(event_date)}\nLocation: {location}\nTeam: {team_name}\n\n"
        "The Eventify Team"
    )
