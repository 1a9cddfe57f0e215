# eventify/schemas.py
# ------------------------------------------------------------
# Pydantic v2 schemas, organized by domain
# ------------------------------------------------------------
from datetime import datetime
import os
import re
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from eventify.models.feedback import OrganizationRating


_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_SCRIPT_TAG_RE = re.compile(r"<\s*/?\s*script", re.IGNORECASE)


def _sanitize_single_line_text(value: str | None, *, allow_empty: bool = False) -> str | None:
    if value is None:
        return value
    if not isinstance(value, str):
        raise TypeError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not allow_empty and not cleaned:
        raise ValueError("Value cannot be empty")
    if any(ch in {"\n", "\r"} for ch in cleaned):
        raise ValueError("Value must be a single line of text")
    if "<" in cleaned or ">" in cleaned:
        raise ValueError("HTML tags are not allowed in this field")
    return cleaned


def _sanitize_multiline_text(value: str | None, *, allow_empty: bool = False) -> str | None:
    if value is None:
        return value
    if not isinstance(value, str):
        raise TypeError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not allow_empty and not cleaned:
        raise ValueError("Value cannot be empty")
    if _SCRIPT_TAG_RE.search(cleaned):
        raise ValueError("Script tags are not allowed")
    return cleaned


def _default_slot_increment() -> int:
    try:
        return max(1, int(os.getenv("DEFAULT_SLOT_INCREMENT", "10")))
    except ValueError:
        return 10


# ============================================================
# Users
# ============================================================

class UserRegister(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=8, max_length=128)
    role: Literal["student", "admin"] = "student"
    department: Optional[str] = Field(default=None, max_length=120)
    admin_code: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: str) -> str:
        return _sanitize_single_line_text(value)

    @field_validator("department", mode="before")
    @classmethod
    def _clean_department(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_single_line_text(value, allow_empty=True) or None if value is not None else value


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: str
    department: Optional[str] = None
    created_at: datetime


# ============================================================
# Events
# ============================================================

class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    date: datetime
    location: str = Field(min_length=1, max_length=200)
    total_slots: int = Field(ge=0, le=100_000)
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title", "location", mode="before")
    @classmethod
    def _clean_single_line(cls, value: str) -> str:
        return _sanitize_single_line_text(value)

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_multiline_text(value, allow_empty=True) if value is not None else value


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    total_slots: Optional[int] = Field(default=None, ge=0, le=100_000)
    image_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title", "location", mode="before")
    @classmethod
    def _clean_single_line(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_single_line_text(value) if value is not None else value

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_multiline_text(value, allow_empty=True) if value is not None else value


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    date: datetime
    location: str
    image_url: Optional[str] = None
    total_slots: int
    available_slots: int
    creator_id: int
    created_at: datetime
    updated_at: datetime


class ExploreEventRead(EventRead):
    is_registered: bool = False


class SlotIncrease(BaseModel):
    amount: int = Field(default_factory=_default_slot_increment, ge=1, le=10_000)


# ============================================================
# Registrations & team members
# ============================================================

class TeamMemberIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    department: str = Field(min_length=1, max_length=120)
    roll_number: Optional[str] = Field(default=None, max_length=50)

    @field_validator("name", "department", mode="before")
    @classmethod
    def _clean_text(cls, value: str) -> str:
        return _sanitize_single_line_text(value)

    @field_validator("roll_number", mode="before")
    @classmethod
    def _clean_roll_number(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_single_line_text(value, allow_empty=True) or None if value is not None else value


class TeamMemberRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    department: str
    roll_number: Optional[str] = None


class RegistrationCreate(BaseModel):
    team_name: Optional[str] = Field(default=None, max_length=120)
    team_members: List[TeamMemberIn] = Field(default_factory=list, max_length=50)

    @field_validator("team_name", mode="before")
    @classmethod
    def _clean_team_name(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_single_line_text(value, allow_empty=True) or None if value is not None else value


class RegistrationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    user_id: int
    team_name: str
    registration_date: datetime
    attended: bool = False
    certificate_generated: bool = False
    od_letter_generated: bool = False
    team_members: List[TeamMemberRead] = Field(default_factory=list)


class RegistrationWithEvent(RegistrationRead):
    event: EventRead


class AttendanceUpdate(BaseModel):
    attended: bool


class DocumentRead(BaseModel):
    registration_id: int
    kind: Literal["certificate", "od-letter"]
    path: str
    url: Optional[str] = None


# ============================================================
# Feedback
# ============================================================

class FeedbackIn(BaseModel):
    overall_rating: int = Field(ge=1, le=5)
    was_informative: bool
    organization_rating: OrganizationRating
    additional_comments: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("additional_comments", mode="before")
    @classmethod
    def _clean_comments(cls, value: Optional[str]) -> Optional[str]:
        return _sanitize_multiline_text(value, allow_empty=True) or None if value is not None else value


class FeedbackRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    user_id: int
    overall_rating: int
    was_informative: bool
    organization_rating: str
    additional_comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FeedbackWithUser(FeedbackRead):
    user_name: str


class FeedbackSummary(BaseModel):
    event_id: int
    total_responses: int = 0
    average_rating: float = 0.0
    informative_count: int = 0
    organization_ratings: Dict[str, int]
    rating_distribution: Dict[str, int]


class EventFeedbackOverview(BaseModel):
    event_id: int
    title: str
    date: datetime
    summary: FeedbackSummary


# ============================================================
# Achievements
# ============================================================

class BadgeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    icon: str
    points: int
    category: str
    earned: bool = False


class AchievementSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    badges: List[BadgeRead]
    earned_count: int
    total_points: int
    level: int
    previous_level_points: int
    next_level_points: int
    has_new_achievement: bool = False


# ============================================================
# Reactions
# ============================================================

class ReactionToggle(BaseModel):
    reaction: str = Field(min_length=1, max_length=8)


class ReactionRead(BaseModel):
    reaction: str
    count: int
    users: List[int]


class ReactionToggleResult(BaseModel):
    event_id: int
    reaction: str
    active: bool
    count: int


# ============================================================
# Check-in & reminders
# ============================================================

class CheckInCodeRead(BaseModel):
    event_id: int
    code: str
    url: str
    expires_at: datetime
    qr_png_base64: str


class ReminderReport(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    events: int
    emails_sent: int
    failures: int
    skipped: int = 0


# ============================================================
# Dashboard
# ============================================================

class AdminEventStats(BaseModel):
    event: EventRead
    registrations: int
    attended: int
    feedback_count: int
    average_rating: Optional[float] = None


class DashboardRead(BaseModel):
    role: str
    user: UserRead
    registrations: Optional[List[RegistrationWithEvent]] = None
    achievements: Optional[AchievementSummaryRead] = None
    upcoming_events: Optional[List[ExploreEventRead]] = None
    events: Optional[List[AdminEventStats]] = None
