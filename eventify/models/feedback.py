# eventify/models/feedback.py
import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from eventify.database import Base
from eventify.models.user import utcnow


class OrganizationRating(str, enum.Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    AVERAGE = "Average"
    POOR = "Poor"


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    overall_rating = Column(Integer, nullable=False)
    was_informative = Column(Boolean, nullable=False)
    # Stored as the plain label ("Excellent", ...) so analytics can group on it
    organization_rating = Column(String(20), nullable=False)
    additional_comments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_feedback_event_user"),
        CheckConstraint("overall_rating BETWEEN 1 AND 5", name="ck_feedback_overall_rating_range"),
    )
