# eventify/models/event.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from eventify.database import Base
from eventify.models.user import utcnow


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime, nullable=False)
    location = Column(String(200), nullable=False)
    image_url = Column(String(500), nullable=True)
    total_slots = Column(Integer, nullable=False)
    available_slots = Column(Integer, nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("User", lazy="selectin")

    __table_args__ = (
        CheckConstraint("total_slots >= 0", name="ck_events_total_slots_non_negative"),
        CheckConstraint("available_slots >= 0", name="ck_events_available_slots_non_negative"),
        CheckConstraint("available_slots <= total_slots", name="ck_events_available_lte_total"),
        Index("ix_events_date", "date"),
    )

    @property
    def registered_count(self) -> int:
        return (self.total_slots or 0) - (self.available_slots or 0)

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} slots={self.available_slots}/{self.total_slots}>"
