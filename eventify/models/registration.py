# eventify/models/registration.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from eventify.database import Base
from eventify.models.user import utcnow


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    team_name = Column(String(120), nullable=False)
    registration_date = Column(DateTime, default=utcnow, nullable=False)

    attended = Column(Boolean, nullable=False, default=False)
    certificate_generated = Column(Boolean, nullable=False, default=False)
    od_letter_generated = Column(Boolean, nullable=False, default=False)

    # Storage keys of the generated PDFs
    certificate_path = Column(String(512), nullable=True)
    od_letter_path = Column(String(512), nullable=True)

    event = relationship("Event", lazy="selectin")
    user = relationship("User", lazy="selectin")
    team_members = relationship(
        "TeamMember",
        back_populates="registration",
        cascade="all, delete-orphan",
        order_by="TeamMember.id",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_registration_event_user"),
    )

    def __repr__(self) -> str:
        return f"<Registration id={self.id} event={self.event_id} user={self.user_id} attended={self.attended}>"
