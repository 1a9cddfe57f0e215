from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from eventify.database import Base


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(
        Integer,
        ForeignKey("registrations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False)
    department = Column(String(120), nullable=False)
    roll_number = Column(String(50), nullable=True)

    registration = relationship("Registration", back_populates="team_members")
