from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime

from eventify.database import Base


class UserRole:
    STUDENT = "student"
    ADMIN = "admin"

    ALL = (STUDENT, ADMIN)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(120), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT)
    department = Column(String(120), nullable=True)
    password_hash = Column("hashed_password", String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
