import uuid

from sqlalchemy import Column, DateTime, String, func

from events_platform.database import Base

ROLE_ATTENDEE = "user"
ROLE_STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column("hashed_password", String, nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_ATTENDEE)
    created_at = Column(DateTime(timezone=True), default=func.now())
