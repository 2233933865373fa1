import uuid

from sqlalchemy import Column, DateTime, Index, Integer, String, func

from events_platform.database import Base


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Plain reference, no FK: registrations may outlive their event.
    event_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), index=True)
    user_email = Column(String(255))
    user_name = Column(String(100))
    registered_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    status = Column(String(20), nullable=False, default="confirmed")
    ticket_count = Column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_registrations_event_registered", "event_id", "registered_at"),
        # One live registration per user and event; cancelled rows don't count.
        Index(
            "uq_registrations_event_user_active",
            event_id,
            user_id,
            unique=True,
            sqlite_where=status != "cancelled",
            postgresql_where=status != "cancelled",
        ),
    )
