import uuid

from sqlalchemy import Column, DateTime, Numeric, String, Text, func

from events_platform.database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(100))
    status = Column(String(20), nullable=False, default="active")
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True))

    venue_name = Column(String(200))
    venue_address = Column(String(255))
    venue_city = Column(String(100))
    venue_state = Column(String(100))
    venue_country = Column(String(100))

    price_amount = Column(Numeric(10, 2))
    price_currency = Column(String(3))
    image_url = Column(String(500))

    # Owner; never updated after creation.
    created_by = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=func.now())
