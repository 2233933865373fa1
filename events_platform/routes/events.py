# events_platform/routes/events.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from events_platform.auth_token import Identity
from events_platform.database import get_db
from events_platform.deps.security import require_attendee, require_staff
from events_platform.errors import BadRequest, NotFound
from events_platform.models.event import Event
from events_platform.models.registration import Registration
from events_platform.schemas import (
    EventCreate,
    EventEnvelope,
    EventRead,
    RegistrationCreate,
    RegistrationRead,
)
from events_platform.services.ics import build_event_calendar, calendar_filename
from events_platform.services.registrations import (
    RegistrationRecord,
    active_registration_exists,
    format_registration,
)
from events_platform.timestamps import parse_timestamp

router = APIRouter(prefix="/events", tags=["Events"])
logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "Already registered for this event"


async def _get_event_or_404(db: AsyncSession, event_id: str) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


# List events --------------------------------------------------------

@router.get("", response_model=List[EventRead])
async def list_events(
    db: AsyncSession = Depends(get_db),
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
):
    stmt = select(Event).order_by(Event.start_date, Event.id)
    if status_filter:
        stmt = stmt.where(Event.status == status_filter)
    if category:
        stmt = stmt.where(Event.category == category)
    events = (await db.execute(stmt)).scalars().all()
    return [EventRead.from_model(e) for e in events]


# Create event (staff) -----------------------------------------------

@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    identity: Identity = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    # Stored in UTC so ordering is consistent across backends.
    event = Event(
        name=payload.name,
        description=payload.description,
        category=payload.category,
        status=payload.status,
        start_date=parse_timestamp(payload.start_date),
        end_date=parse_timestamp(payload.end_date) if payload.end_date else None,
        venue_name=payload.venue.name,
        venue_address=payload.venue.address,
        venue_city=payload.venue.city,
        venue_state=payload.venue.state,
        venue_country=payload.venue.country,
        price_amount=payload.price.amount if payload.price else None,
        price_currency=payload.price.currency if payload.price else None,
        image_url=payload.image_url,
        created_by=identity.user_id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    logger.info("Staff %s created event %s", identity.user_id, event.id)
    return EventRead.from_model(event)


# Register for an event (attendees) ----------------------------------

@router.post("/register", response_model=RegistrationRead, status_code=status.HTTP_201_CREATED)
async def register_for_event(
    payload: RegistrationCreate,
    identity: Identity = Depends(require_attendee),
    db: AsyncSession = Depends(get_db),
):
    event = await _get_event_or_404(db, payload.event_id)
    if event.status == "cancelled":
        raise BadRequest("Event is not open for registration")

    if await active_registration_exists(db, event.id, identity.user_id):
        raise BadRequest(ALREADY_REGISTERED)

    registration = Registration(
        event_id=event.id,
        user_id=identity.user_id,
        user_email=identity.email,
        user_name=identity.name,
        registered_at=datetime.now(timezone.utc),
        status="confirmed",
        ticket_count=payload.ticket_count,
    )
    db.add(registration)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent request won the race; the partial unique index held.
        await db.rollback()
        raise BadRequest(ALREADY_REGISTERED)
    await db.refresh(registration)
    logger.info(
        "User %s registered for event %s (%d tickets)",
        identity.user_id,
        event.id,
        payload.ticket_count,
    )
    return format_registration(RegistrationRecord.from_model(registration))


# Event detail -------------------------------------------------------

@router.get("/{event_id}", response_model=EventEnvelope)
async def get_event(event_id: str, db: AsyncSession = Depends(get_db)):
    event = await _get_event_or_404(db, event_id)
    return EventEnvelope(event=EventRead.from_model(event))


@router.get("/{event_id}/calendar.ics")
async def get_event_calendar(event_id: str, db: AsyncSession = Depends(get_db)):
    """Serve an event as a downloadable ICS file."""
    event = await _get_event_or_404(db, event_id)
    headers = {"Content-Disposition": f'attachment; filename="{calendar_filename(event)}"'}
    return Response(
        content=build_event_calendar(event),
        media_type="text/calendar; charset=utf-8",
        headers=headers,
    )
