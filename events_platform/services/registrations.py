"""Registration queries: the staff dashboard aggregation and attendee lookups.

The staff view groups registrations under the events a staff member created.
Ownership is filtered in SQL (registrations joined to events on
``created_by``); ``group_registrations`` applies the same owned-event filter
again in memory so the result never depends on what the store hands back.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from sqlalchemy import String, select, type_coerce
from sqlalchemy.ext.asyncio import AsyncSession

from events_platform.models.event import Event
from events_platform.models.registration import Registration
from events_platform.schemas import MyRegistration, RegistrationRead, StaffEventRegistrations
from events_platform.timestamps import InvalidTimestampError, parse_timestamp, to_iso8601

logger = logging.getLogger(__name__)

DEFAULT_TICKET_COUNT = 1


@dataclass(frozen=True)
class OwnedEvent:
    id: str
    name: str
    start_date: Any


@dataclass(frozen=True)
class RegistrationRecord:
    id: str
    event_id: str
    user_email: Optional[str]
    user_name: Optional[str]
    registered_at: Any
    status: str
    ticket_count: Optional[int]

    @classmethod
    def from_model(cls, reg: Registration) -> "RegistrationRecord":
        return cls(
            id=reg.id,
            event_id=reg.event_id,
            user_email=reg.user_email,
            user_name=reg.user_name,
            registered_at=reg.registered_at,
            status=reg.status,
            ticket_count=reg.ticket_count,
        )


def ticket_count_or_default(value: Optional[int]) -> int:
    # Only a missing count defaults; an explicit 0 is reported as 0.
    return DEFAULT_TICKET_COUNT if value is None else int(value)


def format_registration(record: RegistrationRecord) -> RegistrationRead:
    try:
        registered_at = to_iso8601(record.registered_at)
    except InvalidTimestampError as exc:
        raise InvalidTimestampError(f"Registration {record.id} has an invalid registeredAt: {exc}") from exc
    return RegistrationRead(
        id=record.id,
        event_id=record.event_id,
        user_email=record.user_email or "",
        user_name=record.user_name or "",
        registered_at=registered_at,
        status=record.status,
        ticket_count=ticket_count_or_default(record.ticket_count),
    )


def _event_start(event: OwnedEvent):
    try:
        return parse_timestamp(event.start_date)
    except InvalidTimestampError as exc:
        raise InvalidTimestampError(f"Event {event.id} has an invalid startDate: {exc}") from exc


def group_registrations(
    events: Iterable[OwnedEvent],
    registrations: Iterable[RegistrationRecord],
) -> List[StaffEventRegistrations]:
    """Group ``registrations`` under the owned ``events`` they reference.

    Registrations pointing at any other event are dropped, and events nobody
    registered for are left out. Events come back by ascending start date
    (then id); registrations keep the order they were given in.

    Raises:
        InvalidTimestampError: a start date or registration time is missing
            or cannot be parsed.
    """
    owned = {event.id: event for event in events}

    grouped: dict[str, list[RegistrationRead]] = {}
    for record in registrations:
        if record.event_id not in owned:
            continue
        grouped.setdefault(record.event_id, []).append(format_registration(record))

    start_dates = {event_id: _event_start(owned[event_id]) for event_id in grouped}
    ordered = sorted(grouped, key=lambda event_id: (start_dates[event_id], event_id))

    return [
        StaffEventRegistrations(
            id=event_id,
            name=owned[event_id].name,
            start_date=to_iso8601(start_dates[event_id]),
            registrations=grouped[event_id],
        )
        for event_id in ordered
    ]


def _unprocessed(column):
    # Hand back the stored value as-is; parse_timestamp validates it per
    # record so a bad row can be named instead of failing inside the driver.
    return type_coerce(column, String).label(column.key)


async def fetch_owned_events(db: AsyncSession, staff_id: str) -> List[OwnedEvent]:
    stmt = (
        select(Event.id, Event.name, _unprocessed(Event.start_date))
        .where(Event.created_by == staff_id)
        .order_by(Event.start_date, Event.id)
    )
    rows = (await db.execute(stmt)).all()
    return [OwnedEvent(id=r.id, name=r.name, start_date=r.start_date) for r in rows]


async def fetch_owned_registrations(db: AsyncSession, staff_id: str) -> List[RegistrationRecord]:
    stmt = (
        select(
            Registration.id,
            Registration.event_id,
            Registration.user_email,
            Registration.user_name,
            _unprocessed(Registration.registered_at),
            Registration.status,
            Registration.ticket_count,
        )
        .join(Event, Event.id == Registration.event_id)
        .where(Event.created_by == staff_id)
        .order_by(Registration.registered_at, Registration.id)
    )
    rows = (await db.execute(stmt)).all()
    return [RegistrationRecord(**row._mapping) for row in rows]


async def active_registration_exists(db: AsyncSession, event_id: str, user_id: str) -> bool:
    """True when ``user_id`` holds a non-cancelled registration for ``event_id``."""
    found = await db.scalar(
        select(Registration.id).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
            Registration.status != "cancelled",
        )
    )
    return found is not None


async def collect_staff_registrations(db: AsyncSession, staff_id: str) -> List[StaffEventRegistrations]:
    # One AsyncSession cannot run statements concurrently, so the reads are
    # sequential; both finish before grouping starts.
    events = await fetch_owned_events(db, staff_id)
    if not events:
        return []
    registrations = await fetch_owned_registrations(db, staff_id)
    result = group_registrations(events, registrations)
    logger.debug(
        "Staff %s: %d owned events, %d registrations, %d events with registrations",
        staff_id,
        len(events),
        len(registrations),
        len(result),
    )
    return result


def get_staff_registrations_timeout() -> Optional[float]:
    """Seconds allowed for the staff aggregation; None or <= 0 disables it."""
    raw = os.getenv("STAFF_REGISTRATIONS_TIMEOUT_SECONDS", "10")
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid STAFF_REGISTRATIONS_TIMEOUT_SECONDS=%r", raw)
        value = 10.0
    return value if value > 0 else None


async def load_staff_registrations(
    db: AsyncSession,
    staff_id: str,
    timeout: Optional[float] = None,
) -> List[StaffEventRegistrations]:
    """Run the staff aggregation under a deadline.

    Raises:
        asyncio.TimeoutError: the reads did not finish in time (the pending
            read is cancelled).
    """
    limit = timeout if timeout is not None else get_staff_registrations_timeout()
    return await asyncio.wait_for(collect_staff_registrations(db, staff_id), timeout=limit)


async def list_user_registrations(db: AsyncSession, user_id: str) -> List[MyRegistration]:
    """An attendee's registrations with the name/start of each event.

    Registrations whose event no longer exists are still listed, without
    event details, and sort last.
    """
    stmt = (
        select(Registration, Event.name, Event.start_date)
        .outerjoin(Event, Event.id == Registration.event_id)
        .where(Registration.user_id == user_id)
        .order_by(Event.start_date.is_(None), Event.start_date, Registration.registered_at)
    )
    rows = (await db.execute(stmt)).all()
    return [
        MyRegistration(
            **format_registration(RegistrationRecord.from_model(reg)).model_dump(),
            event_name=name,
            event_start_date=to_iso8601(start) if start is not None else None,
        )
        for reg, name, start in rows
    ]
