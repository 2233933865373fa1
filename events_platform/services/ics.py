"""iCalendar export for a single event."""

import os

from icalendar import Calendar, Event as ICalEvent

from events_platform.models.event import Event
from events_platform.timestamps import parse_timestamp


def _product_id() -> str:
    return os.getenv("CALENDAR_PRODUCT_ID", "-//Events Platform//events-platform//EN")


def event_location(event: Event) -> str:
    parts = (
        event.venue_name,
        event.venue_address,
        event.venue_city,
        event.venue_state,
        event.venue_country,
    )
    return ", ".join(p.strip() for p in parts if p and p.strip())


def build_event_calendar(event: Event) -> bytes:
    """Serialize ``event`` as a one-entry VCALENDAR.

    Events without an end date end when they start.
    """
    cal = Calendar()
    cal.add("prodid", _product_id())
    cal.add("version", "2.0")

    start = parse_timestamp(event.start_date)
    end = parse_timestamp(event.end_date) if event.end_date is not None else start

    entry = ICalEvent()
    entry.add("uid", f"{event.id}@events-platform")
    entry.add("summary", event.name)
    entry.add("dtstart", start)
    entry.add("dtend", end)

    location = event_location(event)
    if location:
        entry.add("location", location)
    if event.description:
        entry.add("description", event.description)
    if event.status == "cancelled":
        entry.add("status", "CANCELLED")

    cal.add_component(entry)
    return cal.to_ical()


def calendar_filename(event: Event) -> str:
    return f"event_{event.id}.ics"
