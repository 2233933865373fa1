"""Service layer helpers shared by the routers."""

from events_platform.services.ics import build_event_calendar
from events_platform.services.registrations import (
    group_registrations,
    list_user_registrations,
    load_staff_registrations,
)

__all__ = [
    "build_event_calendar",
    "group_registrations",
    "list_user_registrations",
    "load_staff_registrations",
]
