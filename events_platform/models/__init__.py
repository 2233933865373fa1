"""ORM models; importing this package registers every table with ``Base``."""

from events_platform.models.event import Event
from events_platform.models.registration import Registration
from events_platform.models.user import User

__all__ = ["Event", "Registration", "User"]
