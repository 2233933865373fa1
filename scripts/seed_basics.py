import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

import events_platform.database as database
from events_platform.models.event import Event
from events_platform.models.user import ROLE_ATTENDEE, ROLE_STAFF, User
from events_platform.security import hash_password

DEMO_PASSWORD = "change-me-please"


async def _ensure_user(session, email: str, name: str, role: str) -> User:
    user = (await session.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None:
        user = User(name=name, email=email, password_hash=hash_password(DEMO_PASSWORD), role=role)
        session.add(user)
        await session.flush()
    return user


async def main() -> None:
    """Create tables and a demo staff member, attendee and event."""

    await database.init_models()
    async with database.SessionLocal() as session:
        staff = await _ensure_user(session, "staff@example.com", "Demo Staff", ROLE_STAFF)
        await _ensure_user(session, "attendee@example.com", "Demo Attendee", ROLE_ATTENDEE)

        has_event = await session.scalar(select(Event.id).where(Event.created_by == staff.id))
        if not has_event:
            session.add(
                Event(
                    name="Community Expo",
                    description="Stalls, talks and food from local groups.",
                    category="Community",
                    start_date=datetime.now(timezone.utc) + timedelta(days=14),
                    venue_name="Town Hall",
                    venue_city="Leeds",
                    venue_country="UK",
                    created_by=staff.id,
                )
            )
        await session.commit()
    print(f"Seeded demo accounts (password: {DEMO_PASSWORD}).")


if __name__ == "__main__":
    asyncio.run(main())
