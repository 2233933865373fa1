"""Import a JSON export of the legacy ``events``/``registrations`` collections.

Usage: python -m scripts.import_documents export.json

The export is an object with ``events`` and ``registrations`` keys, each a
list of documents carrying their id under ``id``. Documents whose id already
exists are skipped, so the import can be re-run, as are second live
registrations of the same user for the same event. Registrations are imported
even when their event is missing; the staff view drops them.
"""

import argparse
import asyncio
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

import events_platform.database as database
from events_platform.models.event import Event
from events_platform.models.registration import Registration
from events_platform.services.registrations import active_registration_exists
from events_platform.timestamps import InvalidTimestampError, parse_timestamp

logger = logging.getLogger("import_documents")


def event_from_document(doc: Mapping[str, Any]) -> Event:
    venue = doc.get("venue") or {}
    price = doc.get("price") or {}
    return Event(
        id=str(doc["id"]),
        name=doc["name"],
        description=doc.get("description"),
        category=doc.get("category"),
        status=doc.get("status") or "active",
        start_date=parse_timestamp(doc.get("startDate")),
        end_date=parse_timestamp(doc["endDate"]) if doc.get("endDate") else None,
        venue_name=venue.get("name"),
        venue_address=venue.get("address"),
        venue_city=venue.get("city"),
        venue_state=venue.get("state"),
        venue_country=venue.get("country"),
        price_amount=Decimal(str(price["amount"])) if price.get("amount") is not None else None,
        price_currency=price.get("currency"),
        image_url=(doc.get("images") or [None])[0],
        created_by=str(doc["createdBy"]),
    )


def registration_from_document(doc: Mapping[str, Any]) -> Registration:
    # ticketCount stays NULL when absent; readers apply the default.
    ticket_count = doc.get("ticketCount")
    return Registration(
        id=str(doc["id"]),
        event_id=str(doc["eventId"]),
        user_id=doc.get("userId"),
        user_email=doc.get("userEmail"),
        user_name=doc.get("userName"),
        registered_at=parse_timestamp(doc.get("registeredAt")),
        status=doc.get("status") or "confirmed",
        ticket_count=int(ticket_count) if ticket_count is not None else None,
    )


async def import_documents(export: Mapping[str, Any], session_factory=None) -> dict[str, int]:
    """Insert the exported documents; returns counts per outcome."""

    factory = session_factory or database.SessionLocal
    counts = {"events": 0, "registrations": 0, "skipped": 0, "invalid": 0}
    seen: set[tuple[str, str]] = set()
    active_pairs: set[tuple[str, str]] = set()
    async with factory() as session:
        for kind, model, build in (
            ("events", Event, event_from_document),
            ("registrations", Registration, registration_from_document),
        ):
            for doc in export.get(kind, []):
                try:
                    row = build(doc)
                except (KeyError, InvalidTimestampError, ValueError, TypeError, ArithmeticError) as exc:
                    logger.warning("Skipping invalid %s document %s: %s", kind, doc.get("id"), exc)
                    counts["invalid"] += 1
                    continue
                if (kind, row.id) in seen or await session.get(model, row.id) is not None:
                    counts["skipped"] += 1
                    continue
                if kind == "registrations" and row.user_id and row.status != "cancelled":
                    pair = (row.event_id, row.user_id)
                    if pair in active_pairs or await active_registration_exists(session, *pair):
                        logger.warning("Skipping duplicate registration %s for user %s", row.id, row.user_id)
                        counts["skipped"] += 1
                        continue
                    active_pairs.add(pair)
                seen.add((kind, row.id))
                session.add(row)
                counts[kind] += 1
        await session.commit()
    return counts


async def main(path: Path) -> None:
    await database.init_models()
    export = json.loads(path.read_text(encoding="utf-8"))
    counts = await import_documents(export)
    logger.info("Import finished: %s", counts)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("export", type=Path, help="JSON export file")
    args = parser.parse_args()
    asyncio.run(main(args.export))
