"""HTTP contract of GET /api/registrations/staff."""

import asyncio

import pytest
from sqlalchemy import text

from events_platform.services import registrations as registrations_service
from factories import auth_headers, make_event, make_registration, make_staff, make_user, utc

URL = "/api/registrations/staff"
T1 = utc(2024, 6, 1, 18, 0)
T2 = utc(2024, 5, 1, 9, 15, 30)


def test_missing_token_is_unauthorized(client):
    response = client.get(URL)
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_invalid_token_is_unauthorized(client):
    response = client.get(URL, headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_token_for_unknown_user_is_unauthorized(client):
    response = client.get(URL, headers=auth_headers("ghost"))
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


@pytest.mark.parametrize("role", ["user", "admin", "Staff", ""])
def test_non_staff_roles_are_forbidden(client, seed, role):
    seed(make_user("u1", role=role))
    response = client.get(URL, headers=auth_headers("u1"))
    assert response.status_code == 403
    assert response.json() == {"error": "Access denied"}


def test_staff_sees_only_registrations_for_owned_events(client, seed):
    seed(
        make_staff("u1"),
        make_staff("u2"),
        make_event("e1", "u1", T1, name="Expo"),
        make_event("e2", "u2", T1, name="Other expo"),
        make_registration(
            "r1",
            "e1",
            T2,
            user_email="a@x.com",
            user_name="Ada",
            ticket_count=2,
            status="confirmed",
        ),
        make_registration("r2", "e2", T2),
    )

    response = client.get(URL, headers=auth_headers("u1"))

    assert response.status_code == 200
    assert response.json() == {
        "events": [
            {
                "id": "e1",
                "name": "Expo",
                "startDate": "2024-06-01T18:00:00.000Z",
                "registrations": [
                    {
                        "id": "r1",
                        "eventId": "e1",
                        "userEmail": "a@x.com",
                        "userName": "Ada",
                        "registeredAt": "2024-05-01T09:15:30.000Z",
                        "status": "confirmed",
                        "ticketCount": 2,
                    }
                ],
            }
        ]
    }


def test_other_owners_and_dangling_registrations_never_appear(client, seed):
    seed(
        make_staff("u1"),
        make_event("e1", "u1", T1),
        make_event("e2", "u1", utc(2024, 4, 1)),
        make_event("e3", "someone-else", T1),
        make_registration("r1", "e1", T2),
        make_registration("r2", "e2", T2),
        make_registration("r3", "e3", T2),
        make_registration("r4", "deleted-event", T2),
    )

    body = client.get(URL, headers=auth_headers("u1")).json()

    assert [e["id"] for e in body["events"]] == ["e2", "e1"]
    ids = {r["id"] for e in body["events"] for r in e["registrations"]}
    assert ids == {"r1", "r2"}


def test_owned_event_without_registrations_is_omitted(client, seed):
    seed(
        make_staff("u1"),
        make_event("e1", "u1", T1),
        make_event("quiet", "u1", T1),
        make_registration("r1", "e1", T2),
    )
    body = client.get(URL, headers=auth_headers("u1")).json()
    assert [e["id"] for e in body["events"]] == ["e1"]


def test_staff_without_events_gets_empty_list(client, seed):
    seed(make_staff("u1"))
    response = client.get(URL, headers=auth_headers("u1"))
    assert response.status_code == 200
    assert response.json() == {"events": []}


def test_missing_ticket_count_is_reported_as_one(client, seed):
    seed(
        make_staff("u1"),
        make_event("e1", "u1", T1),
        make_registration("r1", "e1", T2, ticket_count=None),
    )
    body = client.get(URL, headers=auth_headers("u1")).json()
    assert body["events"][0]["registrations"][0]["ticketCount"] == 1


def test_registrations_are_ordered_by_registration_time(client, seed):
    seed(
        make_staff("u1"),
        make_event("e1", "u1", T1),
        make_registration("late", "e1", utc(2024, 5, 3)),
        make_registration("early", "e1", utc(2024, 5, 1)),
        make_registration("middle", "e1", utc(2024, 5, 2)),
    )
    body = client.get(URL, headers=auth_headers("u1")).json()
    assert [r["id"] for r in body["events"][0]["registrations"]] == ["early", "middle", "late"]


def test_repeated_calls_return_identical_output(client, seed):
    seed(
        make_staff("u1"),
        make_event("e1", "u1", T1),
        make_event("e2", "u1", T1),
        make_registration("r1", "e1", T2),
        make_registration("r2", "e2", T2, ticket_count=None),
    )
    first = client.get(URL, headers=auth_headers("u1")).json()
    second = client.get(URL, headers=auth_headers("u1")).json()
    assert first == second


def test_store_failure_is_reported_as_internal_error(client, seed, monkeypatch, caplog):
    seed(make_staff("u1"))

    async def _boom(db, staff_id):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(registrations_service, "collect_staff_registrations", _boom)

    response = client.get(URL, headers=auth_headers("u1"))

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "database unavailable" not in response.text
    assert "Error fetching registrations" in caplog.text


def test_slow_store_hits_the_deadline(client, seed, monkeypatch):
    seed(make_staff("u1"))
    monkeypatch.setenv("STAFF_REGISTRATIONS_TIMEOUT_SECONDS", "0.05")

    async def _slow(db, staff_id):
        await asyncio.sleep(5)
        return []

    monkeypatch.setattr(registrations_service, "collect_staff_registrations", _slow)

    response = client.get(URL, headers=auth_headers("u1"))

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def _insert_raw(session_factory, statement, **params):
    async def _run():
        async with session_factory() as session:
            await session.execute(text(statement), params)
            await session.commit()

    asyncio.run(_run())


def test_bad_stored_registration_time_is_logged_with_its_id(client, seed, session_factory, caplog):
    seed(make_staff("u1"), make_event("e1", "u1", T1))
    _insert_raw(
        session_factory,
        "INSERT INTO registrations (id, event_id, registered_at, status) "
        "VALUES (:id, :event_id, :registered_at, 'confirmed')",
        id="bad-reg-42",
        event_id="e1",
        registered_at="yesterday-ish",
    )

    response = client.get(URL, headers=auth_headers("u1"))

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "bad-reg-42" in caplog.text


def test_bad_stored_start_date_is_logged_with_event_id(client, seed, session_factory, caplog):
    seed(make_staff("u1"))
    _insert_raw(
        session_factory,
        "INSERT INTO events (id, name, status, start_date, created_by) "
        "VALUES (:id, 'Broken', 'active', :start_date, 'u1')",
        id="bad-evt-7",
        start_date="someday",
    )
    seed(make_registration("r1", "bad-evt-7", T2))

    response = client.get(URL, headers=auth_headers("u1"))

    assert response.status_code == 500
    assert "bad-evt-7" in caplog.text


def test_missing_contact_details_are_rendered_as_empty_strings(client, seed):
    seed(
        make_staff("u1"),
        make_event("e1", "u1", T1),
        make_registration("r1", "e1", T2, user_email=None, user_name=None),
    )
    body = client.get(URL, headers=auth_headers("u1")).json()
    registration = body["events"][0]["registrations"][0]
    assert registration["userEmail"] == ""
    assert registration["userName"] == ""
