"""
HTTP API: JSON shapes, status codes and error bodies
"""
from datetime import date

import pytest
from sqlalchemy import func, select

from apartment_booking.models import Booking, BookingStatus

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "dbState": "connected"}


class TestUnavailableDates:
    @pytest.mark.asyncio
    async def test_sorted_unique_iso_days(self, client, apartments, add_booking, add_block):
        apartment = apartments["B"]
        await add_booking(apartment, date(2024, 7, 10), date(2024, 7, 12))
        await add_block(apartment, date(2024, 7, 11), date(2024, 7, 14))

        response = await client.get(f"/api/apartments/{apartment.id}/unavailable-dates")

        assert response.status_code == 200
        assert response.json() == {
            "apartmentId": apartment.id,
            "unavailableDates": ["2024-07-10", "2024-07-11", "2024-07-12", "2024-07-13"],
        }

    @pytest.mark.asyncio
    async def test_global_blocked_dates_show_for_every_apartment(
        self, client, apartments, add_blocked_date
    ):
        await add_blocked_date(date(2024, 12, 24), date(2024, 12, 26))

        for apartment in apartments.values():
            response = await client.get(f"/api/apartments/{apartment.id}/unavailable-dates")
            assert response.json()["unavailableDates"] == ["2024-12-24", "2024-12-25"]

    @pytest.mark.asyncio
    async def test_unknown_apartment(self, client, apartments):
        response = await client.get("/api/apartments/9999/unavailable-dates")

        assert response.status_code == 404
        assert response.json() == {"error": "Apartment not found"}


class TestAvailabilityCheck:
    @pytest.mark.asyncio
    async def test_back_to_back_is_available(self, client, apartments, add_booking):
        apartment = apartments["A"]
        await add_booking(apartment, date(2024, 6, 1), date(2024, 6, 5))

        response = await client.get(
            f"/api/availability/check/{apartment.id}",
            params={"startDate": "2024-06-05", "endDate": "2024-06-08"},
        )

        assert response.status_code == 200
        assert response.json()["available"] is True

    @pytest.mark.asyncio
    async def test_overlap_is_unavailable(self, client, apartments, add_booking):
        apartment = apartments["A"]
        await add_booking(apartment, date(2024, 6, 1), date(2024, 6, 5))

        response = await client.get(
            f"/api/availability/check/{apartment.id}",
            params={"startDate": "2024-06-04T00:00:00.000Z", "endDate": "2024-06-06"},
        )

        assert response.json()["available"] is False
        assert response.json()["startDate"] == "2024-06-04"

    @pytest.mark.asyncio
    async def test_missing_dates(self, client, apartments):
        response = await client.get(
            f"/api/availability/check/{apartments['A'].id}", params={"startDate": "2024-06-04"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Start date and end date are required"}

    @pytest.mark.asyncio
    async def test_inverted_range(self, client, apartments):
        response = await client.get(
            f"/api/availability/check/{apartments['A'].id}",
            params={"startDate": "2024-06-08", "endDate": "2024-06-04"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "End date must be after start date"}


class TestBookingsApi:
    @pytest.mark.asyncio
    async def test_requires_token(self, client, sample_booking_payload):
        response = await client.post("/api/bookings", json=sample_booking_payload)

        assert response.status_code == 401
        assert response.json() == {"error": "Missing or invalid token"}

    @pytest.mark.asyncio
    async def test_garbage_token(self, client, sample_booking_payload):
        response = await client.post(
            "/api/bookings",
            json=sample_booking_payload,
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_booking(self, client, users, auth, sample_booking_payload):
        response = await client.post(
            "/api/bookings", json=sample_booking_payload, headers=auth(users["guest"])
        )

        assert response.status_code == 201
        body = response.json()
        assert body["startDate"] == "2024-06-01"
        assert body["endDate"] == "2024-06-05"
        assert body["status"] == BookingStatus.PENDING.value
        assert body["userId"] == users["guest"].id
        assert body["message"] == "Booking created successfully. Please complete the payment."

    @pytest.mark.asyncio
    async def test_conflict_returns_conflicting_booking(
        self, client, session_factory, users, apartments, auth, add_booking
    ):
        existing = await add_booking(apartments["A"], date(2024, 6, 1), date(2024, 6, 5))

        response = await client.post(
            "/api/bookings",
            json={
                "apartmentId": apartments["A"].id,
                "startDate": "2024-06-04",
                "endDate": "2024-06-06",
            },
            headers=auth(users["guest"]),
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "This apartment is already booked for the selected dates",
            "conflictType": "booking",
            "conflictingBooking": existing.id,
        }
        async with session_factory() as session:
            assert await session.scalar(select(func.count()).select_from(Booking)) == 1

    @pytest.mark.asyncio
    async def test_conflict_with_blocked_date(
        self, client, users, apartments, auth, add_blocked_date
    ):
        blocked = await add_blocked_date(date(2024, 6, 3), date(2024, 6, 4))

        response = await client.post(
            "/api/bookings",
            json={
                "apartmentId": apartments["C"].id,
                "startDate": "2024-06-01",
                "endDate": "2024-06-05",
            },
            headers=auth(users["guest"]),
        )

        assert response.status_code == 400
        assert response.json()["conflictType"] == "blocked_date"
        assert response.json()["conflictingBlockedDate"] == blocked.id

    @pytest.mark.asyncio
    async def test_malformed_body(self, client, users, auth, apartments):
        response = await client.post(
            "/api/bookings",
            json={"apartmentId": apartments["A"].id, "startDate": "soon", "endDate": "later"},
            headers=auth(users["guest"]),
        )

        assert response.status_code == 422
        body = response.json()
        assert "detail" not in body
        assert "Invalid date" in body["error"]

    @pytest.mark.asyncio
    async def test_cancel_then_rebook(self, client, users, apartments, auth, add_booking):
        booking = await add_booking(apartments["A"], date(2024, 6, 1), date(2024, 6, 5))

        response = await client.put(
            f"/api/bookings/{booking.id}/cancel",
            json={"reason": "Flight cancelled"},
            headers=auth(users["guest"]),
        )
        assert response.status_code == 200
        assert response.json()["booking"]["status"] == BookingStatus.CANCELLED.value

        response = await client.post(
            "/api/bookings",
            json={
                "apartmentId": apartments["A"].id,
                "startDate": "2024-06-02",
                "endDate": "2024-06-04",
            },
            headers=auth(users["admin"]),
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_my_bookings(self, client, users, apartments, auth, add_booking):
        await add_booking(apartments["A"], date(2024, 6, 1), date(2024, 6, 5))
        await add_booking(apartments["B"], date(2024, 6, 1), date(2024, 6, 5), user=users["owner"])

        response = await client.get("/api/bookings/my", headers=auth(users["guest"]))

        assert response.status_code == 200
        assert [b["apartmentId"] for b in response.json()] == [apartments["A"].id]


class TestAvailabilityBlocksApi:
    @pytest.mark.asyncio
    async def test_block_over_booking_is_rejected(
        self, client, users, apartments, auth, add_booking
    ):
        booking = await add_booking(apartments["A"], date(2024, 6, 1), date(2024, 6, 5))

        response = await client.post(
            "/api/availability/block",
            json={
                "apartmentId": apartments["A"].id,
                "startDate": "2024-06-03",
                "endDate": "2024-06-10",
                "reason": "MAINTENANCE",
            },
            headers=auth(users["owner"]),
        )

        assert response.status_code == 400
        assert response.json()["conflictingBooking"] == booking.id

    @pytest.mark.asyncio
    async def test_block_then_overlapping_block(self, client, users, apartments, auth):
        payload = {
            "apartmentId": apartments["A"].id,
            "startDate": "2024-08-01",
            "endDate": "2024-08-05",
            "reason": "RENOVATION",
        }

        first = await client.post(
            "/api/availability/block", json=payload, headers=auth(users["owner"])
        )
        assert first.status_code == 201
        assert first.json()["message"] == "Dates blocked successfully"
        assert first.json()["isAvailable"] is False

        second = await client.post(
            "/api/availability/block",
            json={**payload, "startDate": "2024-08-04", "endDate": "2024-08-06"},
            headers=auth(users["owner"]),
        )
        assert second.status_code == 400
        assert second.json() == {
            "error": "Dates overlap with an existing availability period",
            "conflictType": "availability_block",
            "conflictingPeriod": first.json()["id"],
        }

    @pytest.mark.asyncio
    async def test_guest_cannot_block(self, client, users, apartments, auth):
        response = await client.post(
            "/api/availability/block",
            json={
                "apartmentId": apartments["A"].id,
                "startDate": "2024-08-01",
                "endDate": "2024-08-05",
            },
            headers=auth(users["guest"]),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_with_window(self, client, apartments, add_block):
        apartment = apartments["A"]
        await add_block(apartment, date(2024, 8, 1), date(2024, 8, 5))
        inside = await add_block(apartment, date(2024, 9, 1), date(2024, 9, 5))

        response = await client.get(
            f"/api/availability/apartment/{apartment.id}",
            params={"startDate": "2024-09-01", "endDate": "2024-10-01"},
        )

        assert response.status_code == 200
        assert [b["id"] for b in response.json()] == [inside.id]


class TestBlockedDatesApi:
    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, client, users, auth):
        response = await client.get("/api/blocked-dates", headers=auth(users["owner"]))

        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}

    @pytest.mark.asyncio
    async def test_global_block_over_booking_is_rejected(
        self, client, users, apartments, auth, add_booking
    ):
        booking = await add_booking(apartments["D"], date(2024, 12, 20), date(2024, 12, 27))

        response = await client.post(
            "/api/blocked-dates",
            json={"startDate": "2024-12-24", "endDate": "2024-12-26", "reason": "Holiday"},
            headers=auth(users["admin"]),
        )

        assert response.status_code == 400
        assert response.json()["conflictingBooking"] == booking.id

    @pytest.mark.asyncio
    async def test_missing_reason_renders_error(self, client, users, auth):
        response = await client.post(
            "/api/blocked-dates",
            json={"startDate": "2025-01-01", "endDate": "2025-01-02"},
            headers=auth(users["admin"]),
        )

        assert response.status_code == 422
        assert response.json() == {"error": "Field required"}

    @pytest.mark.asyncio
    async def test_create_check_and_delete(self, client, users, apartments, auth):
        created = await client.post(
            "/api/blocked-dates",
            json={"startDate": "2025-01-01", "endDate": "2025-01-02", "reason": "New Year"},
            headers=auth(users["admin"]),
        )
        assert created.status_code == 201
        assert created.json()["apartmentId"] is None

        check = await client.get(
            f"/api/blocked-dates/check/{apartments['B'].id}",
            params={"startDate": "2024-12-31", "endDate": "2025-01-03"},
        )
        assert check.json()["isBlocked"] is True
        assert check.json()["blockedDate"]["id"] == created.json()["id"]

        deleted = await client.delete(
            f"/api/blocked-dates/{created.json()['id']}", headers=auth(users["admin"])
        )
        assert deleted.status_code == 200

        check = await client.get(
            f"/api/blocked-dates/check/{apartments['B'].id}",
            params={"startDate": "2024-12-31", "endDate": "2025-01-03"},
        )
        assert check.json() == {"isBlocked": False, "blockedDate": None}


class TestCalendarApi:
    @pytest.mark.asyncio
    async def test_month_calendar(self, client, apartments, add_booking):
        apartment = apartments["A"]
        await add_booking(apartment, date(2024, 2, 28), date(2024, 3, 2))

        response = await client.get(
            f"/api/apartments/{apartment.id}/calendar", params={"year": 2024, "month": 2}
        )

        assert response.status_code == 200
        days = response.json()["days"]
        assert len(days) == 29
        assert days[26] == {"day": "2024-02-27", "available": True, "occupiedBy": []}
        assert days[27] == {"day": "2024-02-28", "available": False, "occupiedBy": ["booking"]}

    @pytest.mark.asyncio
    async def test_free_periods(self, client, apartments, add_booking):
        apartment = apartments["A"]
        await add_booking(apartment, date(2024, 6, 10), date(2024, 6, 15))

        response = await client.get(
            f"/api/apartments/{apartment.id}/free-periods",
            params={"startDate": "2024-06-01", "endDate": "2024-07-01"},
        )

        assert response.status_code == 200
        assert response.json()["freePeriods"] == [
            {"startDate": "2024-06-01", "endDate": "2024-06-10", "nights": 9},
            {"startDate": "2024-06-15", "endDate": "2024-07-01", "nights": 16},
        ]


class TestApartmentsApi:
    @pytest.mark.asyncio
    async def test_create_and_delete(self, client, users, auth):
        created = await client.post(
            "/api/apartments",
            json={"title": "Studio", "location": "Lisbon", "pricePerNight": "65.00"},
            headers=auth(users["owner"]),
        )
        assert created.status_code == 201
        apartment_id = created.json()["id"]

        forbidden = await client.delete(
            f"/api/apartments/{apartment_id}", headers=auth(users["guest"])
        )
        assert forbidden.status_code == 403

        deleted = await client.delete(
            f"/api/apartments/{apartment_id}", headers=auth(users["owner"])
        )
        assert deleted.status_code == 200

        missing = await client.get(f"/api/apartments/{apartment_id}")
        assert missing.status_code == 404
