"""
Integration tests for API endpoints.
Tests complete request/response cycles through the ASGI app.
"""

import pytest
from datetime import timedelta
from httpx import AsyncClient
from fastapi import status

from rentals.models.booking import BookingStatus
from tests.conftest import BookingFactory, days_from_now, auth_headers, assert_error_envelope


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, email: str, role: str = "guest") -> dict:
    response = await client.post("/api/v1/auth/register", json={
        "email": email,
        "password": "securepass123",
        "first_name": email.split("@")[0].title(),
        "last_name": "Tester",
        "role": role,
    })
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


LISTING = {
    "title": "Cliffside Cabin",
    "description": "A quiet timber cabin above the bay with a wood stove and deck.",
    "property_type": "cabin",
    "address": "Trail 4",
    "city": "Sintra",
    "country": "Portugal",
    "max_guests": 3,
    "bedrooms": 1,
    "bathrooms": 1,
    "beds": 2,
    "price_per_night": 70,
    "cleaning_fee": 20,
    "security_deposit": 100,
    "status": "pending",
}


class TestAuthenticationEndpoints:
    """Integration tests for authentication endpoints."""

    @pytest.mark.asyncio
    async def test_register_login_profile(self, async_client: AsyncClient):
        registered = await register(async_client, "newcomer@example.com")
        assert registered["user"]["role"] == "guest"
        assert registered["tokens"]["token_type"] == "bearer"

        login = await async_client.post(
            "/api/v1/auth/login", json={"email": "newcomer@example.com", "password": "securepass123"}
        )
        assert login.status_code == status.HTTP_200_OK
        token = login.json()["tokens"]["access_token"]

        me = await async_client.get("/api/v1/users/me", headers=bearer(token))
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["email"] == "newcomer@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_registration_conflicts(self, async_client: AsyncClient):
        await register(async_client, "twice@example.com")
        response = await async_client.post("/api/v1/auth/register", json={
            "email": "twice@example.com", "password": "securepass123", "first_name": "A", "last_name": "B"
        })
        assert_error_envelope(response, status.HTTP_409_CONFLICT)

    @pytest.mark.asyncio
    async def test_wrong_password(self, async_client: AsyncClient, test_guest):
        response = await async_client.post(
            "/api/v1/auth/login", json={"email": test_guest.email, "password": "not-the-password"}
        )
        assert_error_envelope(response, status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED")

    @pytest.mark.asyncio
    async def test_refresh(self, async_client: AsyncClient):
        registered = await register(async_client, "refresher@example.com")

        response = await async_client.post(
            "/api/v1/auth/refresh", json={"refresh_token": registered["tokens"]["refresh_token"]}
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["access_token"]

    @pytest.mark.asyncio
    async def test_become_host(self, async_client: AsyncClient, test_guest):
        response = await async_client.post("/api/v1/users/become-host", headers=auth_headers(test_guest))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_host"] is True


class TestStayLifecycle:
    """A listing from submission to a reviewed stay."""

    @pytest.mark.asyncio
    async def test_full_flow(self, async_client: AsyncClient, test_admin, other_guest):
        host = await register(async_client, "cabinhost@example.com", role="host")
        host_headers = bearer(host["tokens"]["access_token"])
        guest = await register(async_client, "traveller@example.com")
        guest_headers = bearer(guest["tokens"]["access_token"])

        # Host submits a listing for review
        created = await async_client.post("/api/v1/properties", json=LISTING, headers=host_headers)
        assert created.status_code == status.HTTP_201_CREATED, created.text
        property_id = created.json()["id"]
        assert created.json()["status"] == "pending"

        search = await async_client.get("/api/v1/properties", params={"location": "sintra"})
        assert search.json()["total"] == 0

        # Admin publishes it
        approved = await async_client.put(
            f"/api/v1/admin/properties/{property_id}/approve",
            json={"admin_notes": "Looks great"},
            headers=auth_headers(test_admin),
        )
        assert approved.status_code == status.HTTP_200_OK
        assert approved.json()["status"] == "active"

        search = await async_client.get("/api/v1/properties", params={"location": "sintra", "guests": 2})
        assert [p["id"] for p in search.json()["properties"]] == [property_id]

        # Guest checks and books three nights for two
        check_in = days_from_now(14)
        check_out = check_in + timedelta(days=3)
        availability = await async_client.get(
            f"/api/v1/bookings/properties/{property_id}/availability",
            params={"check_in_date": check_in.isoformat(), "check_out_date": check_out.isoformat(), "guests_count": 2},
        )
        assert availability.status_code == status.HTTP_200_OK
        assert availability.json()["available"] is True

        booked = await async_client.post("/api/v1/bookings", json={
            "property_id": property_id,
            "check_in_date": check_in.isoformat(),
            "check_out_date": check_out.isoformat(),
            "guests_count": 2,
        }, headers=guest_headers)
        assert booked.status_code == status.HTTP_201_CREATED, booked.text
        booking = booked.json()
        booking_id = booking["id"]
        # 70 * 3 nights * 2 guests = 420, + 20 cleaning + 42 service
        assert booking["total_amount"] == 482.0
        assert booking["status"] == "pending"
        assert booking["conversation_id"]

        # The same nights are now taken
        conflict = await async_client.get(
            f"/api/v1/bookings/properties/{property_id}/availability",
            params={"check_in_date": check_in.isoformat(), "check_out_date": check_out.isoformat()},
        )
        error = assert_error_envelope(conflict, status.HTTP_400_BAD_REQUEST, "DATE_CONFLICT")
        assert error["details"][0]["booking_id"] == booking_id

        other_booking = await async_client.post("/api/v1/bookings", json={
            "property_id": property_id,
            "check_in_date": (check_in + timedelta(days=1)).isoformat(),
            "check_out_date": (check_out + timedelta(days=1)).isoformat(),
        }, headers=auth_headers(other_guest))
        assert_error_envelope(other_booking, status.HTTP_400_BAD_REQUEST, "DATE_CONFLICT")

        # Payment confirms the booking
        paid = await async_client.put(
            f"/api/v1/bookings/{booking_id}/payment", json={"payment_status": "paid"}, headers=guest_headers
        )
        assert paid.json()["status"] == "confirmed"

        # Host chats with the guest in the booking conversation
        sent = await async_client.post(
            f"/api/v1/messages/conversations/{booking['conversation_id']}/messages",
            json={"message": "Key is under the mat"},
            headers=host_headers,
        )
        assert sent.status_code == status.HTTP_201_CREATED

        inbox = await async_client.get("/api/v1/messages/conversations", headers=guest_headers)
        assert inbox.json()["conversations"][0]["unread_count"] == 1

        # Stay ends, guest reviews
        completed = await async_client.put(
            f"/api/v1/bookings/{booking_id}/status", json={"status": "completed"}, headers=host_headers
        )
        assert completed.json()["status"] == "completed"

        detail = await async_client.get(f"/api/v1/bookings/{booking_id}", headers=guest_headers)
        assert detail.json()["permissions"]["can_review"] is True

        review = await async_client.post(
            f"/api/v1/bookings/{booking_id}/review", json={"rating": 5, "comment": "Magical"}, headers=guest_headers
        )
        assert review.status_code == status.HTTP_201_CREATED

        listing = await async_client.get(f"/api/v1/properties/{property_id}")
        assert listing.json()["average_rating"] == 5.0
        assert listing.json()["total_reviews"] == 1
        assert listing.json()["recent_reviews"][0]["comment"] == "Magical"

        detail = await async_client.get(f"/api/v1/bookings/{booking_id}", headers=guest_headers)
        assert detail.json()["permissions"]["can_review"] is False


class TestBookingEndpoints:
    @pytest.mark.asyncio
    async def test_pricing_quote(self, async_client: AsyncClient, test_property):
        check_in = days_from_now(5)
        response = await async_client.post("/api/v1/bookings/pricing", json={
            "property_id": str(test_property.id),
            "check_in_date": check_in.isoformat(),
            "check_out_date": (check_in + timedelta(days=1)).isoformat(),
            "guests_count": 1,
        })

        assert response.status_code == status.HTTP_200_OK
        pricing = response.json()["pricing"]
        assert pricing == {
            "nights": 1,
            "price_per_night": 100.0,
            "guests": 1,
            "base_price": 100.0,
            "cleaning_fee": 25.0,
            "service_fee": 10.0,
            "security_deposit": 200.0,
            "total_amount": 135.0,
        }

    @pytest.mark.asyncio
    async def test_bad_date_format(self, async_client: AsyncClient, test_property):
        response = await async_client.get(
            f"/api/v1/bookings/properties/{test_property.id}/availability",
            params={"check_in_date": "2030/01/01", "check_out_date": "2030-01-03"},
        )
        error = assert_error_envelope(response, status.HTTP_400_BAD_REQUEST)
        assert error["message"] == "Invalid date format. Use YYYY-MM-DD"

    @pytest.mark.asyncio
    async def test_booked_dates(self, async_client: AsyncClient, confirmed_booking, test_property):
        response = await async_client.get(f"/api/v1/bookings/properties/{test_property.id}/booked-dates")

        assert response.status_code == status.HTTP_200_OK
        ranges = response.json()["booked_ranges"]
        assert ranges[0]["check_in_date"] == confirmed_booking.check_in_date.isoformat()

    @pytest.mark.asyncio
    async def test_host_cannot_book(self, async_client: AsyncClient, test_property, test_host):
        check_in = days_from_now(5)
        response = await async_client.post("/api/v1/bookings", json={
            "property_id": str(test_property.id),
            "check_in_date": check_in.isoformat(),
            "check_out_date": (check_in + timedelta(days=2)).isoformat(),
        }, headers=auth_headers(test_host))
        assert_error_envelope(response, status.HTTP_403_FORBIDDEN)

    @pytest.mark.asyncio
    async def test_list_is_scoped(
        self, async_client: AsyncClient, booking_repository, confirmed_booking, test_property, other_guest, test_admin
    ):
        await BookingFactory.create_booking(
            booking_repository, test_property, other_guest, check_in=days_from_now(40), status=BookingStatus.PENDING
        )

        mine = await async_client.get("/api/v1/bookings", headers=auth_headers(other_guest))
        everything = await async_client.get("/api/v1/bookings", headers=auth_headers(test_admin))

        assert mine.json()["total"] == 1
        assert everything.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_stranger_cannot_view_booking(self, async_client: AsyncClient, confirmed_booking, other_guest):
        response = await async_client.get(f"/api/v1/bookings/{confirmed_booking.id}", headers=auth_headers(other_guest))
        assert_error_envelope(response, status.HTTP_403_FORBIDDEN, "FORBIDDEN")


class TestPropertyEndpoints:
    @pytest.mark.asyncio
    async def test_guest_cannot_create_listing(self, async_client: AsyncClient, test_guest):
        response = await async_client.post("/api/v1/properties", json=LISTING, headers=auth_headers(test_guest))
        assert_error_envelope(response, status.HTTP_403_FORBIDDEN)

    @pytest.mark.asyncio
    async def test_draft_is_404_for_public(self, async_client: AsyncClient, draft_property, test_host):
        assert_error_envelope(await async_client.get(f"/api/v1/properties/{draft_property.id}"), 404, "NOT_FOUND")

        owner_view = await async_client.get(f"/api/v1/properties/{draft_property.id}", headers=auth_headers(test_host))
        assert owner_view.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_block_dates_then_availability_conflict(self, async_client: AsyncClient, test_property, test_host):
        blocked_day = days_from_now(12)
        response = await async_client.post(
            f"/api/v1/properties/{test_property.id}/blocked-dates",
            json={"dates": [blocked_day.isoformat()], "reason": "maintenance"},
            headers=auth_headers(test_host),
        )
        assert response.status_code == status.HTTP_201_CREATED

        availability = await async_client.get(
            f"/api/v1/bookings/properties/{test_property.id}/availability",
            params={
                "check_in_date": (blocked_day - timedelta(days=1)).isoformat(),
                "check_out_date": (blocked_day + timedelta(days=1)).isoformat(),
            },
        )
        error = assert_error_envelope(availability, status.HTTP_400_BAD_REQUEST, "DATE_CONFLICT")
        assert error["details"] == [{"type": "blocked", "date": blocked_day.isoformat(), "reason": "maintenance"}]

    @pytest.mark.asyncio
    async def test_delete_with_open_booking(self, async_client: AsyncClient, confirmed_booking, test_property, test_host):
        response = await async_client.delete(f"/api/v1/properties/{test_property.id}", headers=auth_headers(test_host))
        assert_error_envelope(response, status.HTTP_400_BAD_REQUEST)


class TestServiceEndpoints:
    @pytest.mark.asyncio
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert "version" in response.json()

    @pytest.mark.asyncio
    async def test_error_carries_request_id(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/properties/not-a-uuid")
        error = assert_error_envelope(response, 422)
        assert error["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient, monkeypatch):
        async def healthy() -> bool:
            return True

        async def unreachable() -> bool:
            return False

        monkeypatch.setattr("rentals.main.test_database_connection", healthy)
        response = await async_client.get("/health")
        assert response.json()["status"] == "healthy"

        monkeypatch.setattr("rentals.main.test_database_connection", unreachable)
        response = await async_client.get("/health")
        assert_error_envelope(response, status.HTTP_503_SERVICE_UNAVAILABLE, "SERVICE_UNAVAILABLE")
