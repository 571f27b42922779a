"""
Tests for the booking HTTP endpoints.

These tests verify that:
1. A hotel booking walks STARTED -> NEXT_PROMPT -> COMPLETED over HTTP
2. Invalid answers return VALIDATION_ERROR with the repeated prompt
3. Start errors and unknown sessions come back as ERROR outcomes
4. Status polling and cancel never fail for unknown ids
5. A repeated idempotencyKey does not advance the session twice
6. Booking records can be confirmed or cancelled once
"""

import os
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

# No simulated provider latency in tests
os.environ["FULFILLMENT_DELAY_MS"] = "0"

from app import booking_api
from app.main import app
from engine.fulfillment import FulfillmentAgent
from engine.orchestrator import BookingOrchestrator


HOTEL_ANSWERS = ["Mumbai", "2024-06-15", "2024-06-17", "2"]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def fresh_orchestrator():
    """Each test gets its own sessions and bookings."""
    booking_api.reset_orchestrator(
        BookingOrchestrator(fulfillment_agent=FulfillmentAgent(api_delay=0))
    )
    yield
    booking_api.reset_orchestrator()


@pytest.fixture
async def client():
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def start(client: AsyncClient, service: str, session_id: str = None):
    payload = {"serviceType": service}
    if session_id:
        payload["sessionId"] = session_id
    response = await client.post("/booking/start", json=payload)
    assert response.status_code == 200
    return response.json()


async def answer(client: AsyncClient, session_id: str, text: str, idempotency_key: str = None):
    payload = {"sessionId": session_id, "answer": text}
    if idempotency_key:
        payload["idempotencyKey"] = idempotency_key
    response = await client.post("/booking/answer", json=payload)
    assert response.status_code == 200
    return response.json()


class TestHealthEndpoint:
    """Tests for GET /health"""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_services(self, client: AsyncClient):
        response = await client.get("/services")

        assert response.status_code == 200
        assert response.json()["services"] == ["travel", "cab", "hotel", "restaurant"]


class TestBookingStart:
    """Tests for POST /booking/start"""

    @pytest.mark.asyncio
    async def test_start_hotel(self, client: AsyncClient):
        data = await start(client, "hotel", "h1")

        assert data["outcome"] == "STARTED"
        assert data["sessionId"] == "h1"
        assert data["serviceType"] == "hotel"
        assert data["firstPrompt"].startswith("Which city")
        assert data["progress"] == "0/4"

    @pytest.mark.asyncio
    async def test_generated_session_id(self, client: AsyncClient):
        data = await start(client, "cab")
        assert data["outcome"] == "STARTED"
        assert data["sessionId"]

    @pytest.mark.asyncio
    async def test_unknown_service(self, client: AsyncClient):
        data = await start(client, "flight", "x1")

        assert data["outcome"] == "ERROR"
        assert data["errorCode"] == "UNKNOWN_SERVICE_TYPE"
        assert "flight" in data["error"]

    @pytest.mark.asyncio
    async def test_duplicate_session(self, client: AsyncClient):
        await start(client, "hotel", "h1")
        data = await start(client, "hotel", "h1")

        assert data["outcome"] == "ERROR"
        assert data["errorCode"] == "DUPLICATE_SESSION"

    @pytest.mark.asyncio
    async def test_missing_service_type_is_422(self, client: AsyncClient):
        response = await client.post("/booking/start", json={})
        assert response.status_code == 422


class TestBookingAnswer:
    """Tests for POST /booking/answer"""

    @pytest.mark.asyncio
    async def test_hotel_golden_path(self, client: AsyncClient):
        """Mumbai, 2024-06-15 to 2024-06-17, 2 guests ends in a hotel message."""
        await start(client, "hotel", "h1")

        outcomes = [await answer(client, "h1", text) for text in HOTEL_ANSWERS]

        assert [o["outcome"] for o in outcomes] == [
            "NEXT_PROMPT", "NEXT_PROMPT", "NEXT_PROMPT", "COMPLETED",
        ]
        assert outcomes[0]["nextPrompt"].startswith("Check-in date?")

        completed = outcomes[-1]
        assert completed["success"] is True
        assert completed["serviceType"] == "hotel"
        assert completed["bookingReference"].startswith("HTL_")
        assert "Stay Duration: 2 days" in completed["completedMessage"]
        assert completed["bookingId"]
        assert completed["data"]["stay_duration"] == 2

        status = (await client.get("/booking/status/h1")).json()
        assert status["exists"] is False

    @pytest.mark.asyncio
    async def test_validation_error_repeats_prompt(self, client: AsyncClient):
        await start(client, "hotel", "h1")
        first = await answer(client, "h1", "Mumbai")

        data = await answer(client, "h1", "2024-13-40")

        assert data["outcome"] == "VALIDATION_ERROR"
        assert data["validationError"] == "invalid date"
        assert data["repeatedPrompt"] == first["nextPrompt"]
        assert data["progress"] == "1/4"

    @pytest.mark.asyncio
    async def test_unknown_session(self, client: AsyncClient):
        data = await answer(client, "nope", "Mumbai")

        assert data["outcome"] == "ERROR"
        assert data["errorCode"] == "SESSION_NOT_FOUND"
        assert data["sessionId"] == "nope"

    @pytest.mark.asyncio
    async def test_idempotency_key_prevents_double_advance(self, client: AsyncClient):
        """Resubmitting with the same key returns the cached response."""
        await start(client, "hotel", "h1")

        first = await answer(client, "h1", "Mumbai", idempotency_key="k1")
        second = await answer(client, "h1", "Mumbai", idempotency_key="k1")

        assert first == second
        status = (await client.get("/booking/status/h1")).json()
        assert status["progress"] == "1/4"

    @pytest.mark.asyncio
    async def test_same_key_on_another_session_is_applied(self, client: AsyncClient):
        """Idempotency keys are scoped to their session."""
        await start(client, "hotel", "a")
        await start(client, "cab", "b")

        first = await answer(client, "a", "Mumbai", idempotency_key="k1")
        second = await answer(client, "b", "Airport", idempotency_key="k1")

        assert first["sessionId"] == "a"
        assert second["outcome"] == "NEXT_PROMPT"
        assert second["sessionId"] == "b"
        assert (await client.get("/booking/status/a")).json()["progress"] == "1/4"
        status_b = (await client.get("/booking/status/b")).json()
        assert status_b["progress"] == "1/3"
        assert status_b["answers"] == {"pickup": "Airport"}

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_error_outcome(self, client: AsyncClient):
        """Engine faults never escape as HTTP 500."""
        await start(client, "hotel", "h1")
        orchestrator = booking_api.get_orchestrator()

        with patch.object(
            orchestrator, "submit_answer",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            data = await answer(client, "h1", "Mumbai")

        assert data["outcome"] == "ERROR"
        assert data["errorCode"] == "INTERNAL_ERROR"


class TestStatusAndCancel:
    """Tests for GET /booking/status and POST /booking/cancel"""

    @pytest.mark.asyncio
    async def test_status_reports_progress(self, client: AsyncClient):
        await start(client, "restaurant", "r1")
        await answer(client, "r1", "Delhi")

        response = await client.get("/booking/status/r1")

        assert response.status_code == 200
        data = response.json()
        assert data["exists"] is True
        assert data["serviceType"] == "restaurant"
        assert data["isComplete"] is False
        assert data["progress"] == "1/4"
        assert data["answers"] == {"city": "Delhi"}

    @pytest.mark.asyncio
    async def test_status_unknown_session(self, client: AsyncClient):
        response = await client.get("/booking/status/missing")

        assert response.status_code == 200
        assert response.json()["exists"] is False

    @pytest.mark.asyncio
    async def test_cancel(self, client: AsyncClient):
        await start(client, "cab", "c1")

        response = await client.post("/booking/cancel", json={"sessionId": "c1"})

        assert response.status_code == 200
        assert response.json()["cancelled"] is True
        assert (await client.get("/booking/status/c1")).json()["exists"] is False

        data = await answer(client, "c1", "Airport")
        assert data["errorCode"] == "SESSION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_cancel_unknown_session(self, client: AsyncClient):
        response = await client.post("/booking/cancel", json={"sessionId": "missing"})

        assert response.status_code == 200
        assert response.json()["cancelled"] is True


class TestBookingRecords:
    """Tests for /bookings"""

    async def _complete_hotel(self, client: AsyncClient) -> str:
        await start(client, "hotel", "h1")
        completed = None
        for text in HOTEL_ANSWERS:
            completed = await answer(client, "h1", text)
        return completed["bookingId"]

    @pytest.mark.asyncio
    async def test_list_bookings(self, client: AsyncClient):
        booking_id = await self._complete_hotel(client)

        response = await client.get("/bookings")

        assert response.status_code == 200
        bookings = response.json()["bookings"]
        assert len(bookings) == 1
        assert bookings[0]["id"] == booking_id
        assert bookings[0]["status"] == "PENDING"
        assert bookings[0]["serviceType"] == "hotel"

    @pytest.mark.asyncio
    async def test_confirm_booking(self, client: AsyncClient):
        booking_id = await self._complete_hotel(client)

        response = await client.post(f"/bookings/{booking_id}/confirm")

        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

    @pytest.mark.asyncio
    async def test_cancel_confirmed_booking_conflicts(self, client: AsyncClient):
        booking_id = await self._complete_hotel(client)
        await client.post(f"/bookings/{booking_id}/confirm")

        response = await client.post(f"/bookings/{booking_id}/cancel")

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_booking_is_404(self, client: AsyncClient):
        response = await client.post("/bookings/missing/confirm")
        assert response.status_code == 404
