"""
Tests for the BookingLedger.

These tests verify that:
1. Recorded bookings start PENDING and carry the booking reference
2. PENDING moves once to CONFIRMED or CANCELLED
3. Unknown ids and repeated transitions are rejected
"""

import pytest

from engine.bookings import BookingLedger, BookingStatus
from engine.errors import BookingNotFound, InvalidBookingTransition
from flows.specs import ServiceType


@pytest.fixture
def ledger():
    return BookingLedger()


@pytest.fixture
def booking(ledger):
    return ledger.record(ServiceType.CAB, {"booking_reference": "CAB_1", "route": "A → B"})


class TestRecord:

    def test_new_booking_is_pending(self, ledger, booking):
        assert booking.status == BookingStatus.PENDING
        assert booking.reference == "CAB_1"
        assert booking.service_type == ServiceType.CAB
        assert ledger.get(booking.id) is booking

    def test_ids_are_unique(self, ledger):
        first = ledger.record(ServiceType.HOTEL, {})
        second = ledger.record(ServiceType.HOTEL, {})
        assert first.id != second.id
        assert first.reference is None
        assert len(ledger.list_all()) == 2

    def test_unknown_booking(self, ledger):
        with pytest.raises(BookingNotFound) as exc_info:
            ledger.get("missing")
        assert exc_info.value.error_code == "BOOKING_NOT_FOUND"


class TestTransitions:

    def test_confirm(self, ledger, booking):
        assert ledger.confirm(booking.id).status == BookingStatus.CONFIRMED

    def test_cancel(self, ledger, booking):
        assert ledger.cancel(booking.id).status == BookingStatus.CANCELLED

    @pytest.mark.parametrize("first,second", [
        ("confirm", "confirm"),
        ("confirm", "cancel"),
        ("cancel", "confirm"),
        ("cancel", "cancel"),
    ])
    def test_terminal_states_are_final(self, ledger, booking, first, second):
        """CONFIRMED and CANCELLED accept no further transition."""
        getattr(ledger, first)(booking.id)
        status_before = booking.status

        with pytest.raises(InvalidBookingTransition):
            getattr(ledger, second)(booking.id)
        assert booking.status == status_before

    def test_transition_unknown_booking(self, ledger):
        with pytest.raises(BookingNotFound):
            ledger.cancel("missing")
