"""
Booking records created after a successful fulfillment.

A record starts PENDING and may move once, to CONFIRMED or CANCELLED.
Records are kept in process memory only.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from flows.specs import ServiceType
from .errors import BookingNotFound, InvalidBookingTransition

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: set(),
    BookingStatus.CANCELLED: set(),
}


@dataclass
class BookingRecord:
    id: str
    service_type: ServiceType
    details: Dict[str, Any]
    reference: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)


class BookingLedger:
    """In-memory bookkeeping of fulfilled bookings, keyed by booking id."""

    def __init__(self):
        self._records: Dict[str, BookingRecord] = {}

    def record(self, service_type: ServiceType, details: Dict[str, Any]) -> BookingRecord:
        booking = BookingRecord(
            id=uuid.uuid4().hex[:12],
            service_type=service_type,
            details=details,
            reference=details.get("booking_reference"),
        )
        self._records[booking.id] = booking
        logger.info(
            f"Booking recorded: id={booking.id} service={service_type.value} "
            f"reference={booking.reference}"
        )
        return booking

    def get(self, booking_id: str) -> BookingRecord:
        booking = self._records.get(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    def list_all(self) -> List[BookingRecord]:
        return list(self._records.values())

    def _transition(self, booking_id: str, target: BookingStatus) -> BookingRecord:
        booking = self.get(booking_id)
        if target not in ALLOWED_TRANSITIONS[booking.status]:
            raise InvalidBookingTransition(booking_id, booking.status.value, target.value)
        booking.status = target
        logger.info(f"Booking {target.value.lower()}: id={booking_id} reference={booking.reference}")
        return booking

    def confirm(self, booking_id: str) -> BookingRecord:
        return self._transition(booking_id, BookingStatus.CONFIRMED)

    def cancel(self, booking_id: str) -> BookingRecord:
        return self._transition(booking_id, BookingStatus.CANCELLED)
