"""
Booking engine error taxonomy.

Every error carries a stable ``error_code`` so the API layer can surface it
without string matching on messages.
"""
from typing import Any, Optional


class BookingEngineError(Exception):
    """Base class for all booking engine errors."""
    error_code = "BOOKING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownServiceType(BookingEngineError):
    error_code = "UNKNOWN_SERVICE_TYPE"

    def __init__(self, service_type: Any):
        self.service_type = service_type
        super().__init__(
            f"Unknown service type: {service_type}. "
            "Valid types: ['travel', 'cab', 'hotel', 'restaurant']"
        )


class DuplicateSession(BookingEngineError):
    error_code = "DUPLICATE_SESSION"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} already exists")


class SessionNotFound(BookingEngineError):
    error_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class SessionComplete(BookingEngineError):
    error_code = "SESSION_COMPLETE"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} already completed")


class ValidationError(BookingEngineError):
    """An answer failed its slot type check. Never advances the session."""
    error_code = "VALIDATION_ERROR"

    def __init__(self, reason: str, slot_key: Optional[str] = None):
        self.reason = reason
        self.slot_key = slot_key
        super().__init__(reason)


class BookingNotFound(BookingEngineError):
    error_code = "BOOKING_NOT_FOUND"

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class InvalidBookingTransition(BookingEngineError):
    error_code = "INVALID_BOOKING_TRANSITION"

    def __init__(self, booking_id: str, current: str, target: str):
        self.booking_id = booking_id
        self.current = current
        self.target = target
        super().__init__(
            f"Booking {booking_id} cannot move from {current} to {target}"
        )
