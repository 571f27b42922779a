"""
Booking orchestrator - the single entry point for callers.

Coordinates the slot flow, validation, fulfillment and message composition:
1. start_booking creates a session and returns the first prompt
2. submit_answer validates and records one answer
3. When the last slot is filled, fulfillment runs, the result is composed
   into a message, and the session is discarded
4. cancel discards a session immediately, without waiting on fulfillment

Every operation returns one of a closed set of outcome dataclasses; session
and validation errors never escape as exceptions.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from flows.specs import ServiceType, available_services, parse_service_type
from .bookings import BookingLedger, BookingRecord
from .errors import (
    DuplicateSession,
    SessionComplete,
    SessionNotFound,
    UnknownServiceType,
)
from .fulfillment import FulfillmentAgent, FulfillmentResult, get_fulfillment_agent
from .messages import compose
from .session import (
    SessionStatus,
    SessionStore,
    SlotAccepted,
    SlotRejected,
)

logger = logging.getLogger(__name__)

DEFAULT_FULFILLMENT_TIMEOUT_SECONDS = 10.0

SESSION_CANCELLED = "SESSION_CANCELLED"


# =============================================================================
# OUTCOMES
# =============================================================================

@dataclass
class BookingStarted:
    session_id: str
    service_type: ServiceType
    first_prompt: str
    progress: str


@dataclass
class BookingRejected:
    """start_booking could not create a session."""
    error_code: str
    error: str


@dataclass
class NextPrompt:
    session_id: str
    next_prompt: str
    progress: str


@dataclass
class AnswerRejected:
    """The answer failed validation; repeated_prompt is the unchanged question."""
    session_id: str
    validation_error: str
    repeated_prompt: str
    progress: str


@dataclass
class BookingCompleted:
    """
    Final response for a session. success=False still carries a composed
    message describing the fulfillment failure.
    """
    session_id: str
    service_type: ServiceType
    message: str
    success: bool
    reference: Optional[str] = None
    booking_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BookingFailed:
    """submit_answer could not be applied to the session."""
    session_id: str
    error_code: str
    error: str


StartOutcome = Union[BookingStarted, BookingRejected]
AnswerOutcome = Union[NextPrompt, AnswerRejected, BookingCompleted, BookingFailed]


def _log_turn_summary(session_id: str, outcome: str, progress: Optional[str] = None) -> None:
    logger.info(
        "[BOOKING-SUMMARY] "
        f"id={session_id} "
        f"outcome={outcome} "
        f"progress={progress or 'none'}"
    )


class BookingOrchestrator:
    """Coordinates sessions, fulfillment, messages and booking records."""

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        fulfillment_agent: Optional[FulfillmentAgent] = None,
        ledger: Optional[BookingLedger] = None,
        fulfillment_timeout: float = DEFAULT_FULFILLMENT_TIMEOUT_SECONDS,
    ):
        self.store = store if store is not None else SessionStore()
        self.fulfillment_agent = fulfillment_agent if fulfillment_agent is not None else get_fulfillment_agent()
        self.ledger = ledger if ledger is not None else BookingLedger()
        self.fulfillment_timeout = fulfillment_timeout

    def start_booking(
        self,
        service_label: Union[str, ServiceType],
        session_id: Optional[str] = None,
    ) -> StartOutcome:
        """
        Start a booking session.

        Args:
            service_label: "travel", "cab", "hotel" or "restaurant"
            session_id: Caller-supplied id; a new one is generated when omitted

        Returns:
            BookingStarted with the first prompt, or BookingRejected
        """
        session_id = session_id or uuid.uuid4().hex

        try:
            service = parse_service_type(service_label)
            first_prompt = self.store.start(session_id, service)
        except (UnknownServiceType, DuplicateSession) as e:
            logger.warning(f"Booking start rejected: id={session_id} code={e.error_code} error={e.message}")
            return BookingRejected(error_code=e.error_code, error=e.message)

        progress = self.store.status(session_id).progress
        _log_turn_summary(session_id, "STARTED", progress)
        return BookingStarted(
            session_id=session_id,
            service_type=service,
            first_prompt=first_prompt,
            progress=progress,
        )

    async def submit_answer(self, session_id: str, raw: str) -> AnswerOutcome:
        """
        Apply one answer to a session.

        Returns:
            NextPrompt when another slot remains, AnswerRejected on a
            validation failure, BookingCompleted once fulfillment has run,
            or BookingFailed when the session cannot accept the answer
        """
        try:
            session = self.store.get(session_id)
            outcome = await self.store.answer(session_id, raw)
        except (SessionNotFound, SessionComplete) as e:
            logger.warning(f"Answer not applied: id={session_id} code={e.error_code}")
            _log_turn_summary(session_id, e.error_code)
            return BookingFailed(session_id=session_id, error_code=e.error_code, error=e.message)

        if isinstance(outcome, SlotRejected):
            _log_turn_summary(session_id, "VALIDATION_ERROR", outcome.progress)
            return AnswerRejected(
                session_id=session_id,
                validation_error=outcome.reason,
                repeated_prompt=outcome.prompt,
                progress=outcome.progress,
            )

        if isinstance(outcome, SlotAccepted):
            _log_turn_summary(session_id, "NEXT_PROMPT", outcome.progress)
            return NextPrompt(
                session_id=session_id,
                next_prompt=outcome.next_prompt,
                progress=outcome.progress,
            )

        # Every slot is filled
        result = await self._run_fulfillment(outcome.service_type, outcome.answers)

        if not self.store.is_live(session_id, session):
            logger.info(
                f"Discarding fulfillment result for cancelled session: id={session_id} "
                f"success={result.success}"
            )
            _log_turn_summary(session_id, SESSION_CANCELLED)
            return BookingFailed(
                session_id=session_id,
                error_code=SESSION_CANCELLED,
                error=f"Session {session_id} was cancelled before fulfillment finished",
            )

        message = compose(outcome.service_type, result)

        booking: Optional[BookingRecord] = None
        if result.success:
            booking = self.ledger.record(outcome.service_type, result.data)

        self.store.end(session_id)
        _log_turn_summary(session_id, "COMPLETED" if result.success else "FULFILLMENT_FAILED", outcome.progress)

        return BookingCompleted(
            session_id=session_id,
            service_type=outcome.service_type,
            message=message,
            success=result.success,
            reference=result.booking_reference,
            booking_id=booking.id if booking else None,
            data=result.data,
        )

    async def _run_fulfillment(self, service_type: ServiceType, answers: Dict[str, str]) -> FulfillmentResult:
        """Run fulfillment under a deadline; any fault becomes a failed result."""
        try:
            return await asyncio.wait_for(
                self.fulfillment_agent.fulfill(service_type, answers),
                timeout=self.fulfillment_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Fulfillment timed out: service={service_type.value} "
                f"timeout={self.fulfillment_timeout}s"
            )
            return FulfillmentResult(
                success=False,
                error="Booking provider did not respond in time",
                details=f"no response within {self.fulfillment_timeout:g}s",
            )
        except Exception as e:
            logger.error(
                f"Fulfillment raised unexpectedly: service={service_type.value} "
                f"error={type(e).__name__}",
                exc_info=True,
            )
            return FulfillmentResult(success=False, error="Unexpected fulfillment error", details=str(e))

    def get_status(self, session_id: str) -> SessionStatus:
        return self.store.status(session_id)

    def cancel(self, session_id: str) -> None:
        """Discard a session. Always succeeds, even for unknown ids."""
        removed = self.store.end(session_id)
        _log_turn_summary(session_id, "CANCELLED" if removed else "CANCEL_NOOP")

    # =========================================================================
    # BOOKING RECORDS
    # =========================================================================

    def available_services(self) -> List[ServiceType]:
        return available_services()

    def list_bookings(self) -> List[BookingRecord]:
        return self.ledger.list_all()

    def confirm_booking(self, booking_id: str) -> BookingRecord:
        """
        Raises:
            BookingNotFound: Unknown booking id
            InvalidBookingTransition: Booking is no longer PENDING
        """
        return self.ledger.confirm(booking_id)

    def cancel_booking(self, booking_id: str) -> BookingRecord:
        """
        Raises:
            BookingNotFound: Unknown booking id
            InvalidBookingTransition: Booking is no longer PENDING
        """
        return self.ledger.cancel(booking_id)
