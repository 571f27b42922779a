"""
Booking endpoint handlers built on the engine orchestrator.

This module:
1. Owns the shared BookingOrchestrator (created on first use)
2. Converts engine outcome dataclasses into API response models
3. Keeps an idempotency cache for submitted answers
4. Keeps in-memory counters for monitoring

Handlers never raise for engine errors; every failure path is returned as an
ErrorResponse so the UI can keep polling and re-prompting.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from engine.bookings import BookingRecord
from engine.fulfillment import FulfillmentAgent
from engine.orchestrator import (
    AnswerRejected,
    BookingCompleted,
    BookingFailed,
    BookingOrchestrator,
    BookingRejected,
    BookingStarted,
    NextPrompt,
)
from engine.session import SessionStatus
from .config import get_settings
from .models import (
    BookingRecordResponse,
    CancelSessionRequest,
    CancelSessionResponse,
    CompletedResponse,
    ErrorResponse,
    NextPromptResponse,
    ServiceLabel,
    SessionStatusResponse,
    StartBookingRequest,
    StartBookingResponse,
    StartedResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    ValidationErrorResponse,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Internal Metrics Counters (for anomaly detection, not exposed via API)
# =============================================================================
class _BookingMetrics:
    """
    Simple in-memory counters for booking turns.

    Counters reset on server restart.
    """

    def __init__(self):
        self.total_turns = 0
        self.sessions_started = 0
        self.start_rejections = 0
        self.validation_failures = 0
        self.completions = 0
        self.fulfillment_failures = 0
        self.session_errors = 0
        self.cancellations = 0
        self.idempotency_hits = 0
        # Anomaly detection
        self.consecutive_validation_failures = 0

    def record_start(self, accepted: bool):
        if accepted:
            self.sessions_started += 1
        else:
            self.start_rejections += 1

    def record_answer(self, outcome: str):
        """Record metrics for a processed answer."""
        self.total_turns += 1

        if outcome == "VALIDATION_ERROR":
            self.validation_failures += 1
            self.consecutive_validation_failures += 1
            if self.consecutive_validation_failures >= 5:
                logger.warning(
                    f"[BOOKING-ANOMALY] consecutive_validation_failures="
                    f"{self.consecutive_validation_failures} (threshold=5)"
                )
            return

        self.consecutive_validation_failures = 0
        if outcome == "COMPLETED":
            self.completions += 1
        elif outcome == "FULFILLMENT_FAILED":
            self.fulfillment_failures += 1
        elif outcome == "ERROR":
            self.session_errors += 1

    def record_cancel(self):
        self.cancellations += 1

    def record_idempotency_hit(self):
        self.idempotency_hits += 1

    def log_summary(self):
        """Log a summary of current metrics."""
        if self.total_turns == 0:
            return

        validation_rate = (self.validation_failures / self.total_turns) * 100

        logger.info(
            f"[BOOKING-METRICS] "
            f"turns={self.total_turns} "
            f"started={self.sessions_started} "
            f"validation_rate={validation_rate:.1f}% "
            f"completed={self.completions} "
            f"fulfillment_failed={self.fulfillment_failures} "
            f"cancelled={self.cancellations} "
            f"idempotency_hits={self.idempotency_hits}"
        )


# Global metrics instance
_metrics = _BookingMetrics()


# Idempotency store for preventing duplicate answers
# Key: (sessionId, idempotencyKey), Value: (response, timestamp)
_IdempotencyKey = Tuple[str, str]
_idempotency_store: Dict[_IdempotencyKey, Tuple[SubmitAnswerResponse, datetime]] = {}
_IDEMPOTENCY_TTL = timedelta(minutes=5)


def _get_idempotent_response(key: _IdempotencyKey) -> Optional[SubmitAnswerResponse]:
    """Get cached response for a session's idempotency key if still valid."""
    if key in _idempotency_store:
        response, timestamp = _idempotency_store[key]
        if datetime.now() - timestamp < _IDEMPOTENCY_TTL:
            logger.info(f"Idempotency hit for sessionId={key[0]} key={key[1]}")
            return response
        else:
            del _idempotency_store[key]
    return None


def _store_idempotent_response(key: _IdempotencyKey, response: SubmitAnswerResponse) -> None:
    """Store response for idempotency."""
    _idempotency_store[key] = (response, datetime.now())
    # Cleanup old entries
    if len(_idempotency_store) > 1000:
        cutoff = datetime.now() - _IDEMPOTENCY_TTL
        keys_to_remove = [k for k, (_, ts) in _idempotency_store.items() if ts < cutoff]
        for k in keys_to_remove:
            del _idempotency_store[k]


# =============================================================================
# Orchestrator instance
# =============================================================================

_orchestrator: Optional[BookingOrchestrator] = None


def get_orchestrator() -> BookingOrchestrator:
    """Get or create the shared BookingOrchestrator from current settings."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = BookingOrchestrator(
            fulfillment_agent=FulfillmentAgent(api_delay=settings.fulfillment_delay_seconds),
            fulfillment_timeout=settings.fulfillment_timeout_seconds,
        )
        logger.info(
            f"BookingOrchestrator initialized: fulfillment_delay={settings.fulfillment_delay_seconds}s "
            f"fulfillment_timeout={settings.fulfillment_timeout_seconds}s"
        )
    return _orchestrator


def reset_orchestrator(orchestrator: Optional[BookingOrchestrator] = None) -> None:
    """Replace the shared orchestrator (tests, or reconfiguration at startup)."""
    global _orchestrator
    _orchestrator = orchestrator
    _idempotency_store.clear()


# =============================================================================
# Outcome conversion
# =============================================================================

def _to_start_response(outcome) -> StartBookingResponse:
    if isinstance(outcome, BookingStarted):
        return StartedResponse(
            sessionId=outcome.session_id,
            serviceType=ServiceLabel(outcome.service_type.value),
            firstPrompt=outcome.first_prompt,
            progress=outcome.progress,
        )
    if isinstance(outcome, BookingRejected):
        return ErrorResponse(errorCode=outcome.error_code, error=outcome.error)
    raise TypeError(f"Unexpected start outcome: {type(outcome).__name__}")


def _to_answer_response(outcome) -> SubmitAnswerResponse:
    if isinstance(outcome, NextPrompt):
        return NextPromptResponse(
            sessionId=outcome.session_id,
            nextPrompt=outcome.next_prompt,
            progress=outcome.progress,
        )
    if isinstance(outcome, AnswerRejected):
        return ValidationErrorResponse(
            sessionId=outcome.session_id,
            validationError=outcome.validation_error,
            repeatedPrompt=outcome.repeated_prompt,
            progress=outcome.progress,
        )
    if isinstance(outcome, BookingCompleted):
        return CompletedResponse(
            sessionId=outcome.session_id,
            serviceType=ServiceLabel(outcome.service_type.value),
            completedMessage=outcome.message,
            success=outcome.success,
            bookingReference=outcome.reference,
            bookingId=outcome.booking_id,
            data=outcome.data,
        )
    if isinstance(outcome, BookingFailed):
        return ErrorResponse(
            sessionId=outcome.session_id,
            errorCode=outcome.error_code,
            error=outcome.error,
        )
    raise TypeError(f"Unexpected answer outcome: {type(outcome).__name__}")


def to_status_response(status: SessionStatus) -> SessionStatusResponse:
    if not status.exists:
        return SessionStatusResponse(exists=False)
    return SessionStatusResponse(
        exists=True,
        serviceType=ServiceLabel(status.service_type.value),
        isComplete=status.is_complete,
        progress=status.progress,
        answers=status.answers,
    )


def to_booking_response(booking: BookingRecord) -> BookingRecordResponse:
    return BookingRecordResponse(
        id=booking.id,
        serviceType=ServiceLabel(booking.service_type.value),
        status=booking.status.value,
        reference=booking.reference,
        details=booking.details,
        createdAt=booking.created_at.isoformat(),
    )


# =============================================================================
# Handlers
# =============================================================================

def start_booking(request: StartBookingRequest) -> StartBookingResponse:
    logger.info(f"Booking start: service={request.serviceType!r} sessionId={request.sessionId}")

    try:
        outcome = get_orchestrator().start_booking(request.serviceType, request.sessionId)
        response = _to_start_response(outcome)
    except Exception as e:
        logger.error(f"Unexpected error starting booking: {e}", exc_info=True)
        return ErrorResponse(
            sessionId=request.sessionId,
            errorCode=INTERNAL_ERROR,
            error="I'm sorry, something went wrong. Please try again.",
        )

    _metrics.record_start(accepted=isinstance(response, StartedResponse))
    return response


async def submit_answer(request: SubmitAnswerRequest) -> SubmitAnswerResponse:
    answer_preview = request.answer[:50] + "..." if len(request.answer) > 50 else request.answer
    logger.info(f"Booking answer: sessionId={request.sessionId} answer='{answer_preview}'")

    if request.idempotencyKey:
        cached = _get_idempotent_response((request.sessionId, request.idempotencyKey))
        if cached is not None:
            _metrics.record_idempotency_hit()
            return cached

    # TOP-LEVEL EXCEPTION BARRIER: the UI always gets a structured response
    try:
        outcome = await get_orchestrator().submit_answer(request.sessionId, request.answer)
        response = _to_answer_response(outcome)
    except Exception as e:
        logger.error(
            f"METRIC booking_unexpected_error sessionId={request.sessionId} "
            f"error={type(e).__name__}",
            exc_info=True,
        )
        response = ErrorResponse(
            sessionId=request.sessionId,
            errorCode=INTERNAL_ERROR,
            error="I'm sorry, something went wrong. Please try again.",
        )

    if request.idempotencyKey:
        _store_idempotent_response((request.sessionId, request.idempotencyKey), response)

    if isinstance(response, CompletedResponse) and not response.success:
        _metrics.record_answer("FULFILLMENT_FAILED")
    else:
        _metrics.record_answer(response.outcome.value)

    # Log metrics summary every 100 turns
    if _metrics.total_turns % 100 == 0:
        _metrics.log_summary()

    return response


def get_status(session_id: str) -> SessionStatusResponse:
    return to_status_response(get_orchestrator().get_status(session_id))


def cancel_session(request: CancelSessionRequest) -> CancelSessionResponse:
    get_orchestrator().cancel(request.sessionId)
    _metrics.record_cancel()
    return CancelSessionResponse(cancelled=True)
