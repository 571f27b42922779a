"""
Pydantic models for the Booking API.
Python 3.9 compatible - uses typing.List, typing.Dict, typing.Optional
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class ServiceLabel(str, Enum):
    travel = "travel"
    cab = "cab"
    hotel = "hotel"
    restaurant = "restaurant"


class Outcome(str, Enum):
    STARTED = "STARTED"
    NEXT_PROMPT = "NEXT_PROMPT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


# ============================================================
# Session requests
# ============================================================

class StartBookingRequest(BaseModel):
    serviceType: str  # "travel" | "cab" | "hotel" | "restaurant"
    sessionId: Optional[str] = None  # Generated when omitted


class SubmitAnswerRequest(BaseModel):
    sessionId: str
    answer: str
    # Idempotency key to prevent a double-submitted answer advancing twice
    idempotencyKey: Optional[str] = None


class CancelSessionRequest(BaseModel):
    sessionId: str


# ============================================================
# Session responses (one model per outcome)
# ============================================================

class StartedResponse(BaseModel):
    outcome: Literal[Outcome.STARTED] = Outcome.STARTED
    sessionId: str
    serviceType: ServiceLabel
    firstPrompt: str
    progress: str


class NextPromptResponse(BaseModel):
    outcome: Literal[Outcome.NEXT_PROMPT] = Outcome.NEXT_PROMPT
    sessionId: str
    nextPrompt: str
    progress: str


class ValidationErrorResponse(BaseModel):
    outcome: Literal[Outcome.VALIDATION_ERROR] = Outcome.VALIDATION_ERROR
    sessionId: str
    validationError: str
    repeatedPrompt: str  # The unchanged question to show again
    progress: str


class CompletedResponse(BaseModel):
    outcome: Literal[Outcome.COMPLETED] = Outcome.COMPLETED
    sessionId: str
    serviceType: ServiceLabel
    completedMessage: str
    success: bool  # False when fulfillment failed; message explains why
    bookingReference: Optional[str] = None
    bookingId: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    outcome: Literal[Outcome.ERROR] = Outcome.ERROR
    sessionId: Optional[str] = None
    errorCode: str  # UNKNOWN_SERVICE_TYPE, DUPLICATE_SESSION, SESSION_NOT_FOUND, ...
    error: str


StartBookingResponse = Union[StartedResponse, ErrorResponse]
SubmitAnswerResponse = Union[NextPromptResponse, ValidationErrorResponse, CompletedResponse, ErrorResponse]


class SessionStatusResponse(BaseModel):
    exists: bool
    serviceType: Optional[ServiceLabel] = None
    isComplete: Optional[bool] = None
    progress: Optional[str] = None  # "<answered>/<total>"
    answers: Optional[Dict[str, str]] = None


class CancelSessionResponse(BaseModel):
    cancelled: bool = True


class ServicesResponse(BaseModel):
    services: List[ServiceLabel]


# ============================================================
# Booking record models
# ============================================================

class BookingRecordResponse(BaseModel):
    id: str
    serviceType: ServiceLabel
    status: str  # PENDING, CONFIRMED, CANCELLED
    reference: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    createdAt: str


class BookingListResponse(BaseModel):
    bookings: List[BookingRecordResponse]
