"""
Booking Assistant Backend - FastAPI Application

The backend is the SOLE authority for the booking flow: which question comes
next, whether an answer is valid, and what the final message says. The UI
only renders prompts and forwards raw answers.

Python 3.9 compatible.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from engine.errors import BookingNotFound, InvalidBookingTransition
from . import booking_api
from .config import APP_VERSION, get_settings
from .models import (
    BookingListResponse,
    BookingRecordResponse,
    CancelSessionRequest,
    CancelSessionResponse,
    ServiceLabel,
    ServicesResponse,
    SessionStatusResponse,
    StartBookingRequest,
    StartBookingResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)

# Load environment variables from the project .env, falling back to cwd
env_paths = [
    Path(__file__).parent.parent / ".env",  # project root .env
    Path.cwd() / ".env",  # current working directory
]
for env_path in env_paths:
    if env_path.exists():
        load_dotenv(env_path)
        break
else:
    load_dotenv()  # fallback to default behavior

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - initialize the booking engine."""
    logger.info("=" * 60)
    logger.info("Initializing Booking Assistant Backend")
    logger.info("=" * 60)

    logger.info(f"FULFILLMENT_DELAY_MS: {settings.fulfillment_delay_seconds * 1000:g}")
    logger.info(f"FULFILLMENT_TIMEOUT_SECONDS: {settings.fulfillment_timeout_seconds:g}")

    booking_api.get_orchestrator()
    logger.info("Booking orchestrator initialized successfully")

    logger.info("=" * 60)

    yield

    # Shutdown
    booking_api._metrics.log_summary()
    logger.info("Shutting down Booking Assistant Backend")


app = FastAPI(
    title="Booking Assistant Backend",
    description="Slot-filling booking engine for travel, cab, hotel and restaurant requests",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": APP_VERSION}


@app.get("/services", response_model=ServicesResponse)
async def list_services() -> ServicesResponse:
    """Service types a booking can be started for."""
    services = booking_api.get_orchestrator().available_services()
    return ServicesResponse(services=[ServiceLabel(s.value) for s in services])


# ============================================================
# Booking session endpoints
# ============================================================

@app.post("/booking/start", response_model=StartBookingResponse)
async def booking_start(request: StartBookingRequest) -> StartBookingResponse:
    """
    Start a booking session and return the first prompt.

    Unknown service types and duplicate session ids come back as an ERROR
    outcome (HTTP 200), distinct from answer validation errors.
    """
    return booking_api.start_booking(request)


@app.post("/booking/answer", response_model=SubmitAnswerResponse)
async def booking_answer(request: SubmitAnswerRequest) -> SubmitAnswerResponse:
    """
    Submit the answer to the current prompt.

    Outcomes:
    - NEXT_PROMPT: answer recorded, ask nextPrompt
    - VALIDATION_ERROR: answer rejected, show validationError with repeatedPrompt
    - COMPLETED: last answer recorded, completedMessage is the final response
    - ERROR: the session cannot take answers (unknown, completed, cancelled)
    """
    return await booking_api.submit_answer(request)


@app.get("/booking/status/{session_id}", response_model=SessionStatusResponse)
async def booking_status(session_id: str) -> SessionStatusResponse:
    """Poll a session. Unknown ids report exists=false rather than 404."""
    return booking_api.get_status(session_id)


@app.post("/booking/cancel", response_model=CancelSessionResponse)
async def booking_cancel(request: CancelSessionRequest) -> CancelSessionResponse:
    """Cancel a session. Always succeeds."""
    return booking_api.cancel_session(request)


# ============================================================
# Booking record endpoints
# ============================================================

@app.get("/bookings", response_model=BookingListResponse)
async def list_bookings() -> BookingListResponse:
    bookings = booking_api.get_orchestrator().list_bookings()
    return BookingListResponse(bookings=[booking_api.to_booking_response(b) for b in bookings])


@app.post("/bookings/{booking_id}/confirm", response_model=BookingRecordResponse)
async def confirm_booking(booking_id: str) -> BookingRecordResponse:
    try:
        booking = booking_api.get_orchestrator().confirm_booking(booking_id)
    except BookingNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except InvalidBookingTransition as e:
        raise HTTPException(status_code=409, detail=e.message)
    return booking_api.to_booking_response(booking)


@app.post("/bookings/{booking_id}/cancel", response_model=BookingRecordResponse)
async def cancel_booking(booking_id: str) -> BookingRecordResponse:
    try:
        booking = booking_api.get_orchestrator().cancel_booking(booking_id)
    except BookingNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except InvalidBookingTransition as e:
        raise HTTPException(status_code=409, detail=e.message)
    return booking_api.to_booking_response(booking)
