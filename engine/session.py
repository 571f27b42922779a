"""
Session state and the in-memory session store.

This module is the SINGLE SOURCE OF TRUTH for slot-filling progress.
It uses the service flows to determine:
- Which slot is asked next
- Whether an answer is recorded or rejected
- When a session has collected every slot

Sessions live only in process memory. Answers on one session are serialized
by that session's lock; different sessions never share a lock.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple, Union

from flows.specs import ServiceType, SlotDefinition, definitions_for, parse_service_type
from .errors import DuplicateSession, SessionComplete, SessionNotFound, ValidationError
from .validate import validate_slot

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """In-memory state for a single booking conversation."""
    id: str
    service_type: ServiceType
    slots: Tuple[SlotDefinition, ...]

    # Normalized answers keyed by slot key, in slot order
    answers: Dict[str, str] = field(default_factory=dict)
    next_index: int = 0

    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    # Created on first answer, inside the running loop
    _lock: Optional[asyncio.Lock] = field(default=None, init=False, repr=False, compare=False)

    @property
    def lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def is_complete(self) -> bool:
        return self.next_index == len(self.slots)

    @property
    def progress(self) -> str:
        return f"{self.next_index}/{len(self.slots)}"

    @property
    def current_slot(self) -> Optional[SlotDefinition]:
        """The next unanswered slot, or None once every slot is answered."""
        if self.is_complete:
            return None
        return self.slots[self.next_index]


# =============================================================================
# ANSWER OUTCOMES
# =============================================================================

@dataclass
class SlotAccepted:
    """The answer was recorded and another slot remains."""
    key: str
    value: str
    next_prompt: str
    progress: str


@dataclass
class SlotRejected:
    """The answer failed validation; the same slot is still current."""
    key: str
    reason: str
    prompt: str
    progress: str


@dataclass
class SlotsCompleted:
    """The answer filled the last slot."""
    service_type: ServiceType
    answers: Dict[str, str]
    progress: str


AnswerOutcome = Union[SlotAccepted, SlotRejected, SlotsCompleted]


@dataclass
class SessionStatus:
    """Non-mutating snapshot of a session, safe to return for an unknown id."""
    exists: bool
    service_type: Optional[ServiceType] = None
    is_complete: Optional[bool] = None
    progress: Optional[str] = None
    answers: Optional[Dict[str, str]] = None


# =============================================================================
# SESSION STORE
# =============================================================================

class SessionStore:
    """Owns every live Session, keyed by session id."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def start(self, session_id: str, service_type: Union[str, ServiceType]) -> str:
        """
        Create a session and return the first prompt.

        Raises:
            DuplicateSession: If session_id already has a live session
            UnknownServiceType: If the service type is not catalogued
        """
        service = parse_service_type(service_type)
        slots = definitions_for(service)

        if session_id in self._sessions:
            raise DuplicateSession(session_id)

        session = Session(id=session_id, service_type=service, slots=slots)
        self._sessions[session_id] = session

        logger.info(f"Session started: id={session_id} service={service.value} slots={len(slots)}")
        return slots[0].prompt

    def get(self, session_id: str) -> Session:
        """
        Raises:
            SessionNotFound: If there is no live session for session_id
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def current_slot(self, session_id: str) -> SlotDefinition:
        """
        Raises:
            SessionNotFound: If there is no live session for session_id
            SessionComplete: If every slot is already answered
        """
        session = self.get(session_id)
        slot = session.current_slot
        if slot is None:
            raise SessionComplete(session_id)
        return slot

    async def answer(self, session_id: str, raw: str) -> AnswerOutcome:
        """
        Validate and record an answer for the current slot.

        A rejected answer leaves the session untouched, so the caller must
        re-ask the same prompt.

        Raises:
            SessionNotFound: If there is no live session (or it ended while waiting)
            SessionComplete: If every slot is already answered
        """
        session = self.get(session_id)
        async with session.lock:
            if not self.is_live(session_id, session):
                raise SessionNotFound(session_id)
            return self._apply_answer(session, raw)

    def _apply_answer(self, session: Session, raw: str) -> AnswerOutcome:
        slot = session.current_slot
        if slot is None:
            raise SessionComplete(session.id)

        try:
            value = validate_slot(raw, slot)
        except ValidationError as e:
            logger.info(
                f"Answer rejected: id={session.id} slot={slot.key} "
                f"reason={e.reason} progress={session.progress}"
            )
            return SlotRejected(
                key=slot.key,
                reason=e.reason,
                prompt=slot.prompt,
                progress=session.progress,
            )

        session.answers[slot.key] = value
        session.next_index += 1
        session.updated_at = datetime.utcnow()

        logger.info(f"Answer recorded: id={session.id} slot={slot.key} progress={session.progress}")

        if session.is_complete:
            return SlotsCompleted(
                service_type=session.service_type,
                answers=dict(session.answers),
                progress=session.progress,
            )

        return SlotAccepted(
            key=slot.key,
            value=value,
            next_prompt=session.current_slot.prompt,
            progress=session.progress,
        )

    def status(self, session_id: str) -> SessionStatus:
        """Introspect a session; reports exists=False instead of raising."""
        session = self._sessions.get(session_id)
        if session is None:
            return SessionStatus(exists=False)

        return SessionStatus(
            exists=True,
            service_type=session.service_type,
            is_complete=session.is_complete,
            progress=session.progress,
            answers=dict(session.answers),
        )

    def end(self, session_id: str) -> bool:
        """Remove a session. Idempotent; returns whether one was removed."""
        removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info(f"Session ended: id={session_id} progress={removed.progress}")
        return removed is not None

    def is_live(self, session_id: str, session: Session) -> bool:
        """True if session is still the stored session for session_id."""
        return self._sessions.get(session_id) is session
