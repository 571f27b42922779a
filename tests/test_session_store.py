"""
Tests for Session and SessionStore.

These tests verify that:
1. start() creates a session at 0/n and returns the first prompt
2. A valid answer advances progress by exactly one slot
3. An invalid answer leaves the session untouched and repeats the prompt
4. Completion happens exactly once, after which answers are refused
5. status() soft-fails for unknown ids and end() is idempotent
6. Sessions never leak answers into each other
"""

import asyncio

import pytest

from engine.errors import (
    DuplicateSession,
    SessionComplete,
    SessionNotFound,
    UnknownServiceType,
)
from engine.session import (
    SessionStore,
    SlotAccepted,
    SlotRejected,
    SlotsCompleted,
)
from flows.specs import ServiceType, definitions_for


HOTEL_ANSWERS = ["Mumbai", "2024-06-15", "2024-06-17", "2"]


@pytest.fixture
def store():
    return SessionStore()


class TestStart:

    def test_start_returns_first_prompt(self, store):
        prompt = store.start("s1", "hotel")
        assert prompt == definitions_for("hotel")[0].prompt

        status = store.status("s1")
        assert status.exists is True
        assert status.service_type == ServiceType.HOTEL
        assert status.is_complete is False
        assert status.progress == "0/4"
        assert status.answers == {}

    def test_duplicate_session_rejected(self, store):
        store.start("s1", "hotel")
        with pytest.raises(DuplicateSession):
            store.start("s1", "cab")
        # Original session untouched
        assert store.status("s1").service_type == ServiceType.HOTEL

    def test_unknown_service_rejected(self, store):
        with pytest.raises(UnknownServiceType):
            store.start("s1", "flight")
        assert "s1" not in store

    def test_current_slot_starts_at_first(self, store):
        store.start("s1", "cab")
        assert store.current_slot("s1").key == "pickup"

    def test_current_slot_unknown_session(self, store):
        with pytest.raises(SessionNotFound):
            store.current_slot("missing")


class TestAnswer:

    @pytest.mark.asyncio
    async def test_valid_answer_advances_progress(self, store):
        """A valid first answer moves progress from 0/n to 1/n."""
        store.start("s1", "hotel")

        outcome = await store.answer("s1", "Mumbai")

        assert isinstance(outcome, SlotAccepted)
        assert outcome.key == "city"
        assert outcome.value == "Mumbai"
        assert outcome.next_prompt.startswith("Check-in date?")
        assert outcome.progress == "1/4"
        assert store.status("s1").progress == "1/4"

    @pytest.mark.asyncio
    async def test_invalid_answer_does_not_mutate(self, store):
        """An invalid date leaves progress unchanged and repeats the prompt."""
        store.start("s1", "hotel")
        await store.answer("s1", "Mumbai")
        prompt_before = store.current_slot("s1").prompt

        outcome = await store.answer("s1", "2024-13-40")

        assert isinstance(outcome, SlotRejected)
        assert outcome.key == "check_in"
        assert outcome.reason == "invalid date"
        assert outcome.prompt == prompt_before
        assert outcome.progress == "1/4"

        status = store.status("s1")
        assert status.progress == "1/4"
        assert status.answers == {"city": "Mumbai"}
        assert store.current_slot("s1").prompt == prompt_before

    @pytest.mark.asyncio
    async def test_invalid_datetime_does_not_mutate(self, store):
        store.start("s1", "cab")
        await store.answer("s1", "Mumbai Airport")
        await store.answer("s1", "Bandra West")

        outcome = await store.answer("s1", "2024-06-15 25:00")

        assert isinstance(outcome, SlotRejected)
        assert outcome.reason == "hour out of range"
        assert store.status("s1").progress == "2/3"

    @pytest.mark.asyncio
    async def test_blank_string_rejected(self, store):
        store.start("s1", "travel")
        outcome = await store.answer("s1", "   ")
        assert isinstance(outcome, SlotRejected)
        assert outcome.reason == "response required"
        assert store.status("s1").progress == "0/4"

    @pytest.mark.asyncio
    async def test_full_round_trip_completes_once(self, store):
        """All n valid answers complete the session exactly once."""
        store.start("s1", "hotel")

        outcomes = []
        for raw in HOTEL_ANSWERS:
            outcomes.append(await store.answer("s1", raw))

        completed = [o for o in outcomes if isinstance(o, SlotsCompleted)]
        assert len(completed) == 1
        assert outcomes[-1] is completed[0]
        assert completed[0].service_type == ServiceType.HOTEL
        assert completed[0].answers == {
            "city": "Mumbai",
            "check_in": "2024-06-15",
            "check_out": "2024-06-17",
            "guests": "2",
        }
        assert completed[0].progress == "4/4"
        assert store.status("s1").is_complete is True

        with pytest.raises(SessionComplete):
            await store.answer("s1", "3")
        with pytest.raises(SessionComplete):
            store.current_slot("s1")

    @pytest.mark.asyncio
    async def test_answers_keep_slot_order(self, store):
        store.start("s1", "restaurant")
        for raw in ["Delhi", "2024-06-15", "4"]:
            await store.answer("s1", raw)
        assert list(store.status("s1").answers.keys()) == ["city", "date", "people"]

    @pytest.mark.asyncio
    async def test_answer_unknown_session(self, store):
        with pytest.raises(SessionNotFound):
            await store.answer("missing", "Mumbai")

    @pytest.mark.asyncio
    async def test_answer_count_matches_index(self, store):
        """len(answers) == next_index after every call, valid or not."""
        store.start("s1", "hotel")
        session = store.get("s1")
        for raw in ["Mumbai", "bad", "2024-06-15", "2024-02-30", "2024-06-17", "two", "2"]:
            await store.answer("s1", raw)
            assert len(session.answers) == session.next_index


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_same_session_answers_processed_in_order(self, store):
        """Concurrent answers to one session are applied in submission order."""
        store.start("s1", "hotel")

        first, second = await asyncio.gather(
            store.answer("s1", "Mumbai"),
            store.answer("s1", "2024-06-15"),
        )

        assert isinstance(first, SlotAccepted) and first.key == "city"
        assert isinstance(second, SlotAccepted) and second.key == "check_in"
        assert store.status("s1").answers == {"city": "Mumbai", "check_in": "2024-06-15"}

    @pytest.mark.asyncio
    async def test_interleaved_sessions_do_not_leak(self, store):
        """Answering session A never changes session B."""
        store.start("a", "hotel")
        store.start("b", "hotel")

        await store.answer("a", "Mumbai")
        await store.answer("b", "Pune")
        await store.answer("a", "2024-06-15")
        await store.answer("b", "not a date")

        assert store.status("a").answers == {"city": "Mumbai", "check_in": "2024-06-15"}
        assert store.status("b").answers == {"city": "Pune"}
        assert store.status("a").progress == "2/4"
        assert store.status("b").progress == "1/4"

    @pytest.mark.asyncio
    async def test_answer_waiting_on_ended_session_is_refused(self, store):
        """An answer queued behind the lock sees the session was ended."""
        store.start("s1", "hotel")
        session = store.get("s1")

        await session.lock.acquire()
        pending = asyncio.ensure_future(store.answer("s1", "Mumbai"))
        await asyncio.sleep(0)
        store.end("s1")
        session.lock.release()

        with pytest.raises(SessionNotFound):
            await pending
        assert session.answers == {}


    def test_session_started_outside_event_loop(self, store):
        """A session created before any loop runs still serializes answers."""
        store.start("s1", "hotel")
        assert store.get("s1")._lock is None

        async def answer_twice():
            return await asyncio.gather(
                store.answer("s1", "Mumbai"),
                store.answer("s1", "2024-06-15"),
            )

        first, second = asyncio.run(answer_twice())

        assert first.key == "city"
        assert second.key == "check_in"
        assert store.status("s1").progress == "2/4"


class TestStatusAndEnd:

    def test_status_unknown_session(self, store):
        """Unknown ids report exists=False instead of raising."""
        status = store.status("missing")
        assert status.exists is False
        assert status.service_type is None
        assert status.progress is None

    def test_status_answers_are_a_copy(self, store):
        store.start("s1", "hotel")
        store.status("s1").answers["city"] = "tampered"
        assert store.status("s1").answers == {}

    def test_end_is_idempotent(self, store):
        store.start("s1", "hotel")
        assert store.end("s1") is True
        assert store.end("s1") is False
        assert store.status("s1").exists is False
        assert len(store) == 0

    def test_id_reusable_after_end(self, store):
        store.start("s1", "hotel")
        store.end("s1")
        assert store.start("s1", "cab") == definitions_for("cab")[0].prompt
