"""
Fulfillment Agent - simulated booking lookups.

This agent:
1. Waits a configurable delay to stand in for provider latency
2. Applies per-service lookup logic against the static catalog
3. Stamps each offer with the collected answers
4. Issues a booking reference (<PREFIX>_<epoch ms>)

Faults inside a lookup are always reported as a failed FulfillmentResult,
never raised to the caller.
"""
import asyncio
import copy
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Optional

from flows.specs import ServiceType
from . import catalog

logger = logging.getLogger(__name__)

DEFAULT_API_DELAY_SECONDS = 0.5

REFERENCE_PREFIXES: Dict[ServiceType, str] = {
    ServiceType.TRAVEL: "TRV",
    ServiceType.CAB: "CAB",
    ServiceType.HOTEL: "HTL",
    ServiceType.RESTAURANT: "RST",
}

FAILURE_MESSAGES: Dict[ServiceType, str] = {
    ServiceType.TRAVEL: "Failed to process travel request",
    ServiceType.CAB: "Failed to process cab booking request",
    ServiceType.HOTEL: "Failed to process hotel booking request",
    ServiceType.RESTAURANT: "Failed to process restaurant booking request",
}


@dataclass
class FulfillmentResult:
    """Outcome of a single fulfillment call."""
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    details: Optional[str] = None

    @property
    def booking_reference(self) -> Optional[str]:
        return self.data.get("booking_reference")


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def calculate_stay_days(check_in: str, check_out: str) -> int:
    """Whole days between two YYYY-MM-DD dates, rounded up."""
    start = date.fromisoformat(check_in)
    end = date.fromisoformat(check_out)
    elapsed_seconds = abs((end - start).total_seconds())
    return math.ceil(elapsed_seconds / 86400)


class FulfillmentAgent:
    """Turns a completed answer set into offers and a booking reference."""

    def __init__(
        self,
        api_delay: float = DEFAULT_API_DELAY_SECONDS,
        clock: Callable[[], int] = _epoch_millis,
    ):
        """
        Args:
            api_delay: Simulated provider latency in seconds
            clock: Returns the current epoch time in milliseconds
        """
        self.api_delay = api_delay
        self.clock = clock
        self._handlers: Dict[ServiceType, Callable[[Dict[str, str]], Dict[str, Any]]] = {
            ServiceType.TRAVEL: self._travel,
            ServiceType.CAB: self._cab,
            ServiceType.HOTEL: self._hotel,
            ServiceType.RESTAURANT: self._restaurant,
        }

    def booking_reference(self, service_type: ServiceType) -> str:
        return f"{REFERENCE_PREFIXES[service_type]}_{self.clock()}"

    async def _simulate_api_call(self) -> None:
        if self.api_delay > 0:
            await asyncio.sleep(self.api_delay)

    async def fulfill(self, service_type: ServiceType, answers: Dict[str, str]) -> FulfillmentResult:
        """
        Run the simulated lookup for a completed session.

        Args:
            service_type: Which service the answers belong to
            answers: Normalized slot answers keyed by slot key

        Returns:
            FulfillmentResult; success=False carries the error text
        """
        handler = self._handlers.get(service_type)
        if handler is None:
            logger.warning(f"Fulfillment requested for unknown service type: {service_type}")
            return FulfillmentResult(success=False, error=f"Unknown service type: {service_type}")

        await self._simulate_api_call()

        try:
            data = handler(answers)
        except Exception as e:
            logger.error(
                f"Fulfillment failed: service={service_type.value} error={type(e).__name__}: {e}",
                exc_info=True,
            )
            return FulfillmentResult(
                success=False,
                error=FAILURE_MESSAGES[service_type],
                details=str(e) or type(e).__name__,
            )

        logger.info(
            f"Fulfillment succeeded: service={service_type.value} "
            f"reference={data.get('booking_reference')}"
        )
        return FulfillmentResult(success=True, data=data)

    # =========================================================================
    # PER-SERVICE LOOKUPS
    # =========================================================================

    def _travel(self, answers: Dict[str, str]) -> Dict[str, Any]:
        destination = answers["destination"]
        start_date = answers["start_date"]
        end_date = answers["end_date"]
        interests = answers["interests"]

        itinerary = next(
            (
                item for item in catalog.ITINERARIES
                if destination.lower() in item["destination"].lower()
            ),
            None,
        )
        if itinerary is None:
            itinerary = {
                "destination": destination,
                "days": catalog.GENERIC_ITINERARY_DAYS,
                "estimated_cost": catalog.GENERIC_ITINERARY_COST,
                "best_time": catalog.GENERIC_ITINERARY_BEST_TIME,
            }

        return {
            **copy.deepcopy(itinerary),
            "travel_dates": f"{start_date} to {end_date}",
            "interests": interests,
            "booking_reference": self.booking_reference(ServiceType.TRAVEL),
        }

    def _cab(self, answers: Dict[str, str]) -> Dict[str, Any]:
        pickup = answers["pickup"]
        drop = answers["drop"]
        scheduled_time = answers["time"]

        available_cabs = [
            {
                **cab,
                "pickup_location": pickup,
                "drop_location": drop,
                "scheduled_time": scheduled_time,
            }
            for cab in catalog.CABS
        ]

        return {
            "available_cabs": available_cabs,
            "booking_reference": self.booking_reference(ServiceType.CAB),
            "route": f"{pickup} → {drop}",
            "scheduled_time": scheduled_time,
        }

    def _hotel(self, answers: Dict[str, str]) -> Dict[str, Any]:
        city = answers["city"]
        check_in = answers["check_in"]
        check_out = answers["check_out"]
        guests = answers["guests"]

        hotels = [
            {
                **copy.deepcopy(hotel),
                "city": city,
                "check_in": check_in,
                "check_out": check_out,
                "guests": guests,
                "availability": "Available",
            }
            for hotel in catalog.HOTELS
        ]

        return {
            "hotels": hotels,
            "booking_reference": self.booking_reference(ServiceType.HOTEL),
            "stay_duration": calculate_stay_days(check_in, check_out),
            "city": city,
            "check_in": check_in,
            "check_out": check_out,
            "guests": guests,
        }

    def _restaurant(self, answers: Dict[str, str]) -> Dict[str, Any]:
        city = answers["city"]
        reservation_date = answers["date"]
        people = answers["people"]
        preference = answers["preference"]

        wants_vegetarian = "veg" in preference.lower()
        matches = [
            restaurant for restaurant in catalog.RESTAURANTS
            if not wants_vegetarian or "vegetarian" in restaurant["cuisine"].lower()
        ]

        restaurants = [
            {
                **restaurant,
                "city": city,
                "reservation_date": reservation_date,
                "party_size": people,
                "availability": "Available",
            }
            for restaurant in matches
        ]

        return {
            "restaurants": restaurants,
            "booking_reference": self.booking_reference(ServiceType.RESTAURANT),
            "reservation_date": reservation_date,
            "city": city,
            "preference": preference,
            "party_size": people,
        }


_fulfillment_agent: Optional[FulfillmentAgent] = None


def get_fulfillment_agent() -> FulfillmentAgent:
    """Get or create the shared FulfillmentAgent."""
    global _fulfillment_agent
    if _fulfillment_agent is None:
        _fulfillment_agent = FulfillmentAgent()
    return _fulfillment_agent
