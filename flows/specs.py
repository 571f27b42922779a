"""
ServiceType and SlotDefinition declarations.

This module defines the declarative slot flow for each bookable service.
The session store and orchestrator use these flows to drive the conversation
deterministically, without per-service branching logic.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple, Union

from engine.errors import UnknownServiceType


class ServiceType(str, Enum):
    """Bookable service categories."""
    TRAVEL = "travel"
    CAB = "cab"
    HOTEL = "hotel"
    RESTAURANT = "restaurant"


class SlotType(str, Enum):
    """Value types a slot answer is validated against."""
    STRING = "string"
    DATE = "date"
    DATETIME = "datetime"
    NUMBER = "number"


@dataclass(frozen=True)
class SlotDefinition:
    """
    Specification for a single slot to collect.

    Attributes:
        key: The slot key (e.g., "check_in", "guests"), unique within a flow
        prompt: The question shown to the user for this slot
        slot_type: The type the raw answer is validated against
    """
    key: str
    prompt: str
    slot_type: SlotType


# =============================================================================
# SLOT FLOWS
# =============================================================================

TRAVEL_SLOTS: Tuple[SlotDefinition, ...] = (
    SlotDefinition(
        key="destination",
        prompt="Where would you like to travel?",
        slot_type=SlotType.STRING,
    ),
    SlotDefinition(
        key="start_date",
        prompt="When would you like to start your trip? (YYYY-MM-DD)",
        slot_type=SlotType.DATE,
    ),
    SlotDefinition(
        key="end_date",
        prompt="When would you like to end your trip? (YYYY-MM-DD)",
        slot_type=SlotType.DATE,
    ),
    SlotDefinition(
        key="interests",
        prompt="What are your main interests? (e.g., culture, adventure, food, history)",
        slot_type=SlotType.STRING,
    ),
)


CAB_SLOTS: Tuple[SlotDefinition, ...] = (
    SlotDefinition(
        key="pickup",
        prompt="What is your pickup location?",
        slot_type=SlotType.STRING,
    ),
    SlotDefinition(
        key="drop",
        prompt="What is your destination?",
        slot_type=SlotType.STRING,
    ),
    SlotDefinition(
        key="time",
        prompt="When do you need the cab? (YYYY-MM-DD HH:MM)",
        slot_type=SlotType.DATETIME,
    ),
)


HOTEL_SLOTS: Tuple[SlotDefinition, ...] = (
    SlotDefinition(
        key="city",
        prompt="Which city are you looking for accommodation in?",
        slot_type=SlotType.STRING,
    ),
    SlotDefinition(
        key="check_in",
        prompt="Check-in date? (YYYY-MM-DD)",
        slot_type=SlotType.DATE,
    ),
    SlotDefinition(
        key="check_out",
        prompt="Check-out date? (YYYY-MM-DD)",
        slot_type=SlotType.DATE,
    ),
    SlotDefinition(
        key="guests",
        prompt="How many guests?",
        slot_type=SlotType.NUMBER,
    ),
)


RESTAURANT_SLOTS: Tuple[SlotDefinition, ...] = (
    SlotDefinition(
        key="city",
        prompt="Which city are you looking for restaurants in?",
        slot_type=SlotType.STRING,
    ),
    SlotDefinition(
        key="date",
        prompt="What date do you want to dine? (YYYY-MM-DD)",
        slot_type=SlotType.DATE,
    ),
    SlotDefinition(
        key="people",
        prompt="How many people will be dining?",
        slot_type=SlotType.NUMBER,
    ),
    SlotDefinition(
        key="preference",
        prompt="Do you prefer vegetarian or non-vegetarian food?",
        slot_type=SlotType.STRING,
    ),
)


# =============================================================================
# REGISTRY
# =============================================================================

FLOWS: Dict[ServiceType, Tuple[SlotDefinition, ...]] = {
    ServiceType.TRAVEL: TRAVEL_SLOTS,
    ServiceType.CAB: CAB_SLOTS,
    ServiceType.HOTEL: HOTEL_SLOTS,
    ServiceType.RESTAURANT: RESTAURANT_SLOTS,
}


def parse_service_type(label: Union[str, ServiceType]) -> ServiceType:
    """
    Resolve a service label ("hotel", " Hotel ") to a ServiceType.

    Raises:
        UnknownServiceType: If the label does not name a catalogued service.
    """
    if isinstance(label, ServiceType):
        return label
    normalized = (label or "").strip().lower() if isinstance(label, str) else ""
    try:
        return ServiceType(normalized)
    except ValueError:
        raise UnknownServiceType(label) from None


def definitions_for(service_type: Union[str, ServiceType]) -> Tuple[SlotDefinition, ...]:
    """
    Get the ordered slot flow for a given service type.

    Raises:
        UnknownServiceType: If the service type is not found in the registry.
    """
    service = parse_service_type(service_type)
    slots = FLOWS.get(service)
    if slots is None:
        raise UnknownServiceType(service_type)
    return slots


def available_services() -> List[ServiceType]:
    """Services in catalog order."""
    return list(FLOWS.keys())
