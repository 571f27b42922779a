"""
User-facing message composition for fulfillment results.

Each service has a success template that enumerates the offers plus the
booking reference, and an error template. A service without a template, or a
template that cannot be rendered from the result data, falls back to a generic
phrase instead of failing.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Union

from flows.specs import ServiceType
from .fulfillment import FulfillmentResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageTemplate:
    success: Callable[[Dict[str, Any]], str]
    error: Callable[[str], str]


def _travel_success(data: Dict[str, Any]) -> str:
    lines: List[str] = [
        f"🎉 Great! I've found an amazing itinerary for {data['destination']}!",
        "",
        f"📅 Travel Dates: {data['travel_dates']}",
        f"💰 Estimated Cost: ${data['estimated_cost']}",
        f"🎯 Based on your interests: {data['interests']}",
        f"📋 Booking Reference: {data['booking_reference']}",
        "",
        "Here's your day-by-day plan:",
    ]
    lines.extend(
        f"Day {day['day']}: {', '.join(day['activities'])}" for day in data["days"]
    )
    return "\n".join(lines)


def _cab_success(data: Dict[str, Any]) -> str:
    lines: List[str] = [
        "🚗 Great! I found available cabs for your trip!",
        "",
        f"📍 Route: {data['route']}",
        f"⏰ Scheduled Time: {data['scheduled_time']}",
        f"📋 Booking Reference: {data['booking_reference']}",
        "",
        "Available Options:",
    ]
    lines.extend(
        f"🚙 {cab['car']} - Driver: {cab['driver']} | ETA: {cab['eta']} mins | "
        f"Fare: ₹{cab['fare']} | Rating: {cab['rating']}⭐"
        for cab in data["available_cabs"]
    )
    return "\n".join(lines)


def _hotel_success(data: Dict[str, Any]) -> str:
    nights = data["stay_duration"]
    lines: List[str] = [
        f"🏨 Excellent! I found great hotel options in {data['city']}!",
        "",
        f"📅 Check-in: {data['check_in']} | Check-out: {data['check_out']}",
        f"🛏️ Stay Duration: {nights} day{'s' if nights != 1 else ''}",
        f"👥 Guests: {data['guests']}",
        f"📋 Booking Reference: {data['booking_reference']}",
        "",
        "Available Hotels:",
    ]
    lines.extend(
        f"🏨 {hotel['name']} | {hotel['rating']}⭐ | ₹{hotel['price']}/night | "
        f"Amenities: {', '.join(hotel['amenities'])}"
        for hotel in data["hotels"]
    )
    return "\n".join(lines)


def _restaurant_success(data: Dict[str, Any]) -> str:
    lines: List[str] = [
        f"🍽️ Perfect! I found excellent restaurants in {data['city']}!",
        "",
        f"📅 Reservation Date: {data['reservation_date']}",
        f"👥 Party Size: {data['party_size']}",
        f"🥗 Preference: {data['preference']}",
        f"📋 Booking Reference: {data['booking_reference']}",
        "",
        "Available Restaurants:",
    ]
    if data["restaurants"]:
        lines.extend(
            f"🍽️ {restaurant['name']} | {restaurant['cuisine']} | "
            f"{restaurant['rating']}⭐ | {restaurant['price_range']}"
            for restaurant in data["restaurants"]
        )
    else:
        lines.append("No restaurants match your preference right now.")
    return "\n".join(lines)


MESSAGE_TEMPLATES: Dict[ServiceType, MessageTemplate] = {
    ServiceType.TRAVEL: MessageTemplate(
        success=_travel_success,
        error=lambda error: f"❌ Sorry, I couldn't process your travel request. {error}",
    ),
    ServiceType.CAB: MessageTemplate(
        success=_cab_success,
        error=lambda error: f"❌ Sorry, I couldn't find available cabs. {error}",
    ),
    ServiceType.HOTEL: MessageTemplate(
        success=_hotel_success,
        error=lambda error: f"❌ Sorry, I couldn't find available hotels. {error}",
    ),
    ServiceType.RESTAURANT: MessageTemplate(
        success=_restaurant_success,
        error=lambda error: f"❌ Sorry, I couldn't find available restaurants. {error}",
    ),
}


def _service_label(service_type: Union[ServiceType, str]) -> str:
    return service_type.value if isinstance(service_type, ServiceType) else str(service_type)


def generic_success(service_type: Union[ServiceType, str]) -> str:
    return f"✅ Your {_service_label(service_type)} request has been processed successfully!"


def generic_error(service_type: Union[ServiceType, str], error: str) -> str:
    return f"❌ Sorry, there was an error processing your {_service_label(service_type)} request: {error}"


def compose_error(service_type: Union[ServiceType, str], error: str) -> str:
    """Render an error for a service, using its template when one exists."""
    template = MESSAGE_TEMPLATES.get(service_type)
    if template is None:
        return generic_error(service_type, error)
    return template.error(error)


def compose(service_type: Union[ServiceType, str], result: FulfillmentResult) -> str:
    """
    Render a fulfillment result as a display message.

    Args:
        service_type: The service the result belongs to
        result: The fulfillment outcome

    Returns:
        The message to show the user
    """
    if not result.success:
        error = result.error or "Unknown error"
        if result.details:
            error = f"{error}: {result.details}"
        return compose_error(service_type, error)

    template = MESSAGE_TEMPLATES.get(service_type)
    if template is None:
        return generic_success(service_type)

    try:
        return template.success(result.data)
    except (KeyError, TypeError) as e:
        logger.warning(
            f"Success template could not render: service={_service_label(service_type)} "
            f"error={type(e).__name__}: {e}"
        )
        return generic_success(service_type)
