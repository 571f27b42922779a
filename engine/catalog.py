"""
Static offer catalog used by the simulated fulfillment lookups.
"""
from typing import Any, Dict, List

ITINERARIES: List[Dict[str, Any]] = [
    {
        "destination": "Paris",
        "days": [
            {"day": 1, "activities": ["Visit Eiffel Tower", "Seine River Cruise", "Louvre Museum"]},
            {"day": 2, "activities": ["Notre Dame Cathedral", "Montmartre District", "Arc de Triomphe"]},
            {"day": 3, "activities": ["Versailles Palace", "Champs-Élysées Shopping", "Evening at Sacré-Cœur"]},
        ],
        "estimated_cost": 1200,
        "best_time": "Spring (April-June) or Fall (September-November)",
    },
    {
        "destination": "Tokyo",
        "days": [
            {"day": 1, "activities": ["Senso-ji Temple", "Tokyo Skytree", "Traditional Sushi Experience"]},
            {"day": 2, "activities": ["Shibuya Crossing", "Harajuku District", "Meiji Shrine"]},
            {"day": 3, "activities": ["Tsukiji Fish Market", "Imperial Palace", "Ginza Shopping"]},
        ],
        "estimated_cost": 1500,
        "best_time": "Spring (March-May) for cherry blossoms",
    },
]

# Used when no itinerary matches the requested destination
GENERIC_ITINERARY_DAYS: List[Dict[str, Any]] = [
    {"day": 1, "activities": ["Explore city center", "Visit local landmarks", "Try local cuisine"]},
    {"day": 2, "activities": ["Cultural sites tour", "Shopping districts", "Evening entertainment"]},
    {"day": 3, "activities": ["Nature/parks visit", "Museum tours", "Local experiences"]},
]
GENERIC_ITINERARY_COST = 1000
GENERIC_ITINERARY_BEST_TIME = "Check local weather and season recommendations"

CABS: List[Dict[str, Any]] = [
    {"id": "uber_001", "driver": "John Smith", "car": "Honda City", "eta": 5, "fare": 250, "rating": 4.8},
    {"id": "ola_002", "driver": "Raj Kumar", "car": "Maruti Swift", "eta": 7, "fare": 220, "rating": 4.6},
    {"id": "uber_003", "driver": "Sarah Johnson", "car": "Toyota Camry", "eta": 3, "fare": 300, "rating": 4.9},
]

HOTELS: List[Dict[str, Any]] = [
    {"id": "h001", "name": "Grand Palace Hotel", "rating": 5, "price": 8000, "amenities": ["Pool", "Spa", "Restaurant"]},
    {"id": "h002", "name": "Budget Inn", "rating": 3, "price": 2500, "amenities": ["WiFi", "AC"]},
    {"id": "h003", "name": "Luxury Suites", "rating": 4, "price": 5500, "amenities": ["Gym", "Restaurant", "Bar"]},
]

RESTAURANTS: List[Dict[str, Any]] = [
    {"id": "r001", "name": "Spice Garden", "cuisine": "Indian Vegetarian", "rating": 4.5, "price_range": "₹₹"},
    {"id": "r002", "name": "Ocean Grill", "cuisine": "Continental Non-Veg", "rating": 4.7, "price_range": "₹₹₹"},
    {"id": "r003", "name": "Green Leaf", "cuisine": "Pure Vegetarian", "rating": 4.3, "price_range": "₹"},
]
