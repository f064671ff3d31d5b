from __future__ import annotations

from collections.abc import Iterable
from typing import Any

BASE_CATEGORIES = frozenset(
    {
        "airport",
        "amusement_park",
        "aquarium",
        "atm",
        "bakery",
        "bank",
        "beach",
        "brewery",
        "cafe",
        "campground",
        "car_rental",
        "ev_charger",
        "fire_station",
        "fitness_center",
        "food_market",
        "gas_station",
        "hospital",
        "hotel",
        "laundry",
        "library",
        "marina",
        "movie_theater",
        "museum",
        "national_park",
        "nightlife",
        "park",
        "parking",
        "pharmacy",
        "police",
        "post_office",
        "public_transport",
        "restaurant",
        "restroom",
        "school",
        "stadium",
        "store",
        "theater",
        "university",
        "winery",
        "zoo",
    }
)

# Only offered when the provider reports support for them.
EXTENDED_CATEGORIES = frozenset(
    {
        "animal_service",
        "automotive_repair",
        "baseball",
        "basketball",
        "beauty",
        "bowling",
        "castle",
        "convention_center",
        "distillery",
        "fairground",
        "fishing",
        "golf",
        "hiking",
        "kayaking",
        "landmark",
        "mailbox",
        "mini_golf",
        "music_venue",
        "national_monument",
        "planetarium",
        "rock_climbing",
        "rv_park",
        "skate_park",
        "skating",
        "skiing",
        "soccer",
        "spa",
        "surfing",
        "swimming",
        "tennis",
        "volleyball",
    }
)

ALL_CATEGORIES = BASE_CATEGORIES | EXTENDED_CATEGORIES

DEFAULT_CATEGORIES = frozenset({"restaurant", "nightlife"})

_DISPLAY_OVERRIDES = {
    "atm": "ATM",
    "ev_charger": "EV Charger",
    "rv_park": "RV Park",
    "nightlife": "Nightlife (Bars)",
}


def resolve_available_categories(provider: Any) -> frozenset[str]:
    """Negotiate the category set once, at startup.

    Providers that report no known categories get the base set.
    """
    available = frozenset(provider.supported_categories()) & ALL_CATEGORIES
    return available or BASE_CATEGORIES


def display_name(category: str) -> str:
    if category in _DISPLAY_OVERRIDES:
        return _DISPLAY_OVERRIDES[category]
    return category.replace("_", " ").title()


def selection_summary(selected: Iterable[str], available: Iterable[str]) -> str:
    chosen = set(selected)
    if not chosen:
        return "None selected"
    if chosen >= set(available):
        return "All categories"
    names = sorted(display_name(category) for category in chosen)
    if len(names) <= 3:
        return ", ".join(names)
    return f"{len(names)} selected"
