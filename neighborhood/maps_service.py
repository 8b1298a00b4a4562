"""Geocoding, nearby-place lookups and place details over the Google Maps APIs."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

import googlemaps
from googlemaps.exceptions import ApiError, Timeout, TransportError

from errors import AddressNotFoundError, ConfigurationError, UpstreamError
from telemetry.logging_utils import get_logger
from telemetry.metrics import start_timer
from telemetry.schemas import validate_places

logger = get_logger(__name__)

DEFAULT_RADIUS_METERS = 1000
MAX_PLACES_PER_CATEGORY = 5
PLACE_DETAIL_FIELDS = [
    "name",
    "formatted_address",
    "formatted_phone_number",
    "website",
    "opening_hours",
    "rating",
    "reviews",
]

# (Places API type, label shown to users)
DEFAULT_PLACE_CATEGORIES: List[Tuple[str, str]] = [
    ("hospital", "Hospitals & Medical Centers"),
    ("restaurant", "Restaurants & Cafes"),
    ("transit_station", "Transportation Hubs"),
    ("school", "Schools & Universities"),
    ("shopping_mall", "Shopping Centers"),
    ("park", "Parks & Recreation"),
    ("bank", "Banks & ATMs"),
    ("pharmacy", "Pharmacies"),
]

MAPS_ERRORS = (ApiError, TransportError, Timeout)

_WHITESPACE_RE = re.compile(r"\s+")
_COMMA_RUN_RE = re.compile(r"\s*,[\s,]*")


def clean_address(address: str) -> str:
    """Trim, collapse whitespace and normalize comma separators."""
    cleaned = _WHITESPACE_RE.sub(" ", (address or "").strip())
    cleaned = _COMMA_RUN_RE.sub(", ", cleaned)
    return cleaned.strip(", ")


def format_type_name(place_type: str) -> str:
    """``shopping_mall`` -> ``Shopping Mall``."""
    return " ".join(word[:1].upper() + word[1:] for word in place_type.split("_"))


def resolve_categories(selected_types: Optional[Sequence[str]] = None) -> List[Tuple[str, str]]:
    if selected_types:
        return [(place_type, format_type_name(place_type)) for place_type in selected_types]
    return list(DEFAULT_PLACE_CATEGORIES)


class MapsService:
    def __init__(self, api_key: Optional[str] = None, *, client: Any = None) -> None:
        self.api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("Google Maps API key is required")
            try:
                self._client = googlemaps.Client(key=self.api_key)
            except ValueError as exc:
                raise ConfigurationError(f"Invalid Google Maps API key: {exc}") from exc
        return self._client

    def geocode_address(self, address: str) -> Dict[str, Any]:
        client = self._get_client()
        cleaned = clean_address(address)
        timer = start_timer("maps", "geocode")
        try:
            results = client.geocode(cleaned)
        except MAPS_ERRORS as exc:
            timer.done(status="error")
            logger.error("geocode_failed", extra={"error": str(exc)[:200]})
            raise UpstreamError(f"Geocoding failed: {exc}") from exc
        timer.done()

        if not results:
            raise AddressNotFoundError("Address not found")
        first = results[0]
        geometry = first.get("geometry") or {}
        location = geometry.get("location") or {}
        if location.get("lat") is None or location.get("lng") is None:
            raise AddressNotFoundError("Address not found")
        return {
            "lat": location.get("lat"),
            "lng": location.get("lng"),
            "formattedAddress": first.get("formatted_address"),
            "originalAddress": address,
            "cleanedAddress": cleaned,
            "confidence": geometry.get("location_type") or "unknown",
        }

    def search_nearby_places(
        self,
        lat: float,
        lng: float,
        radius: int = DEFAULT_RADIUS_METERS,
        place_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """One Places nearby-search call, results kept in upstream order."""
        client = self._get_client()
        timer = start_timer("maps", f"places_nearby:{place_type or 'any'}")
        try:
            response = client.places_nearby(location=(lat, lng), radius=radius, type=place_type)
        except MAPS_ERRORS as exc:
            timer.done(status="error")
            raise UpstreamError(f"Nearby search failed: {exc}") from exc
        timer.done()
        return validate_places((response or {}).get("results"))

    def search_multiple_types(
        self,
        lat: float,
        lng: float,
        radius: int = DEFAULT_RADIUS_METERS,
        selected_types: Optional[Sequence[str]] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Nearby places grouped by category label, at most five per category.

        Categories are looked up one after another. A category whose lookup
        fails or comes back empty is left out of the mapping.
        """
        categories = resolve_categories(selected_types)
        results: Dict[str, List[Dict[str, Any]]] = {}
        for place_type, label in categories:
            try:
                places = self.search_nearby_places(lat, lng, radius, place_type)
            except UpstreamError as exc:
                logger.warning(
                    "nearby_category_failed",
                    extra={"category": label, "place_type": place_type, "error": str(exc)[:200]},
                )
                continue
            if places:
                results[label] = [
                    {**place, "category": label, "type": place_type}
                    for place in places[:MAX_PLACES_PER_CATEGORY]
                ]
        logger.info(
            "nearby_search_complete",
            extra={"categories_requested": len(categories), "categories_found": len(results)},
        )
        return results

    def get_place_details(self, place_id: str) -> Dict[str, Any]:
        client = self._get_client()
        timer = start_timer("maps", "place_details")
        try:
            response = client.place(place_id, fields=PLACE_DETAIL_FIELDS)
        except MAPS_ERRORS as exc:
            timer.done(status="error")
            logger.error("place_details_failed", extra={"error": str(exc)[:200]})
            raise UpstreamError(f"Failed to get place details: {exc}") from exc
        timer.done()
        return (response or {}).get("result") or {}
