from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

MAX_PLACE_PHOTOS = 3


class PlaceRecord(BaseModel):
    name: str
    address: Optional[str] = None
    rating: Optional[float] = None
    types: List[str] = Field(default_factory=list)
    placeId: Optional[str] = None
    photos: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class SearchHit(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    score: Optional[float] = None

    model_config = {"extra": "allow"}


def normalize_place(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Places API result onto the public place record field names."""
    return {
        "name": raw.get("name"),
        "address": raw.get("vicinity") or raw.get("formatted_address"),
        "rating": raw.get("rating"),
        "types": raw.get("types") or [],
        "placeId": raw.get("place_id"),
        "photos": (raw.get("photos") or [])[:MAX_PLACE_PHOTOS],
    }


def validate_places(raw_results: Any) -> List[Dict[str, Any]]:
    """Validate upstream place results, logging and dropping invalid entries.

    Upstream ordering is kept.
    """
    if not isinstance(raw_results, list):
        return []
    cleaned: List[Dict[str, Any]] = []
    for entry in raw_results:
        if not isinstance(entry, dict):
            continue
        try:
            cleaned.append(PlaceRecord.model_validate(normalize_place(entry)).model_dump())
        except ValidationError as exc:
            logger.warning("place_validation_failed", extra={"error": str(exc)[:200]})
    return cleaned


def validate_search_hits(raw_results: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw_results, list):
        return []
    hits: List[Dict[str, Any]] = []
    for entry in raw_results:
        try:
            hits.append(SearchHit.model_validate(entry).model_dump())
        except ValidationError as exc:
            logger.warning("search_hit_validation_failed", extra={"error": str(exc)[:200]})
    return hits
