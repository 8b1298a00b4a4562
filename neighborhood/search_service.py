"""Housing search passthrough to the Tavily search API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from tavily import TavilyClient

from errors import ConfigurationError, UpstreamError, UpstreamFormatError
from telemetry.logging_utils import get_logger
from telemetry.metrics import start_timer

logger = get_logger(__name__)

DEFAULT_SEARCH_OPTIONS: Dict[str, Any] = {
    "search_depth": "advanced",
    "max_results": 7,
    "time_range": "week",
    "include_answer": "advanced",
    "include_images": True,
    "include_raw_content": "text",
    "country": "canada",
}

Number = Union[int, float, str]


def build_search_query(
    *,
    country: Optional[str] = None,
    city: Optional[str] = None,
    location: Optional[str] = None,
    property_type: Optional[str] = None,
    price_min: Optional[Number] = None,
    price_max: Optional[Number] = None,
    time_range: Optional[str] = None,
    additional: Optional[str] = None,
) -> str:
    """Turn structured search filters into one natural-language query."""
    parts = ["Find homes"]

    location_str = ", ".join(item for item in (country, city) if item)
    if location_str:
        parts.append(f"in {location_str}")
    if location:
        parts.append(f"(specific location: {location})")
    if property_type:
        parts.append(f'of type "{property_type}"')
    if price_min and price_max:
        parts.append(f"with price between ${price_min} and ${price_max}")
    elif price_min:
        parts.append(f"with price from ${price_min}")
    elif price_max:
        parts.append(f"with price up to ${price_max}")
    if time_range:
        parts.append(f"available in the time range: {time_range}")

    query = " ".join(parts) + "."
    if additional:
        query += f" Additional requirements: {additional}"
    return query.strip()


class SearchService:
    def __init__(self, api_key: Optional[str] = None, *, client: Any = None) -> None:
        self.api_key = api_key
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("Missing TAVILY_API_KEY environment variable")
            self._client = TavilyClient(api_key=self.api_key)
        return self._client

    def search(self, query: str, **overrides: Any) -> Dict[str, Any]:
        """Run one search; the response must carry a ``results`` list."""
        client = self._get_client()
        options = {**DEFAULT_SEARCH_OPTIONS, **overrides}
        timer = start_timer("search", "tavily")
        try:
            response = client.search(query, **options)
        except Exception as exc:
            timer.done(status="error")
            logger.error("search_failed", extra={"error": str(exc)[:200]})
            raise UpstreamError(f"Search request failed: {exc}") from exc
        latency_ms = timer.done()

        if not isinstance(response, dict) or not isinstance(response.get("results"), list):
            logger.error("search_invalid_format", extra={"response_type": type(response).__name__})
            raise UpstreamFormatError("Invalid search results format")
        results: List[Dict[str, Any]] = response["results"]
        logger.info(
            "search_complete",
            extra={"results": len(results), "latency_ms": round(latency_ms, 1)},
        )
        return response
