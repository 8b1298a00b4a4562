"""
Neighborhood lookups: geocoding, nearby places and housing search.
"""

from .maps_service import MapsService, clean_address
from .search_service import SearchService, build_search_query

__all__ = ["MapsService", "SearchService", "build_search_query", "clean_address"]
