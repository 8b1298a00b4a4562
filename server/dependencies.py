from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Union

from fastapi import Depends, HTTPException, Request, status

from lease_analysis.llm_client import LLMClient
from lease_analysis.pdf_pipeline import PDFAnalysisService
from neighborhood.maps_service import MapsService
from neighborhood.search_service import SearchService
from server.config import Settings
from server.security import InvalidTokenError, bearer_token, decode_token
from storage.memory_store import InMemoryStore
from storage.supabase_store import SupabaseStore
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

UserStore = Union[SupabaseStore, InMemoryStore]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=4)
def _store_for(settings: Settings) -> UserStore:
    if settings.supabase_enabled:
        return SupabaseStore(settings.supabase_url, settings.supabase_key)
    logger.warning("supabase_not_configured", extra={"store": "memory"})
    return InMemoryStore()


def get_store(settings: Settings = Depends(get_settings)) -> UserStore:
    return _store_for(settings)


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    return LLMClient(
        settings.openrouter_api_key,
        model=settings.openrouter_model,
        base_url=settings.openrouter_base_url,
        timeout=settings.openrouter_timeout,
    )


def get_pdf_service(
    settings: Settings = Depends(get_settings),
    llm: LLMClient = Depends(get_llm_client),
) -> PDFAnalysisService:
    return PDFAnalysisService(llm, max_tokens=settings.pdf_chunk_max_tokens)


def get_maps_service(settings: Settings = Depends(get_settings)) -> MapsService:
    return MapsService(settings.google_maps_api_key)


def get_search_service(settings: Settings = Depends(get_settings)) -> SearchService:
    return SearchService(settings.tavily_api_key)


def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Token claims (``userId``, ``username``) of the authenticated caller."""
    try:
        token = bearer_token(request.headers.get("Authorization"))
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided.")
    try:
        return decode_token(token, settings.jwt_secret)
    except InvalidTokenError as exc:
        logger.info("token_rejected", extra={"reason": str(exc)[:120]})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.")
