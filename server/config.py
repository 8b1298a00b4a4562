from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from lease_analysis.chunking import DEFAULT_MAX_TOKENS
from lease_analysis.llm_client import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT

DEFAULT_TOKEN_TTL_DAYS = 7


def _env(name: str, *fallbacks: str) -> Optional[str]:
    for key in (name, *fallbacks):
        value = os.getenv(key)
        if value:
            return value.strip()
    return None


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    jwt_secret: Optional[str] = None
    token_ttl_days: int = DEFAULT_TOKEN_TTL_DAYS
    openrouter_api_key: Optional[str] = None
    openrouter_model: str = DEFAULT_MODEL
    openrouter_base_url: str = DEFAULT_BASE_URL
    openrouter_timeout: float = DEFAULT_TIMEOUT
    tavily_api_key: Optional[str] = None
    google_maps_api_key: Optional[str] = None
    pdf_chunk_max_tokens: int = DEFAULT_MAX_TOKENS

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the process environment (and a local .env file)."""
        load_dotenv()
        return cls(
            supabase_url=_env("SUPABASE_URL"),
            supabase_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
            jwt_secret=_env("JWT_SECRET"),
            token_ttl_days=int(os.getenv("JWT_EXPIRES_DAYS", str(DEFAULT_TOKEN_TTL_DAYS))),
            openrouter_api_key=_env("OPENROUTER_API_KEY"),
            openrouter_model=_env("OPENROUTER_MODEL") or DEFAULT_MODEL,
            openrouter_base_url=_env("OPENROUTER_BASE_URL") or DEFAULT_BASE_URL,
            openrouter_timeout=float(os.getenv("OPENROUTER_TIMEOUT", str(DEFAULT_TIMEOUT))),
            tavily_api_key=_env("TAVILY_API_KEY", "TAVILY_SEARCH_KEY"),
            google_maps_api_key=_env("GOOGLE_MAPS_API_KEY"),
            pdf_chunk_max_tokens=int(os.getenv("PDF_CHUNK_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
        )

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)
