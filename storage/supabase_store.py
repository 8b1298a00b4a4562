from __future__ import annotations

import time
import uuid
from typing import Any, Callable, Dict, Optional

import httpx
from postgrest import APIError

from supabase import Client, create_client

from errors import DuplicateUserError
from telemetry.logging_utils import get_logger
from telemetry.retry import retry_with_backoff

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"
TRANSIENT_ERRORS = (httpx.RemoteProtocolError, httpx.WriteError, httpx.ConnectError, httpx.ReadTimeout)


class SupabaseStore:
    def __init__(
        self,
        url: str,
        key: str,
        *,
        client: Optional[Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client: Client = client or create_client(url, key)
        self._max_retries = 3
        self._retry_backoff_seconds = 0.25
        self._sleep = sleep

    def _table(self, name: str):
        return self.client.table(name)

    def _with_retry(self, fn: Callable[[], Any]) -> Any:
        def _log_retry(attempt: int, exc: BaseException, delay: float) -> None:
            logger.warning(
                "supabase_retry",
                extra={"attempt": attempt, "delay_s": round(delay, 2), "error": str(exc)[:200]},
            )

        return retry_with_backoff(
            fn,
            retries=self._max_retries,
            base_delay=self._retry_backoff_seconds,
            jitter=0.0,
            retry_exceptions=TRANSIENT_ERRORS,
            sleep=self._sleep,
            on_retry=_log_retry,
        )

    @staticmethod
    def _single(resp: Any) -> Optional[Dict[str, Any]]:
        # maybe_single() yields no response at all when nothing matched
        if resp is None:
            return None
        return resp.data or None

    def register_user(self, username: str, password_hash: str) -> Dict[str, Any]:
        user = {"id": str(uuid.uuid4()), "username": username, "password_hash": password_hash}
        try:
            resp = self._with_retry(lambda: self._table("users").insert(user).execute())
        except APIError as exc:
            if getattr(exc, "code", None) == UNIQUE_VIOLATION:
                raise DuplicateUserError(f"User {username!r} already exists") from exc
            raise
        if not resp.data:
            raise RuntimeError("Failed to insert user")
        return resp.data[0]

    def find_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        resp = self._with_retry(
            lambda: self._table("users").select("*").eq("username", username).maybe_single().execute()
        )
        return self._single(resp)

    def find_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        resp = self._with_retry(lambda: self._table("users").select("*").eq("id", user_id).maybe_single().execute())
        return self._single(resp)

    def ping(self) -> bool:
        self._with_retry(lambda: self._table("users").select("id").limit(1).execute())
        return True
