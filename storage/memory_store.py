from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from errors import DuplicateUserError


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryStore:
    """Demo-mode user store used when Supabase is not configured."""

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def register_user(self, username: str, password_hash: str) -> Dict[str, Any]:
        with self._lock:
            if self._find_by_username(username) is not None:
                raise DuplicateUserError(f"User {username!r} already exists")
            user = {
                "id": str(uuid.uuid4()),
                "username": username,
                "password_hash": password_hash,
                "created_at": _now_iso(),
            }
            self.users[user["id"]] = user
            return dict(user)

    def _find_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        for user in self.users.values():
            if user["username"] == username:
                return user
        return None

    def find_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        user = self._find_by_username(username)
        return dict(user) if user else None

    def find_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = self.users.get(user_id)
        return dict(user) if user else None

    def ping(self) -> bool:
        return True
