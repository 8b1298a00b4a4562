from __future__ import annotations

import base64
import hashlib
import hmac
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt

from errors import ConfigurationError

PASSWORD_ALGORITHM = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 390000
SALT_BYTES = 16
TOKEN_ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Missing, malformed, expired or wrongly signed bearer token."""


def hash_password(password: str) -> str:
    salt = os.urandom(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PASSWORD_ITERATIONS, dklen=32)
    encoded_salt = base64.b64encode(salt).decode("utf-8")
    encoded_digest = base64.b64encode(digest).decode("utf-8")
    return f"{PASSWORD_ALGORITHM}${PASSWORD_ITERATIONS}${encoded_salt}${encoded_digest}"


def _parse_password_hash(encoded: str) -> Optional[Tuple[int, bytes, bytes]]:
    try:
        algorithm, iter_str, salt_b64, hash_b64 = encoded.split("$")
        if algorithm != PASSWORD_ALGORITHM:
            return None
        return int(iter_str), base64.b64decode(salt_b64), base64.b64decode(hash_b64)
    except ValueError:
        return None


def verify_password(password: str, encoded: str) -> bool:
    parsed = _parse_password_hash(encoded or "")
    if parsed is None:
        return False
    iterations, salt, stored = parsed
    candidate = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations, dklen=len(stored))
    return hmac.compare_digest(candidate, stored)


def issue_token(
    user_id: str,
    username: str,
    secret: Optional[str],
    *,
    ttl_days: int = 7,
    now: Optional[datetime] = None,
) -> str:
    """Sign a bearer token carrying the user id and username."""
    if not secret:
        raise ConfigurationError("JWT_SECRET is not configured")
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "username": username,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=ttl_days),
    }
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)


def decode_token(token: str, secret: Optional[str]) -> Dict[str, Any]:
    if not secret:
        raise ConfigurationError("JWT_SECRET is not configured")
    try:
        claims = jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError(str(exc)) from exc
    if not claims.get("userId"):
        raise InvalidTokenError("Token is missing the user id")
    return claims


def bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    header = (authorization or "").strip()
    if not header.lower().startswith("bearer "):
        raise InvalidTokenError("No token provided")
    token = header.split(None, 1)[1].strip()
    if not token:
        raise InvalidTokenError("No token provided")
    return token
