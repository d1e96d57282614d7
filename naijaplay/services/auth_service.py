"""
Authentication helpers: password hashing, JWT tokens, recovery tokens.
"""

import os
import secrets
from datetime import timedelta
from typing import Dict, Optional

import bcrypt
from jose import jwt, JWTError

from naijaplay.utils.datetime_utils import utcnow

SECRET_KEY = os.getenv("JWT_SECRET", "naija-play-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a bcrypt hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to embed (must include user_id)
        expires_delta: Optional custom lifetime (default JWT_EXPIRE_DAYS)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)

    now = utcnow()
    payload = dict(data)
    payload.update({"exp": now + expires_delta, "iat": now})
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """
    Verify and decode a JWT token.

    Returns:
        Decoded claims, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def generate_recovery_token() -> str:
    """Random url-safe token for password recovery."""
    return secrets.token_urlsafe(32)
