# madrasah_admin/core/security.py
"""JWT helpers. Tokens are issued by the identity provider; `sub` is the user id."""
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import logging
import secrets

from jose import JWTError, jwt

from .config import settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

def create_access_token(user_id: UUID, expires_minutes: int = 60, extra_claims: Optional[dict] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

def decode_user_id(token: str) -> UUID:
    """Verify the token signature and expiry and return the subject as a UUID."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise AuthenticationError("Invalid or expired token")

    subject = payload.get("sub")
    try:
        return UUID(str(subject))
    except (TypeError, ValueError):
        raise AuthenticationError("Token subject is not a valid user id")

def is_service_role_token(token: Optional[str]) -> bool:
    """Timing-safe check of a bearer token against the service-role key"""
    if not token or not settings.service_role_key:
        return False
    return secrets.compare_digest(token.encode(), settings.service_role_key.encode())
