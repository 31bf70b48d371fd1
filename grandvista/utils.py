import jwt
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from .config import settings

logger = logging.getLogger(__name__)

ADMIN_TOKEN_TYPE = "access"
FILE_TOKEN_TYPE = "qr-file"


# =========================
# JWT Token Handling
# =========================
def create_admin_token(admin_id: str, role: str = "admin", expires_minutes: Optional[int] = None) -> str:
    """Create the bearer token handed out by /login."""
    now = datetime.utcnow()
    expire = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": admin_id,
        "adminId": admin_id,
        "role": role,
        "type": ADMIN_TOKEN_TYPE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_admin_token(token: str) -> Dict[str, Any]:
    """Decode an admin bearer token.

    Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError so callers can
    tell an expired session from a forged one.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != ADMIN_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an admin access token")
    return payload


def create_file_token(key: str, ttl_seconds: Optional[int] = None) -> str:
    """Short-lived token bound to a single QR storage key."""
    ttl = settings.QR_SIGNED_URL_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    now = datetime.utcnow()
    to_encode = {
        "key": key,
        "type": FILE_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_file_token(token: str) -> Optional[Dict[str, Any]]:
    """Return {"key": ...} for a valid file token, None for anything else."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("QR file token expired")
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get("type") != FILE_TOKEN_TYPE or not isinstance(payload.get("key"), str):
        return None
    return {"key": payload["key"]}
