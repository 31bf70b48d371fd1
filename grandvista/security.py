import hashlib
import re
import secrets
from typing import Optional

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_MIN_LENGTH = 8
PASSWORD_MIN_CLASSES = 3

_PHONE_SEPARATORS = re.compile(r"[\s()\-]+")


# =========================
# Secret generation / hashing
# =========================
def generate_token(byte_length: int = 32) -> str:
    """Cryptographically secure random token, hex encoded (2 chars per byte)."""
    return secrets.token_bytes(byte_length).hex()


def generate_numeric_code(digits: int = 6) -> str:
    """Uniform random code in [0, 10**digits), zero padded to exactly `digits`."""
    if digits < 1:
        raise ValueError("digits must be positive")
    return str(secrets.randbelow(10 ** digits)).zfill(digits)


def hash_secret(secret: str) -> str:
    """SHA-256 hex digest. Only this value is ever persisted for tokens and codes."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def secrets_match(secret: str, expected_hash: Optional[str]) -> bool:
    if not expected_hash:
        return False
    return secrets.compare_digest(hash_secret(secret), expected_hash)


# =========================
# Password hashing
# =========================
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False


def validate_password_strength(password: str) -> bool:
    """At least 8 characters and 3 of: uppercase, lowercase, digit, symbol."""
    if len(password) < PASSWORD_MIN_LENGTH:
        return False
    classes = [
        bool(re.search(r"[A-Z]", password)),
        bool(re.search(r"[a-z]", password)),
        bool(re.search(r"\d", password)),
        bool(re.search(r"[^A-Za-z0-9]", password)),
    ]
    return sum(classes) >= PASSWORD_MIN_CLASSES


# =========================
# Contact helpers (display / lookup only)
# =========================
def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    return _PHONE_SEPARATORS.sub("", phone).strip()


def mask_email(email: str) -> str:
    user, sep, domain = (email or "").partition("@")
    if not sep or not domain or not user:
        return "***"
    return f"{user[0]}{'*' * (len(user) - 1)}@{domain}"


def mask_phone(phone: Optional[str]) -> Optional[str]:
    if not phone:
        return None
    return f"••••{phone[-4:]}"
