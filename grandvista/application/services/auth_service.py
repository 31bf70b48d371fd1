import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import InvalidCredentialsError
from ...security import normalize_email, verify_password
from ...utils import create_admin_token
from ..ports.admin_repo import AdminDto, AdminRepository

logger = logging.getLogger(__name__)


def admin_summary(admin: AdminDto) -> Dict[str, Any]:
    return {
        "id": admin.id,
        "fullName": admin.full_name,
        "email": admin.email,
        "phoneNumber": admin.phone_number,
        "role": admin.role,
        "emailVerified": admin.email_verified,
        "phoneVerified": admin.phone_verified,
    }


@dataclass
class AuthService:
    admin_repo: AdminRepository
    token_expire_minutes: Optional[int] = None

    def login(self, email: str, password: str) -> Dict[str, Any]:
        admin = self.admin_repo.get_by_email(normalize_email(email))
        # Same error for unknown email and wrong password
        if not admin or not verify_password(password, admin.password_hash):
            logger.info("Admin login rejected")
            raise InvalidCredentialsError()

        token = create_admin_token(admin.id, role=admin.role, expires_minutes=self.token_expire_minutes)
        logger.info(f"Admin {admin.id} logged in")
        return {"token": token, "admin": admin_summary(admin)}
