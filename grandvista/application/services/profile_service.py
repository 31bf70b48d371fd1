import logging
from dataclasses import dataclass
from typing import Any, Dict

from ...exceptions import ConflictError, DomainError, NotFoundError, WeakPasswordError
from ...security import hash_password, normalize_email, validate_password_strength, verify_password
from ..ports.admin_repo import AdminDto, AdminRepository

logger = logging.getLogger(__name__)


def profile_payload(admin: AdminDto) -> Dict[str, Any]:
    return {
        "id": admin.id,
        "fullName": admin.full_name,
        "email": admin.email,
        "phoneNumber": admin.phone_number,
        "role": admin.role,
        "emailVerified": admin.email_verified,
        "phoneVerified": admin.phone_verified,
        "createdAt": admin.created_at,
        "updatedAt": admin.updated_at,
    }


@dataclass
class ProfileService:
    admin_repo: AdminRepository

    def _get(self, admin_id: str) -> AdminDto:
        admin = self.admin_repo.get_by_id(admin_id)
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    def get_profile(self, admin_id: str) -> Dict[str, Any]:
        return profile_payload(self._get(admin_id))

    def update_profile(self, admin_id: str, full_name: str, email: str, phone_number: str) -> Dict[str, Any]:
        admin = self._get(admin_id)
        email = normalize_email(email)
        if self.admin_repo.email_in_use(email, exclude_admin_id=admin.id):
            raise ConflictError("Email address is already in use")

        # A changed contact must be verified again
        if email != admin.email:
            admin.email_verified = False
        if phone_number != admin.phone_number:
            admin.phone_verified = False

        admin.full_name = full_name.strip()
        admin.email = email
        admin.phone_number = phone_number
        admin = self.admin_repo.save(admin)
        logger.info(f"Profile updated for admin {admin.id}")
        return profile_payload(admin)

    def change_password(self, admin_id: str, current_password: str, new_password: str) -> Dict[str, str]:
        if not validate_password_strength(new_password):
            raise WeakPasswordError()

        admin = self._get(admin_id)
        if not verify_password(current_password, admin.password_hash):
            raise DomainError("Current password is incorrect")

        admin.password_hash = hash_password(new_password)
        self.admin_repo.save(admin)
        logger.info(f"Password changed for admin {admin.id}")
        return {"message": "Password updated successfully"}
