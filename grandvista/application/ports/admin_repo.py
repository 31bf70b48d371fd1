from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol


@dataclass
class AdminDto:
    id: str
    full_name: str
    email: str
    phone_number: Optional[str]
    password_hash: str
    role: str
    email_verified: bool
    phone_verified: bool
    created_at: datetime
    updated_at: datetime


class AdminRepository(Protocol):
    def get_by_id(self, admin_id: str) -> Optional[AdminDto]:
        ...

    def get_by_email(self, email: str) -> Optional[AdminDto]:
        ...

    def get_primary(self) -> Optional[AdminDto]:
        ...

    def list_all(self) -> List[AdminDto]:
        ...

    def email_in_use(self, email: str, exclude_admin_id: Optional[str] = None) -> bool:
        ...

    def create(self, full_name: str, email: str, password_hash: str, phone_number: Optional[str] = None) -> AdminDto:
        ...

    def save(self, admin: AdminDto) -> AdminDto:
        ...
