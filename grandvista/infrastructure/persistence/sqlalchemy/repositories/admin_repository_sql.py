from datetime import datetime
from typing import List, Optional
from sqlmodel import Session, select

from .....db.models import Admin
from .....application.ports.admin_repo import AdminRepository, AdminDto


class SqlAdminRepository(AdminRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, admin: Admin) -> AdminDto:
        return AdminDto(
            id=admin.id,
            full_name=admin.full_name,
            email=admin.email,
            phone_number=admin.phone_number,
            password_hash=admin.password_hash,
            role=admin.role,
            email_verified=bool(admin.email_verified),
            phone_verified=bool(admin.phone_verified),
            created_at=admin.created_at,
            updated_at=admin.updated_at,
        )

    def get_by_id(self, admin_id: str) -> Optional[AdminDto]:
        admin = self.session.get(Admin, admin_id)
        return self._to_dto(admin) if admin else None

    def get_by_email(self, email: str) -> Optional[AdminDto]:
        admin = self.session.exec(select(Admin).where(Admin.email == email)).first()
        return self._to_dto(admin) if admin else None

    def get_primary(self) -> Optional[AdminDto]:
        admin = self.session.exec(select(Admin).order_by(Admin.created_at)).first()
        return self._to_dto(admin) if admin else None

    def list_all(self) -> List[AdminDto]:
        return [self._to_dto(a) for a in self.session.exec(select(Admin).order_by(Admin.created_at)).all()]

    def email_in_use(self, email: str, exclude_admin_id: Optional[str] = None) -> bool:
        query = select(Admin.id).where(Admin.email == email)
        if exclude_admin_id:
            query = query.where(Admin.id != exclude_admin_id)
        return self.session.exec(query).first() is not None

    def create(self, full_name: str, email: str, password_hash: str, phone_number: Optional[str] = None) -> AdminDto:
        admin = Admin(full_name=full_name, email=email, password_hash=password_hash, phone_number=phone_number)
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        return self._to_dto(admin)

    def save(self, dto: AdminDto) -> AdminDto:
        admin = self.session.get(Admin, dto.id)
        if not admin:
            raise LookupError(f"Admin {dto.id} no longer exists")
        admin.full_name = dto.full_name
        admin.email = dto.email
        admin.phone_number = dto.phone_number
        admin.password_hash = dto.password_hash
        admin.email_verified = dto.email_verified
        admin.phone_verified = dto.phone_verified
        admin.updated_at = datetime.utcnow()
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        return self._to_dto(admin)
