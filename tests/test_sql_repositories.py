from datetime import datetime, timedelta

import pytest
from sqlmodel import Session, select

from grandvista.database import build_engine, create_db_and_tables
from grandvista.db.models import Admin, PasswordResetSession, QRCode, QRScanLog
from grandvista.db.models.enums import QRFormat, ResetSessionStatus
from grandvista.infrastructure.persistence.sqlalchemy.repositories.admin_repository_sql import SqlAdminRepository
from grandvista.infrastructure.persistence.sqlalchemy.repositories.qr_repository_sql import SqlQRRepository
from grandvista.infrastructure.persistence.sqlalchemy.repositories.reset_session_repository_sql import (
    SqlResetSessionRepository,
)


@pytest.fixture
def session():
    engine = build_engine("sqlite://")
    create_db_and_tables(bind=engine)
    with Session(engine) as s:
        yield s


def test_record_scan_increments_and_logs(session):
    repo = SqlQRRepository(session)
    qr = repo.create("https://grandvista.example.com/menu", QRFormat.PNG, "menu1234", "menu1234-1.png")
    other = repo.create("https://grandvista.example.com/bar", QRFormat.PNG, "bar12345", "bar12345-1.png")

    start = datetime(2024, 5, 15, 12, 0, 0)
    for i in range(3):
        repo.record_scan(qr.slug, start + timedelta(minutes=i))

    session.expire_all()
    row = session.get(QRCode, qr.id)
    assert row.scan_count == 3
    assert row.last_scan_at == start + timedelta(minutes=2)
    assert session.get(QRCode, other.id).scan_count == 0

    logs = session.exec(select(QRScanLog)).all()
    assert len(logs) == 3
    assert {log.slug for log in logs} == {qr.slug}
    assert {log.qr_id for log in logs} == {qr.id}


def test_record_scan_unknown_slug(session):
    repo = SqlQRRepository(session)
    assert repo.record_scan("missing", datetime(2024, 5, 15)) is None
    assert session.exec(select(QRScanLog)).all() == []


def open_reset_session(session, admin_id):
    repo = SqlResetSessionRepository(session)
    dto = repo.create(admin_id, expires_at=datetime.utcnow() + timedelta(hours=1), email_token_hash="a" * 64)
    dto.email_verified = True
    dto.sms_verified = True
    dto.status = ResetSessionStatus.COMPLETED
    return repo, dto


def test_complete_if_open_writes_session_and_password_together(session):
    admin = SqlAdminRepository(session).create("Grand Vista Admin", "admin@grandvista.com", "old-hash")
    repo, dto = open_reset_session(session, admin.id)

    assert repo.complete_if_open(dto, "new-hash") is True
    session.expire_all()
    assert session.get(Admin, admin.id).password_hash == "new-hash"
    assert session.get(PasswordResetSession, dto.id).status == ResetSessionStatus.COMPLETED.value

    assert repo.complete_if_open(dto, "other-hash") is False
    session.expire_all()
    assert session.get(Admin, admin.id).password_hash == "new-hash"


def test_complete_if_open_rolls_back_when_admin_write_fails(session):
    repo, dto = open_reset_session(session, "ghost-admin")

    with pytest.raises(LookupError):
        repo.complete_if_open(dto, "new-hash")
    session.expire_all()
    assert session.get(PasswordResetSession, dto.id).status == ResetSessionStatus.PENDING.value


def test_seed_admin_creates_then_resets_password(session):
    from seed_admin import seed_admin
    from grandvista.security import verify_password

    assert seed_admin(session, " Admin@GrandVista.com ", "Admin@123", "Grand Vista Admin") == "created"
    repo = SqlAdminRepository(session)
    admin = repo.get_by_email("admin@grandvista.com")
    assert verify_password("Admin@123", admin.password_hash)
    assert admin.email_verified is False
    assert admin.phone_verified is False

    assert seed_admin(session, "admin@grandvista.com", "N3w-Passw0rd!", "Grand Vista Admin") == "updated"
    admin = repo.get_by_email("admin@grandvista.com")
    assert verify_password("N3w-Passw0rd!", admin.password_hash)
    assert len(repo.list_all()) == 1
