import os
import re
import tempfile
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional
import uuid

# Settings are read once at import time: pin a throwaway database before grandvista loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["QR_STORAGE_DIR"] = tempfile.mkdtemp(prefix="grandvista-qr-")

import pytest

from grandvista.application.ports.admin_repo import AdminDto
from grandvista.application.ports.reset_session_repo import ResetSessionDto
from grandvista.application.ports.verification_repo import VerificationRecord
from grandvista.db.models.enums import ResetSessionStatus, VerificationStatus
from grandvista.security import hash_password

ADMIN_EMAIL = "admin@grandvista.com"
ADMIN_PASSWORD = "Admin@123"
ADMIN_PHONE = "+15551234567"


class FakeClock:
    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2024, 5, 15, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeAdminRepo:
    def __init__(self, admins: Optional[List[AdminDto]] = None):
        self.admins: Dict[str, AdminDto] = {a.id: a for a in admins or []}

    def get_by_id(self, admin_id):
        a = self.admins.get(admin_id)
        return replace(a) if a else None

    def get_by_email(self, email):
        for a in self.admins.values():
            if a.email == email:
                return replace(a)
        return None

    def get_primary(self):
        admins = sorted(self.admins.values(), key=lambda a: a.created_at)
        return replace(admins[0]) if admins else None

    def list_all(self):
        return [replace(a) for a in sorted(self.admins.values(), key=lambda a: a.created_at)]

    def email_in_use(self, email, exclude_admin_id=None):
        return any(a.email == email and a.id != exclude_admin_id for a in self.admins.values())

    def create(self, full_name, email, password_hash, phone_number=None):
        now = datetime.utcnow()
        admin = AdminDto(
            id=str(uuid.uuid4()), full_name=full_name, email=email, phone_number=phone_number,
            password_hash=password_hash, role="admin", email_verified=False, phone_verified=False,
            created_at=now, updated_at=now,
        )
        self.admins[admin.id] = admin
        return replace(admin)

    def save(self, admin):
        self.admins[admin.id] = replace(admin)
        return replace(admin)


class FakeVerificationRepo:
    def __init__(self):
        self.records: Dict[str, VerificationRecord] = {}
        self.expire_calls = []

    def _expire(self, admin_id, context, type=None):
        count = 0
        for r in self.records.values():
            if (r.admin_id == admin_id and r.context == context and r.status == VerificationStatus.PENDING
                    and (type is None or r.type == type)):
                r.status = VerificationStatus.EXPIRED
                count += 1
        return count

    def supersede_pending(self, admin_id, type, context, target_value, secret_hash, expires_at):
        self._expire(admin_id, context, type)
        record = VerificationRecord(
            id=str(uuid.uuid4()), admin_id=admin_id, type=type, context=context,
            target_value=target_value, secret_hash=secret_hash, status=VerificationStatus.PENDING,
            expires_at=expires_at, created_at=datetime.utcnow(),
        )
        self.records[record.id] = record
        return replace(record)

    def expire_pending(self, admin_id, context, type=None):
        self.expire_calls.append((admin_id, context, type))
        return self._expire(admin_id, context, type)

    def find_by_hash(self, secret_hash, type, context):
        for r in reversed(list(self.records.values())):
            if r.secret_hash == secret_hash and r.type == type and r.context == context:
                return replace(r)
        return None

    def find_pending(self, admin_id, type, context):
        for r in reversed(list(self.records.values())):
            if (r.admin_id == admin_id and r.type == type and r.context == context
                    and r.status == VerificationStatus.PENDING):
                return replace(r)
        return None

    def set_status(self, record_id, status):
        if record_id in self.records:
            self.records[record_id].status = status

    def pending(self):
        return [r for r in self.records.values() if r.status == VerificationStatus.PENDING]


class FakeResetSessionRepo:
    def __init__(self, admin_repo: Optional[FakeAdminRepo] = None):
        self.admin_repo = admin_repo
        self.sessions: Dict[str, ResetSessionDto] = {}

    def create(self, admin_id, expires_at, email_token_hash=None, email_token_expires_at=None,
               sms_code_hash=None, sms_code_expires_at=None):
        dto = ResetSessionDto(
            id=str(uuid.uuid4()), admin_id=admin_id,
            email_token_hash=email_token_hash, email_token_expires_at=email_token_expires_at,
            email_verified=False,
            sms_code_hash=sms_code_hash, sms_code_expires_at=sms_code_expires_at,
            sms_verified=False,
            status=ResetSessionStatus.PENDING, expires_at=expires_at, created_at=datetime.utcnow(),
        )
        self.sessions[dto.id] = dto
        return replace(dto)

    def get(self, session_id):
        s = self.sessions.get(session_id)
        return replace(s) if s else None

    def save(self, session):
        self.sessions[session.id] = replace(session)

    def complete_if_open(self, session, password_hash):
        stored = self.sessions.get(session.id)
        if not stored or stored.status in (ResetSessionStatus.COMPLETED, ResetSessionStatus.EXPIRED):
            return False
        # Admin first: if that write fails the session is left untouched
        admin = self.admin_repo.get_by_id(session.admin_id)
        admin.password_hash = password_hash
        self.admin_repo.save(admin)
        self.sessions[session.id] = replace(session)
        return True


class FakeNotifier:
    def __init__(self, sms_configured: bool = True):
        self.sms_configured = sms_configured
        self.emails = []
        self.sms = []

    def send_email(self, to, subject, html, text=None):
        self.emails.append({"to": to, "subject": subject, "html": html, "text": text})

    def send_sms(self, to, body):
        self.sms.append({"to": to, "body": body})

    def is_sms_configured(self):
        return self.sms_configured

    def last_email_param(self, name: str) -> str:
        match = re.search(rf"[?&]{name}=([^&\s\"]+)", self.emails[-1]["text"])
        return match.group(1)

    def last_sms_code(self) -> str:
        return re.search(r"\b(\d{6})\b", self.sms[-1]["body"]).group(1)


def make_admin(email: str = ADMIN_EMAIL, phone: Optional[str] = ADMIN_PHONE,
               password: str = ADMIN_PASSWORD, **overrides) -> AdminDto:
    now = datetime(2024, 1, 1)
    fields = dict(
        id=str(uuid.uuid4()), full_name="Grand Vista Admin", email=email, phone_number=phone,
        password_hash=hash_password(password), role="admin", email_verified=True, phone_verified=True,
        created_at=now, updated_at=now,
    )
    fields.update(overrides)
    return AdminDto(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def admin():
    return make_admin()


@pytest.fixture
def admin_repo(admin):
    return FakeAdminRepo([admin])


@pytest.fixture
def verification_repo():
    return FakeVerificationRepo()


@pytest.fixture
def session_repo(admin_repo):
    return FakeResetSessionRepo(admin_repo)


# ---------------------------------------------------------------------------
# HTTP fixtures: the real app over an in-memory SQLite database
# ---------------------------------------------------------------------------
@pytest.fixture
def api_notifier():
    return FakeNotifier(sms_configured=True)


@pytest.fixture
def client(tmp_path, api_notifier):
    from fastapi.testclient import TestClient
    from sqlmodel import Session, SQLModel

    from grandvista.database import create_db_and_tables, engine
    from grandvista.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
    from grandvista.infrastructure.storage.local_storage import LocalStorageRepository
    from grandvista.main import app
    from seed_admin import seed_admin

    with TestClient(app) as test_client:
        SQLModel.metadata.drop_all(engine)
        create_db_and_tables()
        with Session(engine) as session:
            seed_admin(session, ADMIN_EMAIL, ADMIN_PASSWORD, "Grand Vista Admin", phone_number=ADMIN_PHONE)

        app.state.notifier = api_notifier
        app.state.qr_storage = LocalStorageRepository(str(tmp_path / "qr-codes"))
        app.state.rate_limiter = InMemoryRateLimiter()
        yield test_client


@pytest.fixture
def auth_headers(client):
    resp = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}
