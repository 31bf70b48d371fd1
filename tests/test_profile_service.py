import pytest

from grandvista.application.services.profile_service import ProfileService
from grandvista.exceptions import ConflictError, DomainError, NotFoundError, WeakPasswordError
from grandvista.security import verify_password

from conftest import ADMIN_PASSWORD, make_admin


@pytest.fixture
def service(admin_repo):
    return ProfileService(admin_repo=admin_repo)


def test_get_profile_hides_password_hash(service, admin):
    profile = service.get_profile(admin.id)
    assert profile["email"] == admin.email
    assert "password_hash" not in profile and "passwordHash" not in profile


def test_get_profile_unknown(service):
    with pytest.raises(NotFoundError):
        service.get_profile("missing")


def test_update_profile_keeps_verified_flags_when_unchanged(service, admin):
    profile = service.update_profile(admin.id, " Front Desk ", admin.email, admin.phone_number)
    assert profile["fullName"] == "Front Desk"
    assert profile["emailVerified"] is True
    assert profile["phoneVerified"] is True


def test_update_profile_changed_contacts_need_reverification(service, admin, admin_repo):
    profile = service.update_profile(admin.id, admin.full_name, "New@GrandVista.com", "+15550001111")
    assert profile["email"] == "new@grandvista.com"
    assert profile["emailVerified"] is False
    assert profile["phoneVerified"] is False
    assert admin_repo.admins[admin.id].phone_number == "+15550001111"


def test_update_profile_email_conflict(service, admin, admin_repo):
    other = make_admin(email="other@grandvista.com", phone=None)
    admin_repo.admins[other.id] = other
    with pytest.raises(ConflictError):
        service.update_profile(admin.id, admin.full_name, "other@grandvista.com", admin.phone_number)
    assert admin_repo.admins[admin.id].email == admin.email


def test_change_password(service, admin, admin_repo):
    service.change_password(admin.id, ADMIN_PASSWORD, "N3w-Passw0rd!")
    assert verify_password("N3w-Passw0rd!", admin_repo.admins[admin.id].password_hash)


def test_change_password_wrong_current(service, admin):
    with pytest.raises(DomainError, match="Current password is incorrect"):
        service.change_password(admin.id, "Wrong@123", "N3w-Passw0rd!")


def test_change_password_weak(service, admin):
    with pytest.raises(WeakPasswordError):
        service.change_password(admin.id, ADMIN_PASSWORD, "password")
