import logging

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from ..config import settings
from ..database import get_session
from ..utils import decode_admin_token
from ..application.services.auth_service import AuthService
from ..application.services.password_reset_service import PasswordResetService
from ..application.services.profile_service import ProfileService
from ..application.services.qr_service import QRService
from ..application.services.verification_service import VerificationService
from ..infrastructure.persistence.sqlalchemy.repositories.admin_repository_sql import SqlAdminRepository
from ..infrastructure.persistence.sqlalchemy.repositories.qr_repository_sql import SqlQRRepository
from ..infrastructure.persistence.sqlalchemy.repositories.reset_session_repository_sql import SqlResetSessionRepository
from ..infrastructure.persistence.sqlalchemy.repositories.verification_repository_sql import SqlVerificationRepository

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer()


def get_current_admin(request: Request, credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> str:
    """Admin id from a valid bearer token."""
    try:
        payload = decode_admin_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.info(f"Admin session expired on {request.url.path}")
        raise HTTPException(
            status_code=401,
            detail={"message": "Session expired. Please log in again.", "code": "TOKEN_EXPIRED"},
        )
    except jwt.InvalidTokenError as e:
        logger.warning(f"Failed admin auth on {request.url.path}: {e}")
        raise HTTPException(
            status_code=401,
            detail={"message": "Invalid authentication token", "code": "TOKEN_INVALID"},
        )

    if payload.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    admin_id = payload.get("adminId") or payload.get("sub")
    if not admin_id:
        raise HTTPException(
            status_code=401,
            detail={"message": "Invalid authentication token", "code": "TOKEN_INVALID"},
        )
    return str(admin_id)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(admin_repo=SqlAdminRepository(session))


def get_profile_service(session: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(admin_repo=SqlAdminRepository(session))


def get_verification_service(request: Request, session: Session = Depends(get_session)) -> VerificationService:
    return VerificationService(
        admin_repo=SqlAdminRepository(session),
        verification_repo=SqlVerificationRepository(session),
        notifier=request.app.state.notifier,
        app_url=settings.ADMIN_APP_URL,
    )


def get_password_reset_service(request: Request, session: Session = Depends(get_session)) -> PasswordResetService:
    return PasswordResetService(
        admin_repo=SqlAdminRepository(session),
        session_repo=SqlResetSessionRepository(session),
        verification_repo=SqlVerificationRepository(session),
        notifier=request.app.state.notifier,
        app_url=settings.ADMIN_APP_URL,
        expose_debug_codes=not settings.is_production,
    )


def get_qr_service(request: Request, session: Session = Depends(get_session)) -> QRService:
    return QRService(
        qr_repo=SqlQRRepository(session),
        storage=request.app.state.qr_storage,
        renderer=request.app.state.qr_renderer,
        file_route=settings.QR_FILE_ROUTE,
        signed_url_ttl_seconds=settings.QR_SIGNED_URL_TTL_SECONDS,
    )


def rate_limit_password_reset(request: Request) -> None:
    limiter = request.app.state.rate_limiter
    ip = client_ip(request)
    if not limiter.allow(
        f"password-reset:{ip}",
        settings.RESET_RATE_LIMIT_MAX_REQUESTS,
        settings.RESET_RATE_LIMIT_WINDOW_SEC,
    ):
        logger.warning(f"Password reset rate limit exceeded for {ip}")
        request.app.state.audit_logger.log("password_reset_rate_limited", ip, ip_address=ip, success=False)
        raise HTTPException(status_code=429, detail="Too many password reset requests. Please try again later.")
