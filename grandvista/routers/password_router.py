from fastapi import APIRouter, Depends, Request
import logging

from ..schemas import (
    ForgotPasswordRequest, MessageResponse, ResetIdentityResponse,
    ResetPasswordRequest, VerifyResetEmailRequest, VerifyResetSmsRequest,
)
from ..exceptions import DomainError
from ..application.services.password_reset_service import PasswordResetService
from .deps import client_ip, get_password_reset_service, rate_limit_password_reset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/password", tags=["Password Reset"])


@router.get("/identity", response_model=ResetIdentityResponse)
def get_reset_identity(service: PasswordResetService = Depends(get_password_reset_service)):
    return service.get_registered_admin_contact()


@router.post(
    "/forgot",
    dependencies=[Depends(rate_limit_password_reset)],
)
def forgot_password(payload: ForgotPasswordRequest, request: Request,
                    service: PasswordResetService = Depends(get_password_reset_service)):
    audit = request.app.state.audit_logger
    ip = client_ip(request)
    try:
        result = service.initiate_password_reset(payload.method, payload.value)
    except DomainError:
        audit.log("password_reset_requested", payload.value, ip_address=ip, success=False,
                  details={"method": payload.method.value})
        raise
    audit.log("password_reset_requested", payload.value, ip_address=ip,
              details={"method": payload.method.value, "session_id": result["sessionId"]})
    return {"message": "Password reset initiated", **result}


@router.post("/verify-email")
def verify_reset_email(payload: VerifyResetEmailRequest,
                       service: PasswordResetService = Depends(get_password_reset_service)):
    result = service.verify_email_for_reset(payload.sessionId, payload.token)
    message = "Email verified. SMS code sent." if result["smsRequired"] else "Email verified."
    return {"message": message, "smsRequired": result["smsRequired"]}


@router.post("/verify-sms")
def verify_reset_sms(payload: VerifyResetSmsRequest,
                     service: PasswordResetService = Depends(get_password_reset_service)):
    result = service.verify_sms_for_reset(payload.sessionId, payload.code)
    return {"message": "Phone number verified", "smsVerified": result["smsVerified"]}


@router.post("/reset", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, request: Request,
                   service: PasswordResetService = Depends(get_password_reset_service)):
    service.complete_password_reset(payload.sessionId, payload.newPassword)
    request.app.state.audit_logger.log(
        "password_reset_completed", payload.sessionId, ip_address=client_ip(request)
    )
    return {"message": "Password updated successfully"}
