from fastapi import APIRouter, Depends, HTTPException, Request
import logging

from ..schemas import EmailConfirmRequest, MessageResponse, PhoneConfirmRequest, VerificationConfirmedResponse
from ..db.models.enums import VerificationContext
from ..application.services.verification_service import VerificationService
from .deps import client_ip, get_current_admin, get_verification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/profile", tags=["Verification"])


@router.post("/email/resend", response_model=MessageResponse)
def resend_email_verification(request: Request,
                              current_admin: str = Depends(get_current_admin),
                              service: VerificationService = Depends(get_verification_service)):
    admin = service.admin_repo.get_by_id(current_admin)
    if not admin:
        raise HTTPException(status_code=404, detail="Admin not found")
    if not admin.email:
        raise HTTPException(status_code=400, detail="Email address is missing")
    if admin.email_verified:
        return {"message": "Email is already verified"}

    service.request_email_verification(admin.id, admin.email, VerificationContext.PROFILE)
    request.app.state.audit_logger.log(
        "email_verification_sent", admin.email, admin_id=admin.id, ip_address=client_ip(request)
    )
    return {"message": "Verification email sent"}


@router.post("/email/confirm", response_model=VerificationConfirmedResponse)
def confirm_email_verification(payload: EmailConfirmRequest, request: Request,
                               service: VerificationService = Depends(get_verification_service)):
    admin = service.confirm_email_verification(payload.token, payload.context)
    request.app.state.audit_logger.log(
        "email_verified", admin.email, admin_id=admin.id, ip_address=client_ip(request)
    )
    return {"message": "Email verified successfully", "adminId": admin.id}


@router.post("/phone/resend", response_model=MessageResponse)
def resend_phone_verification(request: Request,
                              current_admin: str = Depends(get_current_admin),
                              service: VerificationService = Depends(get_verification_service)):
    admin = service.admin_repo.get_by_id(current_admin)
    if not admin:
        raise HTTPException(status_code=404, detail="Admin not found")
    if not admin.phone_number:
        raise HTTPException(status_code=400, detail="Phone number is missing from profile")
    if admin.phone_verified:
        return {"message": "Phone number is already verified"}

    service.request_phone_verification(admin.id, admin.phone_number, VerificationContext.PROFILE)
    request.app.state.audit_logger.log(
        "phone_verification_sent", admin.phone_number, admin_id=admin.id, ip_address=client_ip(request)
    )
    return {"message": "Verification SMS sent"}


@router.post("/phone/confirm", response_model=VerificationConfirmedResponse)
def confirm_phone_verification(payload: PhoneConfirmRequest, request: Request,
                               current_admin: str = Depends(get_current_admin),
                               service: VerificationService = Depends(get_verification_service)):
    admin = service.confirm_phone_verification(current_admin, payload.code, VerificationContext.PROFILE)
    request.app.state.audit_logger.log(
        "phone_verified", admin.phone_number or "", admin_id=admin.id, ip_address=client_ip(request)
    )
    return {"message": "Phone number verified successfully", "adminId": admin.id}
