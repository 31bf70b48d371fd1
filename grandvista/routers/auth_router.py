from fastapi import APIRouter, Depends, Request
import logging

from ..schemas import ErrorResponse, LoginRequest, LoginResponse
from ..exceptions import InvalidCredentialsError
from ..application.services.auth_service import AuthService
from .deps import client_ip, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse, responses={401: {"model": ErrorResponse}})
def login(payload: LoginRequest, request: Request, service: AuthService = Depends(get_auth_service)):
    audit = request.app.state.audit_logger
    try:
        result = service.login(payload.email, payload.password)
    except InvalidCredentialsError:
        audit.log("admin_login", payload.email, ip_address=client_ip(request), success=False)
        raise
    audit.log("admin_login", payload.email, admin_id=result["admin"]["id"], ip_address=client_ip(request))
    return result
