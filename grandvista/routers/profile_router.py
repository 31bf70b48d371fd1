from fastapi import APIRouter, Depends
import logging

from ..schemas import AdminProfile, ChangePasswordRequest, MessageResponse, UpdateProfileRequest, UpdateProfileResponse
from ..application.services.profile_service import ProfileService
from .deps import get_current_admin, get_profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Profile"])


@router.get("/profile", response_model=AdminProfile)
def get_profile(current_admin: str = Depends(get_current_admin),
                service: ProfileService = Depends(get_profile_service)):
    return service.get_profile(current_admin)


@router.put("/profile", response_model=UpdateProfileResponse)
def update_profile(payload: UpdateProfileRequest,
                   current_admin: str = Depends(get_current_admin),
                   service: ProfileService = Depends(get_profile_service)):
    profile = service.update_profile(current_admin, payload.fullName, payload.email, payload.phoneNumber)
    return {"message": "Profile updated successfully", "profile": profile}


@router.post("/profile/change-password", response_model=MessageResponse)
def change_password(payload: ChangePasswordRequest,
                    current_admin: str = Depends(get_current_admin),
                    service: ProfileService = Depends(get_profile_service)):
    return service.change_password(current_admin, payload.currentPassword, payload.newPassword)
