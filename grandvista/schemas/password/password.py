# grandvista/schemas/password/password.py
from pydantic import BaseModel, Field, validator
from typing import Optional

from ...db.models.enums import ResetMethod


class ResetIdentityResponse(BaseModel):
    maskedEmail: str
    phoneEnding: Optional[str] = None
    phoneVerified: bool = False
    hasPhone: bool


class ForgotPasswordRequest(BaseModel):
    method: ResetMethod
    value: str

    @validator('value')
    def validate_value(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('A value is required')
        return v


class SessionRequest(BaseModel):
    sessionId: str = Field(..., min_length=1, description="Password reset session ID")


class VerifyResetEmailRequest(SessionRequest):
    token: str = Field(..., min_length=1)


class VerifyResetSmsRequest(SessionRequest):
    code: str

    @validator('code')
    def validate_code(cls, v):
        v = v.strip()
        if len(v) < 4:
            raise ValueError('Verification code is required')
        return v


class ResetPasswordRequest(SessionRequest):
    newPassword: str = Field(..., min_length=8, max_length=128)
