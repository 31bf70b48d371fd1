# grandvista/schemas/verification/verification.py
from pydantic import BaseModel, Field, validator

from ...db.models.enums import VerificationContext


class EmailConfirmRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Token from the verification link")
    context: VerificationContext = VerificationContext.PROFILE


class PhoneConfirmRequest(BaseModel):
    code: str

    @validator('code')
    def validate_code(cls, v):
        v = v.strip()
        if len(v) < 4:
            raise ValueError('Verification code is required')
        return v


class VerificationConfirmedResponse(BaseModel):
    message: str
    adminId: str
