from enum import Enum


class VerificationType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


class VerificationContext(str, Enum):
    PROFILE = "profile"
    PASSWORD_RESET = "password-reset"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    EXPIRED = "expired"


class ResetSessionStatus(str, Enum):
    PENDING = "pending"
    EMAIL_VERIFIED = "email-verified"
    SMS_VERIFIED = "sms-verified"
    COMPLETED = "completed"
    EXPIRED = "expired"


class ResetMethod(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


class QRFormat(str, Enum):
    PNG = "png"
    SVG = "svg"
    PDF = "pdf"
