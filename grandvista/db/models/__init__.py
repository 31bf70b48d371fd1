# Models package (re-export feature modules for stable imports)
from .enums import (
    VerificationType,
    VerificationContext,
    VerificationStatus,
    ResetSessionStatus,
    ResetMethod,
    QRFormat,
)
from .admin.admin import Admin
from .auth.verification import AdminVerification
from .auth.password_reset import PasswordResetSession
from .qr.qr_code import QRCode
from .qr.scan_log import QRScanLog

__all__ = [
    "VerificationType",
    "VerificationContext",
    "VerificationStatus",
    "ResetSessionStatus",
    "ResetMethod",
    "QRFormat",
    "Admin",
    "AdminVerification",
    "PasswordResetSession",
    "QRCode",
    "QRScanLog",
]
