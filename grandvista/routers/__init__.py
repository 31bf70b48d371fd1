# Routers package
from . import auth_router
from . import profile_router
from . import verification_router
from . import password_router
from . import qr_router
from . import qr_public_router

__all__ = [
    "auth_router",
    "profile_router",
    "verification_router",
    "password_router",
    "qr_router",
    "qr_public_router",
]
