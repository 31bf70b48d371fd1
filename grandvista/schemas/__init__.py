# Schemas package (re-export feature modules for stable imports)
from .auth.auth import *
from .profile.profile import *
from .verification.verification import *
from .password.password import *
from .qr.qr import *
from .common.common import *
