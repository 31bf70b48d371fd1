import logging
from typing import Any, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for failures that map to a client-facing 4xx response."""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(DomainError):
    default_message = "Resource not found"


class ExpiredError(DomainError):
    default_message = "The verification has expired"


class InvalidSecretError(DomainError):
    default_message = "Invalid verification secret"


class InvalidTokenError(InvalidSecretError):
    default_message = "Invalid verification token"


class InvalidCodeError(InvalidSecretError):
    default_message = "Invalid verification code"


class VerificationStepError(DomainError):
    default_message = "Verification steps were completed out of order"


class SessionClosedError(DomainError):
    default_message = "Password reset session is no longer active"


class WeakPasswordError(DomainError):
    default_message = (
        "Password does not meet complexity requirements "
        "(min 8 chars, include 3 of: upper, lower, number, symbol)"
    )


class ConflictError(DomainError):
    status_code = 409
    default_message = "Email address is already in use"


class SlugExhaustionError(DomainError):
    status_code = 409
    default_message = "Failed to generate unique QR slug"


class FileAccessDeniedError(DomainError):
    status_code = 403
    default_message = "Invalid or expired token"


class InvalidCredentialsError(DomainError):
    status_code = 401
    default_message = "Invalid email or password"


class ConfigurationError(Exception):
    """A transport (SMTP, Twilio) is missing credentials. Operator-facing only."""


def create_error_response(error_message: str, issues: Optional[List[Any]] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "message": error_message,
    }
    if issues:
        body["issues"] = issues
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authorization header missing"),
        )

    if isinstance(exc.detail, dict):
        content = create_error_response(exc.detail.get("message", "Request failed"))
        if exc.detail.get("code"):
            content["code"] = exc.detail["code"]
    else:
        content = create_error_response(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message),
    )


async def configuration_exception_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    # Detail stays in the server log; clients only learn the service is unavailable
    logger.error(f"Notification transport misconfigured on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content=create_error_response("Notification service is temporarily unavailable"),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = [
        {
            "path": [str(part) for part in err.get("loc", ()) if part != "body"],
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=create_error_response("Invalid payload", issues),
    )
