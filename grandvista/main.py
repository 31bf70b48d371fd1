from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from sqlalchemy import text
from sqlmodel import Session
import logging

# Load environment variables as early as possible
load_dotenv()

from .config import settings
from .database import create_db_and_tables, engine
from .exceptions import (
    ConfigurationError,
    DomainError,
    configuration_exception_handler,
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware, RequestSizeLimitMiddleware, SecurityMiddleware
from .routers import auth_router, password_router, profile_router, qr_public_router, qr_router, verification_router
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.notifications.gateway import build_notification_gateway
from .infrastructure.qr.renderer import QRCodeRenderer
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.storage.local_storage import LocalStorageRepository

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def build_rate_limiter():
    if settings.RATE_LIMIT_BACKEND.lower() == "redis" and settings.REDIS_URL:
        from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
        logger.info("Using Redis rate limiter")
        return RedisRateLimiter(settings.REDIS_URL)
    return InMemoryRateLimiter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        create_db_and_tables()
    except Exception as e:
        # Keep serving; /health reports the failure
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")

    app.state.notifier = build_notification_gateway(settings)
    app.state.qr_storage = LocalStorageRepository(settings.QR_STORAGE_DIR)
    app.state.qr_renderer = QRCodeRenderer(brand_name=settings.QR_BRAND_NAME)
    app.state.rate_limiter = build_rate_limiter()
    app.state.audit_logger = StdAuditLogger()
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

# Exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(DomainError, domain_exception_handler)
app.add_exception_handler(ConfigurationError, configuration_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Middleware
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.allowed_methods_list,
    allow_headers=settings.allowed_headers_list,
)

# Routers
app.include_router(auth_router.router)
app.include_router(profile_router.router)
app.include_router(verification_router.router)
app.include_router(password_router.router)
app.include_router(qr_router.router)
app.include_router(qr_public_router.router)


@app.get("/health", tags=["Health"])
def health():
    db_ok = getattr(app.state, "db_init_ok", True)
    if db_ok:
        try:
            with Session(engine) as session:
                session.exec(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check database query failed: {e}")
            db_ok = False

    body = {
        "status": "ok" if db_ok else "degraded",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "ok" if db_ok else (getattr(app.state, "db_init_error", None) or "unavailable"),
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("grandvista.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
