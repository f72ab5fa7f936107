import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .audit import AuditLogMiddleware
from .config import (
    ALLOWED_ORIGINS,
    AUDIT_LOG_ENABLED,
    CLINIC_NAME,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_MAX,
    RATE_LIMIT_WINDOW_SECONDS,
    SECURITY_HEADERS_ENABLED,
)
from .database import close_db, init_db
from .domain.appointments import router as appointments_router
from .domain.attendance import router as attendance_router
from .domain.auth import router as auth_router
from .domain.billing import payments_router
from .domain.billing import router as invoices_router
from .domain.documents import router as documents_router
from .domain.inventory import router as inventory_router
from .domain.patients import router as patients_router
from .domain.prescriptions import router as prescriptions_router
from .domain.reports import router as reports_router
from .domain.treatments import router as treatments_router
from .exceptions import ClinicError
from .rate_limiter import RateLimitMiddleware
from .security_headers import SecurityHeadersMiddleware
from .shared.time_utils import utcnow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("passlib").setLevel(logging.ERROR)
logging.getLogger("httpx").setLevel(logging.WARNING)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    init_db()
    logger.info("Database tables ready")
    yield
    logger.info("Application shutting down...")
    close_db()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {success: false, message, ...context}"""
    content = {"success": False, "message": exc.detail}
    if isinstance(exc, ClinicError):
        content.update(exc.context)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(
        status_code=422, content={"success": False, "message": "Validation failed", "errors": errors}
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Unhandled error: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


def create_app(use_lifespan: bool = True, rate_limit: Optional[int] = RATE_LIMIT_MAX) -> FastAPI:
    app = FastAPI(
        title=f"{CLINIC_NAME} API",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    if AUDIT_LOG_ENABLED:
        app.add_middleware(AuditLogMiddleware, prefix=API_PREFIX)
        logger.info("Audit logging enabled")

    if RATE_LIMIT_ENABLED and rate_limit:
        app.add_middleware(
            RateLimitMiddleware,
            limit=rate_limit,
            window_seconds=RATE_LIMIT_WINDOW_SECONDS,
            prefix=API_PREFIX,
        )
        logger.info(f"Rate limiting enabled: {rate_limit} requests per {RATE_LIMIT_WINDOW_SECONDS}s")

    if SECURITY_HEADERS_ENABLED:
        app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/openapi.json", "/redoc"])
        logger.info("Security headers enabled")
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    # Routes
    for router in (
        auth_router,
        patients_router,
        appointments_router,
        treatments_router,
        prescriptions_router,
        documents_router,
        invoices_router,
        payments_router,
        inventory_router,
        attendance_router,
        reports_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/health")
    def health():
        return {"status": "ok", "timestamp": utcnow().isoformat()}

    return app


app = create_app()
