# =============================================================================================
# AUTHAPI/MAIN.PY - FASTAPI APPLICATION FACTORY
# =============================================================================================
# Entry point of the API. create_app() wires everything explicitly, once per process:
#
#   Settings ─┬─> engine ─> session factory ─> CredentialStore ─┐
#             ├─> PasswordHasher(BCRYPT_ROUNDS) ─────────────────┼─> AuthService ─> app.state
#             └─> TokenCodec(access ctx, refresh ctx) ───────────┘
#
# Routers and dependencies read the service from app.state.auth_service, so tests can
# build an app around an in-memory database without touching module-level state.
#
# RUN:
#   authapi                                           (console script, uses HOST/PORT)
#   uvicorn authapi.main:create_app --factory --reload
# =============================================================================================

import time
import uuid
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from authapi.core import errors
from authapi.core.config import Settings, get_settings
from authapi.core.db import build_engine, build_session_factory, init_db
from authapi.core.logging import bind_request_id, clear_context, configure_logging, get_logger
from authapi.core.security import PasswordHasher, TokenCodec
from authapi.routers import auth, users
from authapi.services.auth import AuthService
from authapi.services.credentials import CredentialStore

logger = get_logger(__name__)

# -------------------------
# Domain error → HTTP status (the service itself never chooses status codes)
# -------------------------
STATUS_BY_ERROR: dict[type[errors.AuthError], int] = {
    errors.DuplicateCredential: 409,
    errors.InvalidCredentials: 401,
    errors.InvalidToken: 401,
    errors.MissingToken: 401,
    errors.UserNotFound: 401,
    errors.AuthenticationFailed: 401,
    errors.AuthenticationRequired: 401,
    errors.AccessDenied: 403,
    errors.NotFound: 404,
}


def status_for(exc: errors.AuthError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return 400


# =============================================================================================
# EXCEPTION HANDLERS (every error body is {"error": <message>})
# =============================================================================================

async def handle_auth_error(request: Request, exc: errors.AuthError) -> JSONResponse:
    status_code = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content={"error": exc.message}, headers=headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    400 with one entry per invalid field:
        {"error": "Validation failed", "details": [{"field": "email", "message": "..."}]}
    """
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ())]
        # Drop the leading "body" / "query" / "path" marker
        field = ".".join(location[1:]) or ".".join(location)
        details.append({"field": field, "message": error.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": details},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# =============================================================================================
# APPLICATION FACTORY
# =============================================================================================

def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """
    Build a fully wired FastAPI application.

    Args:
        settings: Configuration (defaults to get_settings(), i.e. the environment)
        engine: SQLAlchemy engine (defaults to one built from settings.DATABASE_URL)

    TESTING:
        engine = build_engine("sqlite:///:memory:")
        app = create_app(Settings(ENVIRONMENT="test", BCRYPT_ROUNDS=4), engine)
    """
    settings = settings or get_settings()
    configure_logging(settings)

    engine = engine or build_engine(settings.DATABASE_URL)
    auth_service = AuthService(
        store=CredentialStore(build_session_factory(engine)),
        hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        codec=TokenCodec.from_settings(settings),
    )

    app = FastAPI(
        title="Auth API",
        description="Registration, login and rotating refresh-token sessions",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.auth_service = auth_service

    # -------------------------
    # Database initialization on startup
    # -------------------------
    @app.on_event("startup")
    def on_startup():
        init_db(engine)
        logger.info("Application started", environment=settings.ENVIRONMENT)

    # -------------------------
    # Middleware
    # -------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """One log line per request, tagged with a request id (X-Request-ID in/out)."""
        clear_context()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        bind_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response
        finally:
            clear_context()

    # -------------------------
    # Error handlers
    # -------------------------
    app.add_exception_handler(errors.AuthError, handle_auth_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # -------------------------
    # Routes
    # -------------------------
    app.include_router(auth.router)
    app.include_router(users.router)

    @app.get("/health", tags=["System"])
    def health():
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


def run() -> None:
    """Console-script entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "authapi.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,  # structlog owns the log output
    )
