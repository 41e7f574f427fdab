import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from message_api.core.config import get_settings
from message_api.core.errors import DependencyError, UNAUTHORIZED_DETAIL
from message_api.core.logging import configure_logging
from message_api.db.session import init_db
from message_api.api.routers import health, messages

settings = get_settings()
configure_logging(settings.log_level, service=settings.app_name)
logger = logging.getLogger("message_api.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables:
        await init_db()
    logger.info("api.started", extra={"environment": settings.environment, "prefix": settings.api_prefix})
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

if settings.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Middleware approach ensures even endpoints without dependency declaration are protected.
if settings.auth_enabled:
    EXEMPT_PATHS = {
        "/",
        f"{settings.api_prefix}/status",
        app.openapi_url,
    }
    EXEMPT_PATHS = {p for p in EXEMPT_PATHS if isinstance(p, str)}
    EXEMPT_PREFIXES = (
        "/docs",
        "/redoc",
    )

    @app.middleware("http")
    async def auth_middleware(request: Request, call_next):
        if request.method == "OPTIONS":  # allow CORS preflight without auth
            return await call_next(request)
        path = request.url.path
        if path in EXEMPT_PATHS or any(path.startswith(prefix) for prefix in EXEMPT_PREFIXES):
            return await call_next(request)
        from message_api.core.auth import bearer_token, verify_token  # local import to avoid circular
        token = bearer_token(request.headers.get("Authorization"))
        unauthorized = JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": UNAUTHORIZED_DETAIL})
        if not token:
            return unauthorized
        try:
            request.state.verified_claims = await verify_token(token, settings)
        except Exception:
            logger.warning("auth.token.rejected", extra={"path": path})
            return unauthorized
        return await call_next(request)


@app.exception_handler(DependencyError)
async def dependency_error_handler(request: Request, exc: DependencyError):
    # Details are in the logs only.
    logger.error(
        "api.dependency.failed",
        extra={"dependency": exc.dependency, "path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal server error"})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "Invalid request"})


def _include(router):
    app.include_router(router, prefix=settings.api_prefix)

_include(health.router)
_include(messages.router)

@app.get("/")
async def root():
    return {"service": settings.app_name, "status": "ok"}
