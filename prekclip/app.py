import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from prekclip.core.config import Settings, get_settings
from prekclip.core.logging_config import setup_logging
from prekclip.repositories.store import StateStore, build_storage
from prekclip.routers import actions as actions_router
from prekclip.routers import auth as auth_router
from prekclip.routers import posts as posts_router
from prekclip.routers import users as users_router
from prekclip.services.auth_service import AuthService
from prekclip.services.errors import StoreError
from prekclip.services.media_service import MediaStorage
from prekclip.services.social_service import SocialService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (CSP, anti clickjacking, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'none'; img-src 'self' data:; media-src 'self'; frame-ancestors 'none'",
        )
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def _store_error_handler(request: Request, exc: StoreError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same ``{"error": ...}`` shape as store errors."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory compatible with ``uvicorn prekclip.app:create_app --factory``."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file or None)

    storage = build_storage(settings)
    storage.initialize()
    store = StateStore(storage)

    app = FastAPI(title="PrekClip API")
    app.state.settings = settings
    app.state.store = store
    app.state.auth_service = AuthService(store, settings)
    app.state.social_service = SocialService(store)
    app.state.media_storage = MediaStorage.from_settings(settings)

    os.makedirs(settings.uploads_dir, exist_ok=True)
    app.mount(settings.uploads_url_prefix, StaticFiles(directory=str(settings.uploads_dir)), name="uploads")

    origins = list(settings.cors_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_exception_handler(StoreError, _store_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(auth_router.router)
    app.include_router(posts_router.router)
    app.include_router(actions_router.router)
    app.include_router(users_router.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    app.state.auth_service.ensure_bootstrap_account()
    logger.info("PrekClip API ready (storage=%s, uploads=%s)", settings.storage_backend, settings.uploads_dir)
    return app
