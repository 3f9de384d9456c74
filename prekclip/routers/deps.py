"""Accessors for the services stored on ``app.state`` by ``create_app``."""
from __future__ import annotations

from fastapi import Request

from prekclip.core.config import Settings
from prekclip.services.auth_service import AuthService
from prekclip.services.media_service import MediaStorage
from prekclip.services.session_service import session_token
from prekclip.services.social_service import SocialService


def _state(request: Request, name: str):
    value = getattr(getattr(request.app, "state", None), name, None)
    if value is None:
        raise RuntimeError(f"{name} not configured")
    return value


def get_settings_from(request: Request) -> Settings:
    return _state(request, "settings")


def get_auth_service(request: Request) -> AuthService:
    return _state(request, "auth_service")


def get_social_service(request: Request) -> SocialService:
    return _state(request, "social_service")


def get_media_storage(request: Request) -> MediaStorage:
    return _state(request, "media_storage")


def current_user_id(request: Request) -> str:
    """Dependency: the user behind the request's session, or 401."""
    return get_auth_service(request).resolve_session(session_token(request))
