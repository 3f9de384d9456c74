from __future__ import annotations

from fastapi import APIRouter, Request, Response

from prekclip.core.rate_limiter import rate_limit_ip
from prekclip.routers.deps import get_auth_service, get_settings_from
from prekclip.schemas import Credentials
from prekclip.services.session_service import clear_session_cookie, session_token, set_session_cookie

router = APIRouter(prefix="/auth", tags=["auth"])


def _limit(request: Request, scope: str) -> None:
    settings = get_settings_from(request)
    rate_limit_ip(
        request,
        scope,
        limit=settings.auth_rate_limit,
        window_seconds=settings.auth_rate_window_seconds,
        trusted_proxies=settings.trusted_proxies,
    )


@router.post("/register")
def register(payload: Credentials, request: Request, response: Response):
    _limit(request, "auth:register")
    result = get_auth_service(request).register(payload.username, payload.password)
    set_session_cookie(response, result.session_token, get_settings_from(request))
    return {"success": True, "user": result.user.public_dict(), "token": result.session_token}


@router.post("/login")
def login(payload: Credentials, request: Request, response: Response):
    _limit(request, "auth:login")
    result = get_auth_service(request).login(payload.username, payload.password)
    set_session_cookie(response, result.session_token, get_settings_from(request))
    return {"success": True, "user": result.user.public_dict(), "token": result.session_token}


@router.post("/logout")
def logout(request: Request, response: Response):
    get_auth_service(request).logout(session_token(request))
    clear_session_cookie(response)
    return {"success": True}
