"""Session helpers (issue tokens, cookies, validation)."""
from __future__ import annotations

import secrets
import time

from fastapi import Request, Response

from prekclip.core.config import Settings
from prekclip.domain.entities import Database, SessionRecord

SESSION_COOKIE_NAME = "session"


def issue_session(db: Database, user_id: str, ttl_seconds: int) -> str:
    """Create a session token inside an open transaction, pruning expired ones."""
    now = int(time.time())
    purge_expired(db, now)
    token = secrets.token_urlsafe(32)
    db.sessions[token] = SessionRecord(user_id=user_id, expires_at=now + max(60, ttl_seconds))
    return token


def purge_expired(db: Database, now: int | None = None) -> None:
    now = int(time.time()) if now is None else now
    for token in [t for t, s in db.sessions.items() if s.expires_at < now]:
        del db.sessions[token]


def session_token(request: Request) -> str | None:
    """Bearer token from the Authorization header, falling back to the cookie."""
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    secure_cookie = settings.app_env == "prod"
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=secure_cookie,
        samesite="strict",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
