"""
Authentication and identity related use cases.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging
import secrets
import time

from prekclip.core.config import Settings, get_settings
from prekclip.core.security import hash_password, is_legacy, verify_password
from prekclip.domain.entities import User, new_id, now_ms
from prekclip.repositories.store import StateStore
from prekclip.services.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from prekclip.services.session_service import issue_session

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: User
    session_token: str


@dataclass
class AuthService:
    """Handles registration, login, sessions and the bootstrap account."""

    store: StateStore
    settings: Optional[Settings] = None

    def __post_init__(self):
        if self.settings is None:
            self.settings = get_settings()

    # -------------------------------------- registration --------------------------------------
    def register(self, username: str, password: str) -> AuthResult:
        name = (username or "").strip()
        if not name or not password:
            raise BadRequestError("Username and password are required")
        with self.store.transaction() as db:
            if db.find_user_by_username(name, case_insensitive=True):
                raise ConflictError("User already exists")
            user = User(id=new_id("user"), username=name, password=hash_password(password), created_at=now_ms())
            db.users.append(user)
            token = issue_session(db, user.id, self.settings.session_ttl_seconds)
        logger.info("Registered user %s (%s)", user.username, user.id)
        return AuthResult(user=user, session_token=token)

    def ensure_bootstrap_account(self) -> Optional[User]:
        """Create the reserved verified account unless its username is already taken."""
        name = self.settings.bootstrap_username
        if not name:
            return None
        password = self.settings.bootstrap_password
        with self.store.transaction() as db:
            if db.find_user_by_username(name, case_insensitive=True):
                return None
            generated = not password
            if generated:
                password = secrets.token_urlsafe(12)
            user = User(
                id=new_id("user"),
                username=name,
                password=hash_password(password),
                is_verified=True,
                created_at=now_ms(),
            )
            db.users.append(user)
        if generated:
            logger.warning("Created bootstrap account %r with generated password %s", name, password)
        else:
            logger.info("Created bootstrap account %r", name)
        return user

    # -------------------------------------- login --------------------------------------
    def login(self, username: str, password: str) -> AuthResult:
        with self.store.transaction() as db:
            matches = [u for u in db.users if u.username == username and verify_password(password, u.password)]
            if len(matches) != 1:
                logger.warning("Failed login for %r", username)
                raise UnauthorizedError("Invalid credentials")
            user = matches[0]
            if is_legacy(user.password):
                user.password = hash_password(password)
                logger.info("Upgraded legacy password storage for %s", user.id)
            token = issue_session(db, user.id, self.settings.session_ttl_seconds)
        return AuthResult(user=user, session_token=token)

    def logout(self, session_token: Optional[str]) -> None:
        if not session_token:
            return
        with self.store.transaction() as db:
            db.sessions.pop(session_token, None)

    def resolve_session(self, session_token: Optional[str]) -> str:
        """Return the user id behind a live session token."""
        if not session_token:
            raise UnauthorizedError("Login required")
        now = int(time.time())
        with self.store.snapshot() as db:
            record = db.sessions.get(session_token)
            user = db.find_user(record.user_id) if record else None
        if record and user and record.expires_at >= now:
            return user.id
        if record:
            with self.store.transaction() as db:
                db.sessions.pop(session_token, None)
        raise UnauthorizedError("Session expired or invalid")

    # -------------------------------------- admin --------------------------------------
    def set_verified(self, username: str, verified: bool = True) -> User:
        with self.store.transaction() as db:
            user = db.find_user_by_username(username)
            if not user:
                raise NotFoundError("User not found")
            user.is_verified = verified
        logger.info("Set isVerified=%s for %s", verified, user.id)
        return user
