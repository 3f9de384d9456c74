"""
In-memory shape of the persisted document.

Attribute names follow the domain vocabulary, while ``to_dict``/``from_dict``
use the keys of the legacy ``database.json`` file (``userId``, ``type``,
``src``, ``timestamp``...) so existing documents load unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional
import secrets
import time

POST_KINDS = ("image", "video")


def new_id(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(8)}"


def now_ms() -> int:
    return int(time.time() * 1000)


def _distinct_ids(items: list, prefix: str) -> list:
    """Give empty or repeated ids a stable replacement so every id is unique.

    Replacements depend only on position, so read-only loads of the same
    document agree on them.
    """
    seen: set[str] = set()
    result = []
    for index, item in enumerate(items):
        candidate = item.id or f"{prefix}_{index}"
        suffix = 1
        while candidate in seen:
            candidate = f"{item.id or prefix}-{suffix}"
            suffix += 1
        seen.add(candidate)
        result.append(item if candidate == item.id else replace(item, id=candidate))
    return result


def _unique(values: Iterable[Any] | None, *, exclude: Any = None) -> list:
    """Drop duplicates (first occurrence wins) and an optional excluded value."""
    return [v for v in dict.fromkeys(values or []) if v is not None and v != exclude]


@dataclass
class User:
    id: str
    username: str
    password: str
    avatar: Optional[str] = None
    followers: list[str] = field(default_factory=list)
    following: list[str] = field(default_factory=list)
    is_verified: bool = False
    created_at: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "avatar": self.avatar,
            "followers": list(self.followers),
            "following": list(self.following),
            "isVerified": self.is_verified,
            "createdAt": self.created_at,
        }

    def public_dict(self) -> dict:
        data = self.to_dict()
        data.pop("password", None)
        return data

    def search_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "avatar": self.avatar,
            "isVerified": self.is_verified,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        uid = str(data.get("id") or "")
        return cls(
            id=uid,
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
            avatar=data.get("avatar") or None,
            followers=_unique(data.get("followers"), exclude=uid),
            following=_unique(data.get("following"), exclude=uid),
            is_verified=bool(data.get("isVerified", False)),
            created_at=int(data.get("createdAt") or 0),
        )


@dataclass(frozen=True)
class Comment:
    """Snapshot of the commenter's display fields; never updated after creation."""

    id: str
    username: str
    avatar: Optional[str]
    is_verified: bool
    text: str
    created_at: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "avatar": self.avatar,
            "isVerified": self.is_verified,
            "text": self.text,
            "timestamp": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Comment":
        return cls(
            id=str(data.get("id") or ""),
            username=str(data.get("username") or ""),
            avatar=data.get("avatar") or None,
            is_verified=bool(data.get("isVerified", False)),
            text=str(data.get("text") or ""),
            created_at=int(data.get("timestamp") or 0),
        )


@dataclass
class Post:
    id: str
    author_id: str
    kind: str
    media_reference: str
    caption: str = ""
    likes: list[str] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    created_at: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.author_id,
            "type": self.kind,
            "src": self.media_reference,
            "caption": self.caption,
            "likes": list(self.likes),
            "comments": [c.to_dict() for c in self.comments],
            "timestamp": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Post":
        return cls(
            id=str(data.get("id") or ""),
            author_id=str(data.get("userId") or ""),
            kind=str(data.get("type") or "image"),
            media_reference=str(data.get("src") or ""),
            caption=str(data.get("caption") or ""),
            likes=_unique(data.get("likes")),
            comments=_distinct_ids([Comment.from_dict(c) for c in (data.get("comments") or [])], "cmt"),
            created_at=int(data.get("timestamp") or 0),
        )


@dataclass
class SessionRecord:
    user_id: str
    expires_at: int

    def to_dict(self) -> dict:
        return {"userId": self.user_id, "expiresAt": self.expires_at}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionRecord":
        return cls(user_id=str(data.get("userId") or ""), expires_at=int(data.get("expiresAt") or 0))


@dataclass
class Database:
    """The whole persisted state: loaded, mutated and written back as one unit."""

    users: list[User] = field(default_factory=list)
    posts: list[Post] = field(default_factory=list)
    sessions: dict[str, SessionRecord] = field(default_factory=dict)

    # -------------------------------------- lookups --------------------------------------
    def find_user(self, user_id: str | None) -> Optional[User]:
        if not user_id:
            return None
        return next((u for u in self.users if u.id == user_id), None)

    def find_user_by_username(self, username: str, *, case_insensitive: bool = False) -> Optional[User]:
        if case_insensitive:
            wanted = (username or "").lower()
            return next((u for u in self.users if u.username.lower() == wanted), None)
        return next((u for u in self.users if u.username == username), None)

    def find_post(self, post_id: str | None) -> Optional[Post]:
        if not post_id:
            return None
        return next((p for p in self.posts if p.id == post_id), None)

    # -------------------------------------- serialization --------------------------------------
    def to_dict(self) -> dict:
        return {
            "users": [u.to_dict() for u in self.users],
            "posts": [p.to_dict() for p in self.posts],
            "sessions": {token: s.to_dict() for token, s in self.sessions.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Database":
        data = data or {}
        return cls(
            users=_distinct_ids([User.from_dict(u) for u in (data.get("users") or [])], "user"),
            posts=_distinct_ids([Post.from_dict(p) for p in (data.get("posts") or [])], "post"),
            sessions={
                str(token): SessionRecord.from_dict(meta)
                for token, meta in (data.get("sessions") or {}).items()
            },
        )
