"""SQLAlchemy tables mirroring the JSON document (users, posts, sessions)."""
from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
)

from .session import Base


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    username = Column(String(255), nullable=False, index=True)
    password_hash = Column(Text, nullable=False, default="")
    avatar = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(BigInteger, nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)


class FollowRow(Base):
    """One follow edge; both ``following`` and ``followers`` lists are read from it."""

    __tablename__ = "follows"

    follower_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    followee_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(String(64), primary_key=True)
    author_id = Column(String(64), nullable=False, index=True)
    kind = Column(String(16), nullable=False)
    media_reference = Column(Text, nullable=False)
    caption = Column(Text, nullable=False, default="")
    created_at = Column(BigInteger, nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)


class LikeRow(Base):
    __tablename__ = "post_likes"

    post_id = Column(String(64), ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False, default=0)


class CommentRow(Base):
    """Comment ids are only unique within their post, as in legacy documents."""

    __tablename__ = "comments"

    post_id = Column(String(64), ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    id = Column(String(64), primary_key=True)
    username = Column(String(255), nullable=False)
    avatar = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    text = Column(Text, nullable=False, default="")
    created_at = Column(BigInteger, nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)


class SessionRow(Base):
    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(64), nullable=False)
    expires_at = Column(BigInteger, nullable=False)
