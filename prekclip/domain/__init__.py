"""Domain types (users, posts, comments, sessions) and the document that holds them."""

from .entities import POST_KINDS, Comment, Database, Post, SessionRecord, User, new_id, now_ms

__all__ = ["POST_KINDS", "Comment", "Database", "Post", "SessionRecord", "User", "new_id", "now_ms"]
