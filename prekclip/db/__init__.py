"""SQL backend: declarative base, engine and session helpers."""

from .session import Base, get_engine, get_session, reset_engine, session_scope

__all__ = ["Base", "get_engine", "get_session", "reset_engine", "session_scope"]
