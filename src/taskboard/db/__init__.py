"""Database engine, sessions and bootstrap data."""

from .session import create_schema, dispose_engine, get_engine, get_session, init_engine, session_maker

__all__ = ["create_schema", "dispose_engine", "get_engine", "get_session", "init_engine", "session_maker"]
