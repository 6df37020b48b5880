from .session import get_db, session_scope, engine, SessionLocal, Base
from . import models  # noqa: F401

__all__ = ["get_db", "session_scope", "engine", "SessionLocal", "Base", "models"]
