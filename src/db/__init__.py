"""Database module."""

from .database import get_db, init_db, engine, SessionLocal
from .models import Base, Holding, Preferences

__all__ = [
    "get_db",
    "init_db",
    "engine",
    "SessionLocal",
    "Base",
    "Holding",
    "Preferences",
]
