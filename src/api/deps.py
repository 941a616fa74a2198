"""FastAPI dependencies."""

from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from src.core.preferences.repository import PreferencesRepository
from src.data.market.resolver import PriceResolver, build_price_resolver
from src.db.database import get_db as db_context
from src.db.models import Preferences


def get_db() -> Generator[Session, None, None]:
    """Yield a database session."""
    with db_context() as db:
        yield db


def get_preferences(db: Session = Depends(get_db)) -> Preferences:
    """Current preferences row."""
    return PreferencesRepository(db).get()


def get_price_resolver(prefs: Preferences = Depends(get_preferences)) -> PriceResolver:
    """Resolver configured from the stored preferences."""
    return build_price_resolver(prefs)
