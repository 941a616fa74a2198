"""Preferences API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.deps import get_db
from src.config import get_settings
from src.core.preferences.models import PreferencesResponse, PreferencesUpdate
from src.core.preferences.repository import PreferencesRepository

router = APIRouter()
settings = get_settings()


@router.get("/settings", response_model=PreferencesResponse)
def read_preferences(db: Session = Depends(get_db)):
    """Show base currency, live toggle and provider selection."""
    prefs = PreferencesRepository(db).get()
    return PreferencesResponse.from_row(prefs, settings.finnhub_api_key)


@router.patch("/settings", response_model=PreferencesResponse)
def update_preferences(payload: PreferencesUpdate, db: Session = Depends(get_db)):
    """Update preferences; omitted fields are unchanged."""
    prefs = PreferencesRepository(db).update(**payload.model_dump(exclude_none=True))
    return PreferencesResponse.from_row(prefs, settings.finnhub_api_key)
