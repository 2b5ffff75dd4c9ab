"""Theme catalog endpoints consumed by the student app's theme picker."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from .themes import (
    SeasonalAnnouncement,
    Theme,
    UpcomingTheme,
    available_themes,
    contrasting_text_color,
    load_theme_catalog,
    resolve_theme,
    seasonal_announcements,
    today_local,
    upcoming_themes,
)

router = APIRouter(prefix="/api/themes", tags=["themes"])


class ThemePayload(BaseModel):
    theme: Theme
    requested: str
    fallback: bool
    text_on_primary: str
    text_on_background: str


def _today(on: Optional[date]) -> date:
    return on or today_local()


@router.get("/available", response_model=List[Theme])
def list_available_themes(on: Optional[date] = Query(default=None)) -> List[Theme]:
    return available_themes(_today(on))


@router.get("/upcoming", response_model=List[UpcomingTheme])
def list_upcoming_themes(
    on: Optional[date] = Query(default=None),
    days: Optional[int] = Query(default=None, ge=1, le=366),
) -> List[UpcomingTheme]:
    return upcoming_themes(_today(on), days)


@router.get("/announcements", response_model=List[SeasonalAnnouncement])
def list_announcements(on: Optional[date] = Query(default=None)) -> List[SeasonalAnnouncement]:
    return seasonal_announcements(_today(on))


@router.get("/{name}", response_model=ThemePayload)
def get_theme(name: str, on: Optional[date] = Query(default=None)) -> ThemePayload:
    if load_theme_catalog().get(name) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Theme '{name}' does not exist.")
    theme = resolve_theme(name, _today(on))
    return ThemePayload(
        theme=theme,
        requested=name,
        fallback=theme.key != name,
        text_on_primary=contrasting_text_color(theme.primary),
        text_on_background=contrasting_text_color(theme.background),
    )


__all__ = ["router"]
