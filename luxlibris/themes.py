"""Seasonal theme windows and the theme catalog served to the student app."""

from __future__ import annotations

import calendar
import json
import logging
from datetime import date, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import get_settings

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_THEME = "classic_lux"

_LEAP_YEAR = 2000


class ThemeWindow(BaseModel):
    """Recurring month/day range. ``start_month > end_month`` wraps the new year."""

    model_config = ConfigDict(frozen=True)

    name: str
    start_month: int = Field(ge=1, le=12)
    start_day: int = Field(ge=1, le=31)
    end_month: int = Field(ge=1, le=12)
    end_day: int = Field(ge=1, le=31)

    @model_validator(mode="after")
    def _check_days(self) -> "ThemeWindow":
        for month, day in ((self.start_month, self.start_day), (self.end_month, self.end_day)):
            if day > calendar.monthrange(_LEAP_YEAR, month)[1]:
                raise ValueError(f"Day {day} does not exist in month {month}.")
        if self.start_month == self.end_month and self.start_day > self.end_day:
            raise ValueError(
                f"Window '{self.name}' starts after it ends within month {self.start_month}."
            )
        return self

    @property
    def start(self) -> Tuple[int, int]:
        return (self.start_month, self.start_day)

    @property
    def end(self) -> Tuple[int, int]:
        return (self.end_month, self.end_day)

    @property
    def wraps_year(self) -> bool:
        return self.start_month > self.end_month


def _occurrence(month: int, day: int, year: int) -> date:
    # Feb 29 falls back to Feb 28 outside leap years.
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _bounds(window: ThemeWindow, year: int) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    start = _occurrence(window.start_month, window.start_day, year)
    end = _occurrence(window.end_month, window.end_day, year)
    return (start.month, start.day), (end.month, end.day)


def is_active(window: ThemeWindow, today: date) -> bool:
    current = (today.month, today.day)
    start, end = _bounds(window, today.year)
    if window.wraps_year:
        return current >= start or current <= end
    return start <= current <= end


def active_windows(windows: Iterable[ThemeWindow], today: date) -> List[ThemeWindow]:
    """Every window containing ``today``, in the order given."""
    return [window for window in windows if is_active(window, today)]


def next_start(window: ThemeWindow, today: date) -> date:
    """First start date strictly after ``today``."""
    candidate = _occurrence(window.start_month, window.start_day, today.year)
    if candidate <= today:
        candidate = _occurrence(window.start_month, window.start_day, today.year + 1)
    return candidate


def upcoming(
    windows: Iterable[ThemeWindow],
    today: date,
    horizon_days: int,
) -> List[Tuple[ThemeWindow, int]]:
    """Windows starting within ``horizon_days`` of ``today``, soonest first."""
    found: List[Tuple[ThemeWindow, int]] = []
    for window in windows:
        days_until = (next_start(window, today) - today).days
        if 0 < days_until <= horizon_days:
            found.append((window, days_until))
    found.sort(key=lambda entry: entry[1])
    return found


class Theme(BaseModel):
    key: str
    name: str
    asset_prefix: str
    primary: str
    secondary: str
    accent: str
    background: str
    surface: str
    text_primary: str
    text_secondary: str
    icon: Optional[str] = None
    seasonal: bool = False
    liturgical: bool = False
    window: Optional[ThemeWindow] = None


class SeasonalAnnouncement(BaseModel):
    key: str
    name: str
    icon: Optional[str] = None
    message: str
    liturgical: bool = False


class UpcomingTheme(BaseModel):
    key: str
    name: str
    icon: Optional[str] = None
    liturgical: bool = False
    starts_on: date
    days_until: int


class ThemeCatalog(BaseModel):
    base: Dict[str, Theme]
    seasonal: Dict[str, Theme]

    def get(self, key: str) -> Optional[Theme]:
        return self.base.get(key) or self.seasonal.get(key)

    @property
    def windows(self) -> List[ThemeWindow]:
        return [theme.window for theme in self.seasonal.values() if theme.window is not None]


def _build_themes(raw: Dict[str, dict], *, seasonal: bool) -> Dict[str, Theme]:
    themes: Dict[str, Theme] = {}
    for key, payload in raw.items():
        data = dict(payload)
        window = data.pop("window", None)
        themes[key] = Theme(
            key=key,
            asset_prefix=data.pop("asset_prefix", key),
            seasonal=seasonal,
            window=ThemeWindow(name=key, **window) if window else None,
            **data,
        )
    return themes


@lru_cache
def load_theme_catalog(path: Optional[Path] = None) -> ThemeCatalog:
    source = path or DATA_DIR / "themes.json"
    with source.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    catalog = ThemeCatalog(
        base=_build_themes(raw.get("base", {}), seasonal=False),
        seasonal=_build_themes(raw.get("seasonal", {}), seasonal=True),
    )
    if DEFAULT_THEME not in catalog.base:
        raise RuntimeError(f"Theme catalog {source} is missing the default theme '{DEFAULT_THEME}'.")
    return catalog


def today_local(now: Optional[datetime] = None) -> date:
    """Calendar date in the configured theme timezone."""
    tz_name = get_settings().theme_timezone
    try:
        tz = ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown theme timezone %s; using UTC", tz_name)
        tz = ZoneInfo("UTC")
    if now is None:
        return datetime.now(tz).date()
    return now.astimezone(tz).date()


def _active_seasonal(catalog: ThemeCatalog, today: date) -> List[Theme]:
    return [
        theme
        for theme in catalog.seasonal.values()
        if theme.window is not None and is_active(theme.window, today)
    ]


def available_themes(
    today: Optional[date] = None,
    catalog: Optional[ThemeCatalog] = None,
) -> List[Theme]:
    """Base themes followed by the seasonal themes active on ``today``."""
    catalog = catalog or load_theme_catalog()
    today = today or today_local()
    return list(catalog.base.values()) + _active_seasonal(catalog, today)


def is_theme_available(
    key: str,
    today: Optional[date] = None,
    catalog: Optional[ThemeCatalog] = None,
) -> bool:
    catalog = catalog or load_theme_catalog()
    if key in catalog.base:
        return True
    theme = catalog.seasonal.get(key)
    if theme is None or theme.window is None:
        return False
    return is_active(theme.window, today or today_local())


def resolve_theme(
    key: Optional[str],
    today: Optional[date] = None,
    catalog: Optional[ThemeCatalog] = None,
) -> Theme:
    """Return ``key`` when it is usable today, otherwise the default theme."""
    catalog = catalog or load_theme_catalog()
    if key and is_theme_available(key, today, catalog):
        theme = catalog.get(key)
        assert theme is not None
        return theme
    if key:
        logger.info("Theme %s is not available; falling back to %s", key, DEFAULT_THEME)
    return catalog.base[DEFAULT_THEME]


def seasonal_announcements(
    today: Optional[date] = None,
    catalog: Optional[ThemeCatalog] = None,
) -> List[SeasonalAnnouncement]:
    catalog = catalog or load_theme_catalog()
    announcements = []
    for theme in _active_seasonal(catalog, today or today_local()):
        prefix = f"{theme.icon} " if theme.icon else ""
        announcements.append(
            SeasonalAnnouncement(
                key=theme.key,
                name=theme.name,
                icon=theme.icon,
                message=f"{prefix}Special {theme.name} theme is available!",
                liturgical=theme.liturgical,
            )
        )
    return announcements


def upcoming_themes(
    today: Optional[date] = None,
    days_ahead: Optional[int] = None,
    catalog: Optional[ThemeCatalog] = None,
) -> List[UpcomingTheme]:
    catalog = catalog or load_theme_catalog()
    today = today or today_local()
    horizon = days_ahead if days_ahead is not None else get_settings().upcoming_theme_horizon_days
    entries: List[UpcomingTheme] = []
    for window, days_until in upcoming(catalog.windows, today, horizon):
        theme = catalog.seasonal[window.name]
        entries.append(
            UpcomingTheme(
                key=theme.key,
                name=theme.name,
                icon=theme.icon,
                liturgical=theme.liturgical,
                starts_on=today + timedelta(days=days_until),
                days_until=days_until,
            )
        )
    return entries


def is_liturgical(key: str, catalog: Optional[ThemeCatalog] = None) -> bool:
    theme = (catalog or load_theme_catalog()).get(key)
    return bool(theme and theme.liturgical)


def _rgb(hex_color: str) -> Tuple[int, int, int]:
    value = hex_color.strip().lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        raise ValueError(f"Expected a #RRGGBB colour, got {hex_color!r}.")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def is_light_background(hex_color: str) -> bool:
    red, green, blue = _rgb(hex_color)
    luminance = (0.299 * red + 0.587 * green + 0.114 * blue) / 255
    return luminance > 0.5


def contrasting_text_color(hex_color: str) -> str:
    return "#000000" if is_light_background(hex_color) else "#FFFFFF"


__all__ = [
    "DEFAULT_THEME",
    "SeasonalAnnouncement",
    "Theme",
    "ThemeCatalog",
    "ThemeWindow",
    "UpcomingTheme",
    "active_windows",
    "available_themes",
    "contrasting_text_color",
    "is_active",
    "is_light_background",
    "is_liturgical",
    "is_theme_available",
    "load_theme_catalog",
    "next_start",
    "resolve_theme",
    "seasonal_announcements",
    "today_local",
    "upcoming",
    "upcoming_themes",
]
