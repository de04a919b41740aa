"""Cached view of the ``system_settings`` key/value table.

The store is created by :func:`inventorypro.create_app` and kept on the
application object and refreshed at the start of every request, so writes made
by another worker process are picked up. Readers get an immutable snapshot;
:meth:`SettingsStore.refresh` swaps in a new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Dict, Iterable, Mapping

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from inventorypro.extensions import db
from inventorypro.models import SystemSetting


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemSettings:
    logo_url: str = ""
    primary_color: str = "215 70% 28%"
    accent_color: str = "160 60% 38%"
    sidebar_color: str = "215 70% 22%"
    system_name: str = "InventoryPro"


DEFAULT_SETTINGS = SystemSettings()
SETTING_KEYS: tuple[str, ...] = tuple(field.name for field in fields(SystemSettings))

COLOR_PRESETS: tuple[dict[str, str], ...] = (
    {"label": "Navy (default)", "primary": "215 70% 28%", "accent": "160 60% 38%", "sidebar": "215 70% 22%"},
    {"label": "Royal Blue", "primary": "220 80% 45%", "accent": "45 90% 50%", "sidebar": "220 75% 25%"},
    {"label": "Forest Green", "primary": "150 60% 30%", "accent": "30 80% 50%", "sidebar": "150 55% 20%"},
    {"label": "Deep Purple", "primary": "270 60% 35%", "accent": "320 70% 50%", "sidebar": "270 55% 22%"},
    {"label": "Corporate Red", "primary": "0 65% 40%", "accent": "210 70% 50%", "sidebar": "0 60% 25%"},
    {"label": "Modern Gray", "primary": "220 15% 35%", "accent": "200 70% 50%", "sidebar": "220 15% 18%"},
)


def merge_rows(rows: Iterable[tuple[str, str | None]]) -> SystemSettings:
    """Overlay recognised ``(key, value)`` rows on the defaults."""

    overrides: Dict[str, str] = {}
    for key, value in rows:
        if key in SETTING_KEYS:
            overrides[key] = value if value is not None else ""
    return replace(DEFAULT_SETTINGS, **overrides)


def theme_variables(settings: SystemSettings) -> Dict[str, str]:
    """CSS custom properties derived from the settings; values pass through unchecked."""

    return {
        "--primary": settings.primary_color,
        "--ring": settings.primary_color,
        "--sidebar-background": settings.sidebar_color,
        "--accent": settings.accent_color,
        "--sidebar-primary": settings.accent_color,
        "--sidebar-ring": settings.accent_color,
    }


class SettingsStore:
    def __init__(self, defaults: SystemSettings = DEFAULT_SETTINGS):
        self._settings = defaults
        self._theme = theme_variables(defaults)
        self._loading = True

    @property
    def settings(self) -> SystemSettings:
        return self._settings

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def theme(self) -> Dict[str, str]:
        return dict(self._theme)

    def _apply(self, settings: SystemSettings) -> None:
        self._theme = theme_variables(settings)
        self._settings = settings

    def refresh(self) -> SystemSettings:
        """Re-read every settings row and replace the cached snapshot."""

        try:
            rows = db.session.query(SystemSetting.key, SystemSetting.value).all()
        except SQLAlchemyError:
            db.session.rollback()
            logger.warning("Unable to load system settings; keeping cached values", exc_info=True)
        else:
            self._apply(merge_rows(rows))
        self._loading = False
        return self._settings


def ensure_default_settings() -> list[str]:
    """Insert a row for each recognised key that has none yet."""

    existing = {key for (key,) in db.session.query(SystemSetting.key).all()}
    created: list[str] = []
    for key in SETTING_KEYS:
        if key in existing:
            continue
        db.session.add(SystemSetting(key=key, value=getattr(DEFAULT_SETTINGS, key)))
        created.append(key)
    if created:
        db.session.commit()
    return created


def write_settings(values: Mapping[str, str]) -> int:
    """Update existing rows by key; keys without a row are left untouched."""

    updated = 0
    now = datetime.utcnow()
    for key, value in values.items():
        updated += SystemSetting.query.filter_by(key=key).update(
            {"value": value if value is not None else "", "updated_at": now},
            synchronize_session=False,
        )
    db.session.commit()
    return updated


def get_store(app=None) -> SettingsStore:
    target = app or current_app
    return target.extensions["settings_store"]
