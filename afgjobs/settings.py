import copy
from typing import Any, Dict, Optional

from .logger import StructuredLogger, get_logger
from .repository import Repository, RepositoryError
from .storage import SETTINGS_KEY, THEME_KEY, read_json, write_json

THEMES = ("light", "dark")
DEFAULT_THEME = "light"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "theme": DEFAULT_THEME,
    "jobSearch": "",
    "jobCategory": "All",
    "jobSort": "newest",
    "defaultPosterType": "Company",
    "defaultCategory": "",
    "defaultCurrency": "USD",
    "defaultLocation": "",
    "defaultOnline": False,
    "notifications": {
        "weeklyDigest": True,
        "jobAlerts": True,
        "productUpdates": False,
    },
}


def merge_settings(overrides: Dict[str, Any], theme: str = DEFAULT_THEME) -> Dict[str, Any]:
    """
    Layer overrides over the defaults.

    Top-level keys are replaced wholesale; `notifications` is merged one
    level deep. A falsy theme in overrides falls back to `theme`.
    """
    notifications = overrides.get("notifications")
    merged = copy.deepcopy(DEFAULT_SETTINGS)
    merged.update(overrides)
    merged["theme"] = overrides.get("theme") or theme
    merged["notifications"] = {
        **DEFAULT_SETTINGS["notifications"],
        **(notifications if isinstance(notifications, dict) else {}),
    }
    return merged


class SettingsStore:
    """User preferences and theme, read and written through a repository."""

    def __init__(self, repository: Repository, logger: Optional[StructuredLogger] = None):
        self.repository = repository
        self.logger = logger or get_logger()

    def get_theme(self) -> str:
        return self.repository.get(THEME_KEY) or DEFAULT_THEME

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme {theme!r}; expected one of {', '.join(THEMES)}")
        self.repository.set(THEME_KEY, theme)

    def _stored_overrides(self) -> Dict[str, Any]:
        raw = read_json(self.repository, SETTINGS_KEY, {})
        if not isinstance(raw, dict):
            self.logger.warning("Ignoring malformed settings record", key=SETTINGS_KEY)
            return {}
        return raw

    def get_settings(self) -> Dict[str, Any]:
        return merge_settings(self._stored_overrides(), theme=self.get_theme())

    def save_settings(self, settings: Optional[Dict[str, Any]]) -> None:
        write_json(self.repository, SETTINGS_KEY, settings or {})

    def update_settings(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply changes on top of the stored overrides and return the merged result."""
        stored = self._stored_overrides()
        if isinstance(changes.get("notifications"), dict):
            current = stored.get("notifications")
            changes = {
                **changes,
                "notifications": {**(current if isinstance(current, dict) else {}), **changes["notifications"]},
            }
        stored.update(changes)
        try:
            self.save_settings(stored)
        except RepositoryError as e:
            self.logger.error("Failed to save settings", error=str(e))
            raise
        self.logger.info("Settings updated", keys=sorted(changes))
        return self.get_settings()
