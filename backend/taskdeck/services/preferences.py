"""Client-local display preferences."""

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, ValidationError

from taskdeck.schemas import Theme

logger = structlog.get_logger()


class Preferences(BaseModel):
    """Display preferences passed explicitly to the list, cards and form."""

    theme: Theme = "light"


class PreferenceStore:
    """Persists ``Preferences`` as a small JSON file. Never synced remotely."""

    def __init__(self, path: Path, default_theme: Theme = "light"):
        self.path = Path(path)
        self.default_theme = default_theme

    def load(self) -> Preferences:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Preferences(theme=self.default_theme)
        try:
            return Preferences.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable preferences", path=str(self.path), error=str(e))
            return Preferences(theme=self.default_theme)

    def save(self, preferences: Preferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(preferences.model_dump_json(), encoding="utf-8")

    def set_theme(self, preferences: Preferences, theme: Theme) -> None:
        preferences.theme = theme
        self.save(preferences)
        logger.info("Theme changed", theme=theme)

    def toggle_theme(self, preferences: Preferences) -> Theme:
        self.set_theme(preferences, "dark" if preferences.theme == "light" else "light")
        return preferences.theme
