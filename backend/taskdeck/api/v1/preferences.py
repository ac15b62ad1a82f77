"""Display preference endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from taskdeck.api.deps import CurrentPreferences, PreferencesStore
from taskdeck.schemas import Theme
from taskdeck.services.preferences import Preferences

router = APIRouter()


class ThemeUpdate(BaseModel):
    """Set the theme explicitly."""

    theme: Theme


@router.get("", response_model=Preferences)
async def get_preferences(preferences: CurrentPreferences) -> Preferences:
    return preferences


@router.put("/theme", response_model=Preferences)
async def set_theme(
    update: ThemeUpdate,
    preferences: CurrentPreferences,
    store: PreferencesStore,
) -> Preferences:
    store.set_theme(preferences, update.theme)
    return preferences


@router.post("/theme/toggle", response_model=Preferences)
async def toggle_theme(
    preferences: CurrentPreferences,
    store: PreferencesStore,
) -> Preferences:
    store.toggle_theme(preferences)
    return preferences
