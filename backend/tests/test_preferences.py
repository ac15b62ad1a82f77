# tests/test_preferences.py

from __future__ import annotations

from pathlib import Path

from taskdeck.services.preferences import Preferences, PreferenceStore


def test_missing_file_gives_default(tmp_path: Path) -> None:
    store = PreferenceStore(tmp_path / "prefs.json", default_theme="dark")
    assert store.load() == Preferences(theme="dark")


def test_corrupt_file_gives_default(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")
    assert PreferenceStore(path).load().theme == "light"

    path.write_text('{"theme": "sepia"}', encoding="utf-8")
    assert PreferenceStore(path).load().theme == "light"


def test_toggle_persists_across_loads(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "prefs.json"
    store = PreferenceStore(path)
    prefs = store.load()

    assert store.toggle_theme(prefs) == "dark"
    assert PreferenceStore(path).load().theme == "dark"

    store.set_theme(prefs, "light")
    assert PreferenceStore(path).load().theme == "light"
