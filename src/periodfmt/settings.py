# Per-granularity note settings read from a vault's .obsidian directory.
# Reading is the only side effect; validation happens in validation.py.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from periodfmt.models import Granularity, PeriodSettings

PERIODIC_NOTES_CONFIG = Path(".obsidian") / "plugins" / "periodic-notes" / "data.json"
DAILY_NOTES_CONFIG = Path(".obsidian") / "daily-notes.json"

# Section names used by the periodic-notes plugin.
SECTION_NAMES = {
    Granularity.day: "daily",
    Granularity.week: "weekly",
    Granularity.month: "monthly",
    Granularity.quarter: "quarterly",
    Granularity.year: "yearly",
}


class SettingsError(Exception):
    """Raised when a settings file exists but cannot be read."""


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise SettingsError(f"Cannot read settings file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a JSON object")
    return data


def _period_from_section(section: Any, enabled_default: bool) -> PeriodSettings:
    if not isinstance(section, dict):
        return PeriodSettings()
    return PeriodSettings(
        enabled=bool(section.get("enabled", enabled_default)),
        format=str(section.get("format") or ""),
        folder=str(section.get("folder") or ""),
        template=str(section.get("template") or ""),
    )


def load_settings(vault_root: Path) -> Dict[Granularity, PeriodSettings]:
    """Load settings for every granularity.

    The periodic-notes plugin config wins. Without it, the core daily-notes
    config supplies the day settings. Anything missing is disabled.
    """
    settings = {g: PeriodSettings() for g in Granularity}

    plugin_path = vault_root / PERIODIC_NOTES_CONFIG
    if plugin_path.exists():
        data = _read_json(plugin_path)
        for granularity, name in SECTION_NAMES.items():
            settings[granularity] = _period_from_section(data.get(name), enabled_default=False)
        return settings

    daily_path = vault_root / DAILY_NOTES_CONFIG
    if daily_path.exists():
        settings[Granularity.day] = _period_from_section(_read_json(daily_path), enabled_default=True)

    return settings
