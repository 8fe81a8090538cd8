"""Application settings with JSON persistence.

Settings are stored at:
    ~/.treetimers/settings.json

The directory can be moved with the ``TREETIMERS_HOME`` environment
variable (read once, at import time).

Usage::

    settings = load_settings()
    settings.tick_interval_ms = 500
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR = Path(os.environ.get("TREETIMERS_HOME", Path.home() / ".treetimers"))
SETTINGS_PATH = APP_DIR / "settings.json"


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── clock ─────────────────────────────────────────────────────────
    tick_interval_ms: int = 1000

    # ── notifications ─────────────────────────────────────────────────
    notifications_enabled: bool = False

    # ── storage ───────────────────────────────────────────────────────
    database_url: str | None = None        # None -> SQLite file in APP_DIR


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from disk, falling back to defaults."""
    path = path or SETTINGS_PATH
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            return Settings(**filtered)
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
    return Settings()


def save_settings(settings: Settings, path: Path | None = None) -> None:
    """Write settings to disk as JSON."""
    path = path or SETTINGS_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
