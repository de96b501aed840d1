from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent
CONFIG_DIR = PACKAGE_ROOT / "config"


def synergy_rules_path(override: str | os.PathLike[str] | None = None) -> Path:
    """Return the synergy rule table path.

    Order: explicit override, then SYNERGY_RULES_PATH, then the packaged file.
    """
    if override:
        return Path(override)
    env = (os.getenv("SYNERGY_RULES_PATH") or "").strip()
    if env:
        return Path(env)
    return CONFIG_DIR / "synergy_rules.yml"


def tribes_path(override: str | os.PathLike[str] | None = None) -> Path:
    """Return the tribe tier table path (override, TRIBES_PATH, packaged)."""
    if override:
        return Path(override)
    env = (os.getenv("TRIBES_PATH") or "").strip()
    if env:
        return Path(env)
    return CONFIG_DIR / "tribes.yml"
