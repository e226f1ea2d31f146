"""Data root, profile, timezone and path helpers for HabitLens."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from habitlens.models import Profile

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the data root (contains habits.json, profile.yaml, reports/)."""
    return Path(
        os.environ.get("HABITLENS_ROOT", str(Path.home() / "habitlens"))
    ).expanduser().resolve()


def load_profile(root: Path | None = None) -> Profile:
    """Read profile.yaml; missing or broken files fall back to defaults."""
    if root is None:
        root = workspace_root()
    path = profile_path(root)
    if not path.exists():
        return Profile()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        return Profile.from_dict(data if isinstance(data, dict) else {})
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logger.warning("Ignoring unreadable profile %s: %s", path, e)
        return Profile()


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from profile.yaml, defaulting to UTC."""
    name = load_profile(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in profile, using UTC", name)
        return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    return now_local(root).date().isoformat()


# ── Path helpers ──────────────────────────────────────────────

def habits_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "habits.json"


def profile_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "profile.yaml"


def reports_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "reports"


def analytics_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "analytics.json"
