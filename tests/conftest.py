"""Shared test fixtures for HabitLens tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

from helpers import daily_habit, habit_payload


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary data root with a profile and a habit export."""
    root = tmp_path / "habitlens"
    root.mkdir(parents=True)

    # Profile
    profile = {
        "timezone": "UTC",
        "default_timeframe": "month",
        "lookback_days": 90,
        "report_limits": {"correlations": 5, "patterns": 5, "insights": 8},
    }
    (root / "profile.yaml").write_text(
        yaml.dump(profile, default_flow_style=False), encoding="utf-8"
    )

    # Habits: two months of daily records ending on the fixed reference day
    habits = [
        daily_habit("run", "2024-01-01", "2024-03-01", name="Run"),
        daily_habit("read", "2024-01-01", "2024-03-01", lambda i, d: i % 2 == 0, name="Read"),
        daily_habit("stretch", "2024-01-01", "2024-03-01", lambda i, d: i % 2 == 0, name="Stretch"),
    ]
    (root / "habits.json").write_text(
        json.dumps(habit_payload(habits), indent=2), encoding="utf-8"
    )

    # Set env var
    os.environ["HABITLENS_ROOT"] = str(root)
    yield root
    # Cleanup
    if "HABITLENS_ROOT" in os.environ:
        del os.environ["HABITLENS_ROOT"]
