"""File I/O for HabitLens: reading the habit export, atomic writes."""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any

from habitlens.models import Completion, Habit
from habitlens.workspace import habits_path, workspace_root

logger = logging.getLogger(__name__)


def read_json(path: Path) -> Any:
    """Read a JSON file, returning empty dict if missing or blank."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    return json.loads(text)


def _is_iso_date(value: str) -> bool:
    if len(value) != 10:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_habits(data: Any) -> list[Habit]:
    """Build Habit objects from the browser storage export.

    Accepts the full export ({"version": ..., "habits": [...]}) or a bare
    list of habits. Habits without an id, completions that cannot be read
    (e.g. a non-numeric timestamp) and completions with a date that is not
    YYYY-MM-DD are skipped with a warning.
    """
    raw = data.get("habits", []) if isinstance(data, dict) else data
    if not isinstance(raw, list):
        logger.warning("Habit export has no habit list, got %s", type(raw).__name__)
        return []

    habits = []
    for entry in raw:
        if not isinstance(entry, dict) or not str(entry.get("id", "")).strip():
            logger.warning("Skipping habit entry without an id")
            continue
        try:
            habit = Habit.from_dict({**entry, "completions": []})
        except (ValueError, TypeError) as e:
            logger.warning("Skipping unreadable habit %r: %s", entry.get("id"), e)
            continue

        records = entry.get("completions") or []
        if not isinstance(records, list):
            logger.warning("Habit %s: completions is not a list, ignoring it", habit.id)
            records = []

        valid = []
        for record in records:
            try:
                completion = Completion.from_dict(record)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Habit %s: skipping unreadable completion %r: %s", habit.id, record, e)
                continue
            if not _is_iso_date(completion.date):
                logger.warning("Habit %s: skipping completion with malformed date %r", habit.id, completion.date)
                continue
            valid.append(completion)

        habits.append(Habit(id=habit.id, name=habit.name, completions=tuple(valid), category=habit.category))
    return habits


def load_habits(root: Path | None = None) -> list[Habit]:
    """Load habits from habits.json under the data root (empty if missing)."""
    if root is None:
        root = workspace_root()
    return parse_habits(read_json(habits_path(root)))


def serialize_habits(habits: list[Habit]) -> dict[str, Any]:
    return {"version": "1.0.0", "habits": [h.to_dict() for h in habits]}


def _atomic_write(path: Path, content: str, suffix: str = ".tmp") -> None:
    """Atomic write with file locking: temp file + flock + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.rename(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def write_text_atomic(path: Path, content: str) -> None:
    """Atomic text file write."""
    _atomic_write(path, content, suffix=".txt")


def write_json_atomic(path: Path, data: Any) -> None:
    """Atomic JSON write."""
    _atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n", suffix=".json")
