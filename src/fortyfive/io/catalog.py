"""
YAML -> Exercise catalog.

Loads exercises from the bundled ``src/fortyfive/catalog/*.yaml`` files,
read in sorted file order.  Each file holds a list under ``exercises:``;
catalog order (which drives exercise selection) is file order, then entry
order within a file.

User overrides: place YAML files of the same shape in
``<data home>/catalog/``.  A user entry whose id matches a bundled exercise
is deep-merged over it, so only changed keys need to be listed; other
entries are appended as new exercises.

Loading never raises.  Broken files or entries are skipped with a warning,
so an unavailable catalog degrades to a partial or empty list.
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..core.engine.config_loader import _deep_merge, get_data_home
from ..core.models import Exercise
from .serializers import ValidationError, dict_to_exercise

log = logging.getLogger(__name__)


def _load_entries(path: Path) -> list[dict[str, Any]]:
    """Return the ``exercises`` list of one file; [] (with a warning) on error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"fortyfive: cannot read catalog file {path} ({exc})", stacklevel=3)
        return []
    entries = data.get("exercises") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        warnings.warn(f"fortyfive: {path} has no 'exercises' list", stacklevel=3)
        return []
    return [e for e in entries if isinstance(e, dict)]


def get_bundled_catalog_dir() -> Path | None:
    """Return path to the bundled catalog/ data directory, or None if not found."""
    candidate = Path(__file__).parent.parent / "catalog"
    return candidate if candidate.is_dir() else None


def get_user_catalog_dir(data_home: Path | None = None) -> Path | None:
    """Return <data home>/catalog/ if it exists, else None."""
    p = (data_home or get_data_home()) / "catalog"
    return p if p.is_dir() else None


def load_catalog(bundled_dir: Path | None = None, user_dir: Path | None = None) -> list[Exercise]:
    """
    Build the catalog list from bundled and user YAML directories.

    Args:
        bundled_dir: Directory of bundled files (None to skip)
        user_dir: Directory of user override files (None to skip)

    Returns:
        Exercises in catalog order
    """
    raw: dict[str, dict[str, Any]] = {}

    for directory in (bundled_dir, user_dir):
        if directory is None:
            continue
        for path in sorted(directory.glob("*.yaml")):
            for entry in _load_entries(path):
                ex_id = entry.get("id")
                if not ex_id:
                    warnings.warn(f"fortyfive: entry without id in {path}", stacklevel=2)
                    continue
                ex_id = str(ex_id)
                raw[ex_id] = _deep_merge(raw[ex_id], entry) if ex_id in raw else entry

    exercises: list[Exercise] = []
    for ex_id, entry in raw.items():
        try:
            exercises.append(dict_to_exercise(entry))
        except ValidationError as exc:
            warnings.warn(f"fortyfive: skipping exercise '{ex_id}' ({exc})", stacklevel=2)
    log.debug("Loaded %d catalog exercises", len(exercises))
    return exercises


class YamlExerciseCatalog:
    """
    Read-only exercise catalog backed by YAML files.

    The files are read once, on first access.
    """

    def __init__(self, data_home: Path | None = None, bundled_dir: Path | None = None):
        self._data_home = data_home
        self._bundled_dir = bundled_dir
        self._exercises: list[Exercise] | None = None

    def _load(self) -> list[Exercise]:
        if self._exercises is None:
            bundled = self._bundled_dir or get_bundled_catalog_dir()
            self._exercises = load_catalog(bundled, get_user_catalog_dir(self._data_home))
        return self._exercises

    def get_all_exercises(self) -> list[Exercise]:
        return list(self._load())

    def get_exercise_by_id(self, exercise_id: str) -> Exercise | None:
        for exercise in self._load():
            if exercise.id == exercise_id:
                return exercise
        return None

    def search_exercises(self, query: str) -> list[Exercise]:
        """Case-insensitive match on name, muscle group or secondary muscles."""
        q = query.strip().lower()
        if not q:
            return self.get_all_exercises()
        return [
            e
            for e in self._load()
            if q in e.name.lower()
            or q in e.muscle_group.lower()
            or any(q in m.lower() for m in e.secondary_muscles)
        ]

    def get_by_muscle_group(self, muscle_group: str) -> list[Exercise]:
        return [e for e in self._load() if e.muscle_group.lower() == muscle_group.lower()]
