"""
YAML -> ProgramTemplate loader.

Loads program templates from individual YAML files in the bundled
``src/workout_tracker/programs/`` directory. Each file (e.g. full_body.yaml)
holds one program:

    program_id: full_body
    name: Full Body 3x
    description: ...
    days:
      - name: Day A
        notes: ...
        exercises:
          - {name: Squat, sets: 3, reps: 5, weight: 135}

User overrides: place matching files in ``<app home>/programs/``. A user
file is deep-merged over the bundled program with the same stem, so only
changed keys need to be listed (note that ``days`` is a list and is
replaced wholesale). A user file with no bundled counterpart is loaded as
a new program.

Usage (internal, called by registry.py):
    from .loader import load_programs_from_yaml
    programs = load_programs_from_yaml()   # dict, possibly empty
"""

from __future__ import annotations

import warnings
from pathlib import Path

from ..config import DEFAULT_REPS, DEFAULT_REST_SECONDS, DEFAULT_SETS, DEFAULT_WEIGHT
from ..engine.config_loader import deep_merge, get_app_home, load_yaml_file
from .base import ExerciseTemplate, ProgramTemplate, WorkoutDayTemplate

_REQUIRED_PROGRAM_FIELDS: frozenset[str] = frozenset({"program_id", "name", "days"})
_REQUIRED_DAY_FIELDS: frozenset[str] = frozenset({"name", "exercises"})


def exercise_from_dict(d: dict, order: int) -> ExerciseTemplate:
    """Convert a raw exercise dict to an ExerciseTemplate."""
    if "name" not in d:
        raise ValueError("ExerciseTemplate missing field: name")
    return ExerciseTemplate(
        name=str(d["name"]),
        sets=int(d.get("sets", DEFAULT_SETS)),
        reps=int(d.get("reps", DEFAULT_REPS)),
        weight=float(d.get("weight", DEFAULT_WEIGHT)),
        rest_seconds=int(d.get("rest_seconds", DEFAULT_REST_SECONDS)),
        order=order,
    )


def day_from_dict(d: dict, order: int) -> WorkoutDayTemplate:
    """Convert a raw day dict to a WorkoutDayTemplate."""
    missing = _REQUIRED_DAY_FIELDS - set(d)
    if missing:
        raise ValueError(f"WorkoutDayTemplate missing fields: {sorted(missing)}")
    exercises = tuple(exercise_from_dict(e, i) for i, e in enumerate(d["exercises"] or []))
    return WorkoutDayTemplate(
        name=str(d["name"]),
        order=order,
        exercises=exercises,
        notes=str(d.get("notes", "") or ""),
    )


def program_from_dict(d: dict) -> ProgramTemplate:
    """Convert a raw dict (from YAML) to a ProgramTemplate.

    Raises ValueError if any required field is absent.
    """
    missing = _REQUIRED_PROGRAM_FIELDS - set(d)
    if missing:
        raise ValueError(f"ProgramTemplate missing fields: {sorted(missing)}")
    days = tuple(day_from_dict(day, i) for i, day in enumerate(d["days"] or []))
    return ProgramTemplate(
        program_id=str(d["program_id"]),
        name=str(d["name"]),
        description=str(d.get("description", "") or ""),
        days=days,
    )


def _get_bundled_programs_dir() -> Path | None:
    """Return path to the bundled programs/ data directory, or None if not found."""
    # loader.py lives at src/workout_tracker/core/programs/loader.py
    # three levels up -> src/workout_tracker/
    candidate = Path(__file__).parent.parent.parent / "programs"
    return candidate if candidate.is_dir() else None


def _get_user_programs_dir() -> Path | None:
    """Return <app home>/programs/ if it exists, else None."""
    p = get_app_home() / "programs"
    return p if p.is_dir() else None


def _load_one(raw: dict, label: str, result: dict[str, ProgramTemplate]) -> None:
    try:
        program = program_from_dict(raw)
    except (ValueError, TypeError) as exc:
        warnings.warn(f"workout-tracker: skipping program '{label}' ({exc})", stacklevel=3)
        return
    result[program.program_id] = program


def load_programs_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, ProgramTemplate]:
    """Return {program_id: ProgramTemplate} loaded from per-program YAML files.

    Directories default to the bundled programs/ and <app home>/programs/.
    Invalid files are skipped with a warning.
    """
    if bundled_dir is None:
        bundled_dir = _get_bundled_programs_dir()
    if user_dir is None:
        user_dir = _get_user_programs_dir()

    result: dict[str, ProgramTemplate] = {}

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    for stem, bundled_path in stems.items():
        raw = load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = load_yaml_file(user_path)
                if user_raw:
                    raw = deep_merge(raw, user_raw)
        _load_one(raw, stem, result)

    for p in user_only:
        raw = load_yaml_file(p)
        if raw:
            _load_one(raw, p.stem, result)

    return result
