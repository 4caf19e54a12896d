"""
Program registry.

Programs are loaded from the bundled ``src/workout_tracker/programs/``
YAML files (plus user overrides) on first use. Use get_program() to look
up a ProgramTemplate by id and find_day() to pick a day within it.
"""

from .base import ProgramTemplate, WorkoutDayTemplate

_REGISTRY: dict[str, ProgramTemplate] | None = None


def get_registry() -> dict[str, ProgramTemplate]:
    """Return all known programs, loading them on first call."""
    global _REGISTRY
    if _REGISTRY is None:
        from .loader import load_programs_from_yaml

        _REGISTRY = load_programs_from_yaml()
    return _REGISTRY


def reload_registry() -> dict[str, ProgramTemplate]:
    """Drop the cached registry and load again (after editing user files)."""
    global _REGISTRY
    _REGISTRY = None
    return get_registry()


def get_program(program_id: str) -> ProgramTemplate:
    """
    Return the ProgramTemplate for the given program_id.

    Raises:
        ValueError: If program_id is not in the registry
    """
    registry = get_registry()
    if program_id not in registry:
        valid = ", ".join(sorted(registry)) or "(none)"
        raise ValueError(f"Unknown program '{program_id}'. Valid IDs: {valid}")
    return registry[program_id]


def find_day(program: ProgramTemplate, name_or_index: str) -> WorkoutDayTemplate:
    """
    Pick a day by 1-based index ("2") or case-insensitive name ("push").

    Raises:
        ValueError: If no day matches
    """
    key = name_or_index.strip()
    if key.isdigit():
        idx = int(key) - 1
        if 0 <= idx < len(program.days):
            return program.days[idx]
    for day in program.days:
        if day.name.lower() == key.lower():
            return day
    names = ", ".join(d.name for d in program.days)
    raise ValueError(f"No day '{name_or_index}' in program '{program.program_id}'. Days: {names}")
