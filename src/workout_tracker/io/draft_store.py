"""
Local persistence for the single active workout draft.

The draft and its clock-start timestamp are stored separately so the
elapsed-time display can always be recomputed from wall-clock time after
the process is suspended or restarted.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Protocol

import structlog

from ..core.config import ACTIVE_WORKOUT_FILE, ACTIVE_WORKOUT_START_FILE
from ..core.models import WorkoutLog
from .serializers import ValidationError, bytes_to_draft, draft_to_bytes, parse_datetime

logger = structlog.get_logger(__name__)


class DraftPersistence(Protocol):
    """Key-value storage that survives a process restart."""

    def save_draft(self, payload: bytes) -> None: ...

    def load_draft(self) -> bytes | None: ...

    def clear_draft(self) -> None: ...

    def save_clock_start(self, started_at: datetime) -> None: ...

    def load_clock_start(self) -> datetime | None: ...

    def clear_clock_start(self) -> None: ...


def _atomic_write(path: Path, payload: bytes) -> None:
    """Write payload to path so readers see either the old or the new file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "wb") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


class FileDraftPersistence:
    """
    Stores the draft as two small files in a directory.

    - active_workout.json: encoded draft
    - active_workout_start.txt: ISO clock-start timestamp
    """

    def __init__(self, directory: str | Path):
        """
        Initialize the draft persistence.

        Args:
            directory: Directory holding the draft files (created on first save)
        """
        self.directory = Path(directory)
        self.draft_path = self.directory / ACTIVE_WORKOUT_FILE
        self.clock_path = self.directory / ACTIVE_WORKOUT_START_FILE

    def save_draft(self, payload: bytes) -> None:
        _atomic_write(self.draft_path, payload)

    def load_draft(self) -> bytes | None:
        if not self.draft_path.exists():
            return None
        return self.draft_path.read_bytes()

    def clear_draft(self) -> None:
        self.draft_path.unlink(missing_ok=True)

    def save_clock_start(self, started_at: datetime) -> None:
        _atomic_write(self.clock_path, started_at.isoformat().encode("utf-8"))

    def load_clock_start(self) -> datetime | None:
        if not self.clock_path.exists():
            return None
        raw = self.clock_path.read_text(encoding="utf-8").strip()
        try:
            return parse_datetime(raw, "clock_start")
        except ValidationError:
            logger.warning("clock_start_unreadable", path=str(self.clock_path))
            return None

    def clear_clock_start(self) -> None:
        self.clock_path.unlink(missing_ok=True)


class MemoryDraftPersistence:
    """In-process persistence; survives a controller restart but not a process exit."""

    def __init__(self) -> None:
        self.draft: bytes | None = None
        self.clock_start: datetime | None = None

    def save_draft(self, payload: bytes) -> None:
        self.draft = payload

    def load_draft(self) -> bytes | None:
        return self.draft

    def clear_draft(self) -> None:
        self.draft = None

    def save_clock_start(self, started_at: datetime) -> None:
        self.clock_start = started_at

    def load_clock_start(self) -> datetime | None:
        return self.clock_start

    def clear_clock_start(self) -> None:
        self.clock_start = None


class SessionStore:
    """
    Durable, crash-resilient home of the active draft.

    Every save fully supersedes the previously persisted draft.
    """

    def __init__(self, persistence: DraftPersistence):
        self.persistence = persistence

    def save(self, draft: WorkoutLog) -> None:
        """Persist the full draft."""
        self.persistence.save_draft(draft_to_bytes(draft))

    def save_clock_start(self, started_at: datetime) -> None:
        self.persistence.save_clock_start(started_at)

    def load(self) -> WorkoutLog | None:
        """
        Load the persisted draft.

        Returns:
            The draft, or None if nothing is stored

        Raises:
            ValidationError: If the stored payload is corrupt
        """
        payload = self.persistence.load_draft()
        if payload is None:
            return None
        return bytes_to_draft(payload)

    def load_clock_start(self) -> datetime | None:
        return self.persistence.load_clock_start()

    def clear(self) -> None:
        """Remove the draft and its clock start."""
        self.persistence.clear_draft()
        self.persistence.clear_clock_start()

    def has_draft(self) -> bool:
        return self.persistence.load_draft() is not None
