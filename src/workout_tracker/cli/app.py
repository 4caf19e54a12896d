"""Shared Typer app object, shared option types, and service wiring."""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import load_app_config
from ..core.leveling import LevelingGateway, LevelTracker
from ..core.session import SessionController
from ..io.document_store import JsonDocumentStore
from ..io.draft_store import FileDraftPersistence, SessionStore
from ..logging_config import configure_logging

# Shared options used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Directory holding workout data (default: ~/.workout-tracker)"),
]
UserOption = Annotated[
    Optional[str],
    typer.Option("--user", "-u", help="User id to log workouts for (default from settings)"),
]

app = typer.Typer(
    name="workout-tracker",
    help="Log strength workouts, track personal records and level up.",
    no_args_is_help=True,
)


@dataclass
class Services:
    """Everything a command needs, wired to one data directory."""

    user_id: str
    data_dir: Path
    store: JsonDocumentStore
    controller: SessionController
    tracker: LevelTracker


def get_services(data_dir: Path | None, user_id: str | None) -> Services:
    """
    Build the store, leveling and session objects for a command.

    Settings come from settings.yaml; --data-dir and --user override them.
    Any draft left by a previous command is restored.
    """
    config = load_app_config()
    configure_logging(str(config.get("log_level", "WARNING")), str(config.get("log_format", "console")))

    root = Path(data_dir) if data_dir is not None else Path(config["data_dir"]).expanduser()
    uid = user_id or str(config.get("user_id") or "local")

    store = JsonDocumentStore(root)
    gateway = LevelingGateway(store)
    tracker = LevelTracker(uid, gateway)
    controller = SessionController(
        uid,
        store,
        SessionStore(FileDraftPersistence(root)),
        gateway,
        level_tracker=tracker,
    )
    controller.restore()
    return Services(uid, root, store, controller, tracker)
