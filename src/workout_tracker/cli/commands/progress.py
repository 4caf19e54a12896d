"""Progress commands: level, records."""

import asyncio

import typer

from ...io.document_store import StorageError
from .. import views
from ..app import DataDirOption, UserOption, app, get_services


@app.command("level")
def level(
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Show your level and XP progress."""
    services = get_services(data_dir, user)
    try:
        current = asyncio.run(services.tracker.refresh())
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_level(current)


@app.command("records")
def records(
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """List personal records, one per exercise."""
    services = get_services(data_dir, user)
    try:
        found = asyncio.run(services.store.list_personal_records(services.user_id))
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not found:
        views.print_info("No personal records yet. Complete a weighted set to set one.")
        return
    views.print_records(found)
