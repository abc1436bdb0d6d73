"""Notes commands -- list, add, edit, pin and delete study notes."""

from __future__ import annotations

from typing import Optional

import typer

from studytrack.commands._runtime import fail, run_coordinator
from studytrack.models import Note
from studytrack.output import format_response, info, print_table, success
from studytrack.study import StudyCoordinator


notes_app = typer.Typer(no_args_is_help=True)

_PAGE_SIZE = 50
_MAX_PAGES = 20


def _rows(notes: list[Note]) -> list[list[str]]:
    return [
        [
            n.id or "",
            n.title,
            ", ".join(n.tags),
            "yes" if n.is_pinned else "",
            n.created_at.isoformat() if n.created_at else "",
        ]
        for n in notes
    ]


async def _locate(coordinator: StudyCoordinator, note_id: str) -> Optional[Note]:
    # The API has no single-note read; page through the list instead.
    for page in range(1, _MAX_PAGES + 1):
        notes = await coordinator.fetch_notes(page=page, limit=_PAGE_SIZE)
        found = coordinator.find_note(note_id)
        if found is not None or len(notes) < _PAGE_SIZE:
            return found
    return None


@notes_app.command("list")
def notes_list(
    ctx: typer.Context,
    search: str = typer.Option("", "--search", "-s", help="Full-text filter."),
    subject: str = typer.Option("", "--subject", help="Only notes for this subject."),
    page: int = typer.Option(1, "--page", min=1, help="Page number (1-based)."),
    limit: int = typer.Option(20, "--limit", min=1, help="Notes per page."),
) -> None:
    """List notes in the order the server returns them.

    Example::

        studytrack notes list --subject physics
        studytrack --json notes list --search entropy
    """

    async def _load(coordinator: StudyCoordinator) -> list[Note]:
        return await coordinator.fetch_notes(search, subject, page, limit)

    notes = run_coordinator(ctx, _load)
    if not notes:
        info("No notes found.")
        return
    print_table(["ID", "Title", "Tags", "Pinned", "Created"], _rows(notes), title="Notes")


@notes_app.command("add")
def notes_add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", help="Note title."),
    body: str = typer.Option(..., "--body", help="Note text."),
    tags: Optional[list[str]] = typer.Option(None, "--tag", help="Tag (repeatable)."),
    subject: Optional[str] = typer.Option(None, "--subject", help="Related subject."),
    pin: bool = typer.Option(False, "--pin", help="Pin the note."),
) -> None:
    """Create a note."""

    async def _add(coordinator: StudyCoordinator) -> Optional[Note]:
        return await coordinator.create_note(
            title, body, tags=tags or (), subject=subject, is_pinned=pin
        )

    created = run_coordinator(ctx, _add)
    if created is None:
        fail("Could not add the note.")
    success("Note added.")
    format_response(created)


@notes_app.command("edit")
def notes_edit(
    ctx: typer.Context,
    note_id: str = typer.Argument(help="ID of the note to edit."),
    title: Optional[str] = typer.Option(None, "--title", help="New title."),
    body: Optional[str] = typer.Option(None, "--body", help="New text."),
    tags: Optional[list[str]] = typer.Option(
        None, "--tag", help="Replacement tag set (repeatable)."
    ),
    subject: Optional[str] = typer.Option(None, "--subject", help="New subject."),
) -> None:
    """Change the title, body, tags or subject of a note."""
    changes: dict = {}
    if title is not None:
        changes["title"] = title
    if body is not None:
        changes["body"] = body
    if tags is not None:
        changes["tags"] = list(dict.fromkeys(t.strip() for t in tags if t.strip()))
    if subject is not None:
        changes["subject"] = subject
    if not changes:
        fail("Nothing to change; pass --title, --body, --tag or --subject.")

    async def _edit(coordinator: StudyCoordinator) -> tuple[bool, Optional[Note]]:
        note = await _locate(coordinator, note_id)
        if note is None:
            return False, None
        return True, await coordinator.update_note(note.model_copy(update=changes))

    found, stored = run_coordinator(ctx, _edit)
    if not found:
        fail(f"Note '{note_id}' not found.")
    if stored is None:
        fail(f"Could not update note '{note_id}'.")
    success(f"Updated note {note_id}.")
    format_response(stored)


@notes_app.command("pin")
def notes_pin(
    ctx: typer.Context,
    note_id: str = typer.Argument(help="ID of the note to pin or unpin."),
) -> None:
    """Toggle the pinned flag of a note."""

    async def _pin(coordinator: StudyCoordinator) -> tuple[bool, Optional[Note]]:
        note = await _locate(coordinator, note_id)
        if note is None:
            return False, None
        return True, await coordinator.toggle_pin(note)

    found, stored = run_coordinator(ctx, _pin)
    if not found:
        fail(f"Note '{note_id}' not found.")
    if stored is None:
        fail(f"Could not update note '{note_id}'.")
    success(f"Note {note_id} {'pinned' if stored.is_pinned else 'unpinned'}.")


@notes_app.command("delete")
def notes_delete(
    ctx: typer.Context,
    note_id: str = typer.Argument(help="ID of the note to delete."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Delete a note."""
    if not yes and not typer.confirm(f"Delete note {note_id}?"):
        info("Cancelled.")
        raise typer.Exit()

    async def _delete(coordinator: StudyCoordinator) -> bool:
        return await coordinator.delete_note(note_id)

    if not run_coordinator(ctx, _delete):
        fail(f"Could not delete note '{note_id}'.")
    success(f"Deleted note {note_id}.")
