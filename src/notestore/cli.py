#!/usr/bin/env python3
"""Notestore CLI for inspecting and editing notes."""

import argparse
import asyncio
import logging
from dataclasses import replace

import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from notestore.config import config
from notestore.db import BACKENDS, open_store
from notestore.errors import NoteStoreError
from notestore.note import Note, NoteStore

console = Console()


def print_notes(notes: list[Note]) -> None:
    """Render notes as a table."""
    if not notes:
        console.print("[dim]No notes.[/]")
        return
    table = Table("id", "title", "body")
    for note in notes:
        table.add_row(str(note.id), note.title, note.body)
    console.print(table)


async def init_schema(store: NoteStore, args) -> None:
    await store.create_schema()
    console.print(f"[green]Schema ready for the {store.name} backend.[/]")


async def list_notes(store: NoteStore, args) -> None:
    print_notes(await store.get_all())


async def show_note(store: NoteStore, args) -> None:
    note = await store.find_by_id(args.id)
    if note is None:
        console.print(f"[yellow]No note with id {args.id}.[/]")
        return
    print_notes([note])


async def add_note(store: NoteStore, args) -> None:
    note = await store.insert_one(Note(title=args.title, body=args.body))
    console.print(f"[green]Created note {note.id}.[/]")


async def edit_note(store: NoteStore, args) -> None:
    """Overwrite the title and/or body of an existing note."""
    note = await store.find_by_id(args.id)
    if note is None:
        console.print(f"[yellow]No note with id {args.id}.[/]")
        return
    if args.title is not None:
        note.title = args.title
    if args.body is not None:
        note.body = args.body
    await store.update_one(note)
    console.print(f"[green]Updated note {note.id}.[/]")


async def delete_note(store: NoteStore, args) -> None:
    removed = await store.delete_one(args.id)
    if removed:
        console.print(f"[green]Deleted note {args.id}.[/]")
    else:
        console.print(f"[yellow]No note with id {args.id}.[/]")


async def clear_notes(store: NoteStore, args) -> None:
    """Delete every note, after confirmation."""
    console.print(f"[yellow]Will permanently delete all notes ({store.name} backend).[/]")
    if not args.yes and not questionary.confirm("Proceed with these changes?").ask():
        console.print("[dim]Cancelled.[/]")
        return
    await store.delete_all()
    console.print("[green]All notes deleted.[/]")


COMMANDS = {
    "init": init_schema,
    "list": list_notes,
    "show": show_note,
    "add": add_note,
    "edit": edit_note,
    "delete": delete_note,
    "clear": clear_notes,
}


async def run(args) -> int:
    cfg = replace(config, backend=args.backend) if args.backend else config
    try:
        store = await open_store(cfg)
    except NoteStoreError as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        return 1

    try:
        await COMMANDS[args.command](store, args)
    except NoteStoreError as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        return 1
    finally:
        await store.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Notestore CLI")
    parser.add_argument("--backend", choices=BACKENDS, help="Override NOTESTORE_BACKEND")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create the notes table if needed")
    subparsers.add_parser("list", help="List all notes")

    show = subparsers.add_parser("show", help="Show one note")
    show.add_argument("id")

    add = subparsers.add_parser("add", help="Create a note")
    add.add_argument("title")
    add.add_argument("body")

    edit = subparsers.add_parser("edit", help="Overwrite a note's title or body")
    edit.add_argument("id")
    edit.add_argument("--title")
    edit.add_argument("--body")

    delete = subparsers.add_parser("delete", help="Delete one note")
    delete.add_argument("id")

    clear = subparsers.add_parser("clear", help="Delete all notes")
    clear.add_argument("--yes", action="store_true", help="Skip confirmation")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console)],
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
