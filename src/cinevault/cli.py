"""
Command-line front end.

Each command maps to one user intent (login, scroll through a filtered list,
add/edit/delete an entry) and goes through the same services a graphical
client would use. The session persists between invocations.
"""
import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from cinevault.app import CineVault
from cinevault.core.config import get_settings
from cinevault.schemas.collection import FilterKey
from cinevault.schemas.record import (
    RECORD_TYPES,
    CreateRecordRequest,
    Record,
    UpdateRecordRequest,
)
from cinevault.services.exceptions import MutationError
from cinevault.services.session_store import AuthResult
from cinevault.shared.api_errors import ParsedApiError, parse_validation_error

logger = logging.getLogger(__name__)

RECORD_FIELDS = ("director", "budget", "location", "duration", "year_time")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="cinevault",
        description="Browse and manage your CineVault collection of movies and TV shows.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and remember the session")
    login.add_argument("email")
    login.add_argument("password")

    register = sub.add_parser("register", help="Create an account and sign in")
    register.add_argument("name")
    register.add_argument("email")
    register.add_argument("password")

    sub.add_parser("logout", help="Forget the stored session")
    sub.add_parser("whoami", help="Show the signed-in user")

    list_cmd = sub.add_parser("list", help="List entries, optionally filtered")
    list_cmd.add_argument("--search", default="", help="Search title or director")
    list_cmd.add_argument(
        "--type",
        default="",
        choices=["", *RECORD_TYPES],
        help="Only show this type (default: all)",
    )
    list_cmd.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Maximum pages to load (0 loads everything)",
    )

    add = sub.add_parser("add", help="Add a new entry")
    add.add_argument("--title", required=True)
    add.add_argument("--type", default="Movie", choices=RECORD_TYPES)
    _add_record_field_arguments(add)

    edit = sub.add_parser("edit", help="Edit an entry; unspecified fields keep their values")
    edit.add_argument("id")
    edit.add_argument("--title")
    edit.add_argument("--type", choices=RECORD_TYPES)
    _add_record_field_arguments(edit)

    delete = sub.add_parser("delete", help="Delete an entry")
    delete.add_argument("id")

    return parser


def _add_record_field_arguments(parser: argparse.ArgumentParser) -> None:
    for name in RECORD_FIELDS:
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name)


def format_record(record: Record) -> str:
    """One tab-separated line per record."""
    columns = [
        str(record.id),
        record.title,
        record.type,
        record.director or "",
        record.budget or "",
        record.location or "",
        record.duration or "",
        record.year_time or "",
    ]
    return "\t".join(columns)


def _report(error: ParsedApiError) -> int:
    if error.field_errors:
        for name, message in error.field_errors.items():
            print(f"{name}: {message}", file=sys.stderr)
    else:
        print(error.message, file=sys.stderr)
    return 1


def _report_auth(result: AuthResult) -> int:
    if result.error is not None:
        return _report(result.error)
    user = result.session.user if result.session else None
    print(f"Welcome, {(user.name if user else None) or 'User'}")
    return 0


async def _list(vault: CineVault, args: argparse.Namespace) -> int:
    key = FilterKey(search_text=args.search, record_type=args.type)
    result = await vault.collection.refresh(key)
    pages = 1
    while result.status == "fetched" and (args.pages <= 0 or pages < args.pages):
        if result.page is not None and not result.page.records:
            break
        result = await vault.collection.fetch_next(key)
        pages += 1
    if result.status == "failed" and result.error is not None:
        return _report(result.error)

    records = vault.collection.records(key)
    if not records:
        print("No items to show")
        return 0
    for record in records:
        print(format_record(record))
    if vault.collection.has_more(key):
        entry = vault.collection.query(key)
        print(f"({entry.fetched_count} of {entry.total}; use --pages to load more)")
    return 0


async def _find_record(vault: CineVault, record_id: str) -> Record | ParsedApiError | None:
    """Scroll the unfiltered collection until the record turns up."""
    key = FilterKey()
    vault.collection.reset(key)
    while vault.collection.has_more(key):
        result = await vault.collection.fetch_next(key)
        if result.error is not None:
            return result.error
        if result.page is None or not result.page.records:
            break
        for record in result.page.records:
            if str(record.id) == record_id:
                return record
    return None


async def _edit(vault: CineVault, args: argparse.Namespace) -> int:
    found = await _find_record(vault, args.id)
    if isinstance(found, ParsedApiError):
        return _report(found)
    if found is None:
        print(f"Entry {args.id} not found", file=sys.stderr)
        return 1

    overrides = {
        name: getattr(args, name)
        for name in ("title", "type", *RECORD_FIELDS)
        if getattr(args, name) is not None
    }
    current = UpdateRecordRequest.from_record(found)
    try:
        data = UpdateRecordRequest(**{**current.model_dump(), **overrides})
    except ValidationError as e:
        return _report(parse_validation_error(e))
    record = await vault.mutations.update(found.id, data)
    print(format_record(record))
    return 0


async def run_command(vault: CineVault, args: argparse.Namespace) -> int:  # noqa: PLR0911
    """Execute a parsed command against an opened CineVault. Returns the exit code."""
    command = args.command

    if command == "login":
        return _report_auth(await vault.session.login(args.email, args.password))
    if command == "register":
        return _report_auth(await vault.session.register(args.name, args.email, args.password))
    if command == "logout":
        vault.session.logout()
        print("Logged out")
        return 0
    if command == "whoami":
        user = vault.session.user
        if user is None:
            print("Not logged in")
            return 1
        print(f"{user.name or 'User'} <{user.email or ''}>")
        return 0
    if command == "list":
        return await _list(vault, args)

    try:
        if command == "add":
            fields = {name: getattr(args, name) for name in RECORD_FIELDS}
            try:
                data = CreateRecordRequest(title=args.title, type=args.type, **fields)
            except ValidationError as e:
                return _report(parse_validation_error(e))
            print(format_record(await vault.mutations.create(data)))
            return 0
        if command == "edit":
            return await _edit(vault, args)
        if command == "delete":
            await vault.mutations.delete(args.id)
            print(f"Deleted {args.id}")
            return 0
    except MutationError as e:
        return _report(e.error)

    raise ValueError(f"Unknown command: {command}")


async def _run(args: argparse.Namespace) -> int:
    async with CineVault() as vault:
        return await run_command(vault, args)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the `cinevault` console script."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
