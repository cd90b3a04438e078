"""
Client entry point.

Loads configuration, configures logging, hydrates the selection state and runs
one command against the API.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable

import httpx
import structlog
from pydantic import ValidationError

from logbook_shared.schemas.establishments import EstablishmentCreate

from .client import LogbookApiError, LogbookClient
from .config import ClientConfig, load_config
from .state import SelectionState, year_range


def configure_logging(level: str = "warning", fmt: str = "text") -> None:
    """Configure structlog with the specified level and format."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[level.upper()]
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _format_establishment(est, selected: bool = False) -> str:
    marker = "*" if selected else " "
    return f"{marker} {est.id}  {est.name}  ({est.city}, {est.state} {est.zip_code})"


# --- Commands ---

async def cmd_list(api: LogbookClient, state: SelectionState, args) -> int:
    establishments = await api.list_establishments()
    if not establishments:
        print("No establishments yet.")
        return 0
    for est in establishments:
        print(_format_establishment(est, selected=str(est.id) == state.establishment_id))
    return 0


async def cmd_show(api: LogbookClient, state: SelectionState, args) -> int:
    """Print the selected establishment; forget it if the API no longer has it."""
    selected = state.establishment_id
    if not selected:
        print("No establishment selected.")
        print(f"Year: {state.year}")
        return 0

    try:
        est = await api.get_establishment(selected)
    except LogbookApiError as exc:
        if not exc.is_not_found:
            raise
        await state.set_establishment_id(None)
        print(f"Selected establishment {selected} is no longer available; selection cleared.")
        return 1

    print(f"Establishment: {est.name}")
    print(f"  ID:        {est.id}")
    print(f"  Address:   {est.address}, {est.city}, {est.state} {est.zip_code}")
    if est.naics_code:
        print(f"  NAICS:     {est.naics_code}")
    if est.industry_description:
        print(f"  Industry:  {est.industry_description}")
    print(f"  Employees: {est.average_employees}")
    print(f"Year: {state.year}")
    return 0


async def cmd_select(api: LogbookClient, state: SelectionState, args) -> int:
    # Confirms the id is visible to the caller before persisting it
    est = await api.get_establishment(args.establishment_id)
    await state.set_establishment_id(str(est.id))
    print(f"Selected {est.name} ({est.id})")
    return 0


async def cmd_add(api: LogbookClient, state: SelectionState, args) -> int:
    """Validate locally so bad input never reaches the API."""
    try:
        payload = EstablishmentCreate.model_validate({
            "name": args.name,
            "address": args.address,
            "city": args.city,
            "state": args.state,
            "zip_code": args.zip_code,
            "naics_code": args.naics_code,
            "industry_description": args.industry_description,
            "average_employees": args.average_employees,
        })
    except ValidationError as exc:
        print("Error: Invalid establishment", file=sys.stderr)
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"])
            print(f"  {field}: {err['msg']}", file=sys.stderr)
        return 1

    est = await api.create_establishment(payload)
    print(f"Created {est.name} ({est.id})")
    return 0


async def cmd_delete(api: LogbookClient, state: SelectionState, args) -> int:
    est = await api.get_establishment(args.establishment_id)
    if not args.yes:
        answer = input(f"Delete {est.name} ({est.id}) and all of its subscriptions? [y/N] ")
        if not answer.strip().lower().startswith("y"):
            print("Cancelled.")
            return 1

    await api.delete_establishment(est.id)
    if state.establishment_id == str(est.id):
        await state.set_establishment_id(None)
        print("Selection cleared.")
    print(f"Deleted {est.name} ({est.id})")
    return 0


async def cmd_clear(api: LogbookClient, state: SelectionState, args) -> int:
    await state.set_establishment_id(None)
    print("Selection cleared.")
    return 0


async def cmd_year(api: LogbookClient, state: SelectionState, args) -> int:
    if args.year not in year_range():
        print(f"Year must be one of: {', '.join(str(y) for y in year_range())}", file=sys.stderr)
        return 2
    await state.set_year(args.year)
    print(f"Year set to {args.year}")
    return 0


async def cmd_years(api: LogbookClient, state: SelectionState, args) -> int:
    for year in year_range():
        marker = "*" if year == state.year else " "
        print(f"{marker} {year}")
    return 0


Command = Callable[[LogbookClient, SelectionState, argparse.Namespace], Awaitable[int]]

COMMANDS: dict[str, Command] = {
    "list": cmd_list,
    "show": cmd_show,
    "select": cmd_select,
    "add": cmd_add,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "year": cmd_year,
    "years": cmd_years,
}


async def run_command(
    config: ClientConfig,
    args: argparse.Namespace,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run one command with hydrated state and an open API client."""
    api = LogbookClient(
        config.api.url,
        token=config.api.token,
        verify_tls=config.api.verify_tls,
        request_timeout=config.api.request_timeout_seconds,
        transport=transport,
    )
    async with SelectionState(config.state.db_path) as state, api:
        try:
            return await COMMANDS[args.command](api, state, args)
        except LogbookApiError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            for field in exc.fields:
                print(f"  {field.get('field')}: {field.get('message')}", file=sys.stderr)
            return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OSHA establishment logbook client")
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration file (defaults apply when omitted)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List your establishments")
    sub.add_parser("show", help="Show the selected establishment and year")
    select = sub.add_parser("select", help="Select an establishment by id")
    select.add_argument("establishment_id")
    add = sub.add_parser("add", help="Create an establishment")
    add.add_argument("--name", required=True)
    add.add_argument("--address", required=True)
    add.add_argument("--city", required=True)
    add.add_argument("--state", required=True, help="Two-letter state code")
    add.add_argument("--zip", dest="zip_code", required=True, help="ZIP or ZIP+4")
    add.add_argument("--naics", dest="naics_code", default=None, help="6-digit NAICS code")
    add.add_argument("--industry", dest="industry_description", default=None)
    add.add_argument("--employees", dest="average_employees", type=int, default=0)
    delete = sub.add_parser("delete", help="Delete an establishment and its subscriptions")
    delete.add_argument("establishment_id")
    delete.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")
    sub.add_parser("clear", help="Clear the selected establishment")
    year = sub.add_parser("year", help="Select the reporting year")
    year.add_argument("year", type=int)
    sub.add_parser("years", help="List selectable years")
    return parser


def run() -> None:
    """CLI entry point for the client."""
    args = build_parser().parse_args()

    try:
        config = load_config(args.config) if args.config else ClientConfig()
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.logging.level, config.logging.format)
    log = structlog.get_logger()
    log.debug("client.config_loaded", config_path=args.config, api_url=config.api.url)

    try:
        sys.exit(asyncio.run(run_command(config, args)))
    except httpx.HTTPError as exc:
        print(f"Could not reach {config.api.url}: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
