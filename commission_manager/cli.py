"""
Admin command line.

Usage:
    python -m commission_manager.cli init-db
    python -m commission_manager.cli seed-levels --scope referral
    python -m commission_manager.cli set-level 1 3.0 --scope referral
    python -m commission_manager.cli preview 42
    python -m commission_manager.cli commit 42 [--override]
    python -m commission_manager.cli total 7
    python -m commission_manager.cli history 7

Configuration comes from the environment (DATABASE_URL, COMMISSION_MODES,
...). Exit status is 1 when the command fails with a commission error.
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from loguru import logger
from pydantic import ValidationError as SettingsValidationError

from commission_manager.config.settings import Settings, get_settings
from commission_manager.database import (
    create_engine,
    create_session_maker,
    init_database,
    session_scope,
)
from commission_manager.models.enums import LevelScope
from commission_manager.services.commission.service import CommissionService
from commission_manager.utils.exceptions import CommissionManagerError
from commission_manager.utils.formatters import (
    format_currency,
    format_percentage,
    format_preview,
)
from commission_manager.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="commission-manager",
        description="Real-estate commission manager admin tool",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    seed = subparsers.add_parser(
        "seed-levels", help="Seed the default schedule for an empty scope"
    )
    _add_scope_argument(seed)

    set_level = subparsers.add_parser("set-level", help="Set a level percentage")
    set_level.add_argument("level", type=int, help="Level number (>= 1)")
    set_level.add_argument("percentage", help="Percentage in 0..100")
    _add_scope_argument(set_level)
    set_level.add_argument(
        "--property-id",
        type=int,
        default=None,
        help="Property-specific level (commission scope only)",
    )

    preview = subparsers.add_parser("preview", help="Preview commissions")
    preview.add_argument("property_id", type=int)
    preview.add_argument("--seller-id", type=int, default=None)

    commit = subparsers.add_parser("commit", help="Commit commissions")
    commit.add_argument("property_id", type=int)
    commit.add_argument("--seller-id", type=int, default=None)
    commit.add_argument(
        "--override",
        action="store_true",
        help="Reverse an earlier commit and record a new revision",
    )

    total = subparsers.add_parser("total", help="Net commission total of a person")
    total.add_argument("person_id", type=int)

    history = subparsers.add_parser("history", help="Ledger history of a person")
    history.add_argument("person_id", type=int)

    return parser


def _add_scope_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--scope",
        choices=[scope.value for scope in LevelScope],
        default=LevelScope.COMMISSION.value,
        help="Level scope (default: commission)",
    )


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """
    Execute one parsed command.

    Args:
        args: Parsed arguments
        settings: Application settings

    Returns:
        Exit status
    """
    engine = create_engine(settings)
    try:
        if args.command == "init-db":
            await init_database(engine)
            print("Database tables created")
            return 0

        session_maker = create_session_maker(engine)
        async with session_scope(session_maker) as session:
            service = CommissionService.from_settings(session, settings)
            return await _dispatch(args, service, settings)
    finally:
        await engine.dispose()


async def _dispatch(
    args: argparse.Namespace, service: CommissionService, settings: Settings
) -> int:
    currency = settings.currency_symbol

    if args.command == "seed-levels":
        levels = await service.ensure_default_levels(LevelScope(args.scope))
        print(f"{len(levels)} {args.scope} levels configured")

    elif args.command == "set-level":
        await service.set_level(
            LevelScope(args.scope),
            args.level,
            args.percentage,
            property_id=args.property_id,
        )
        print(f"{args.scope} level {args.level} set to {args.percentage}%")

    elif args.command == "preview":
        preview = await service.preview(args.property_id, args.seller_id)
        print(format_preview(preview, currency))

    elif args.command == "commit":
        batch = await service.commit_commissions(
            args.property_id, args.seller_id, override=args.override
        )
        print(
            f"Committed revision {batch.revision} for property "
            f"{batch.property_id}: {len(batch.entries)} rows, "
            f"net {format_currency(batch.total, currency)}"
        )

    elif args.command == "total":
        total = await service.store.sum_commissions_for_person(args.person_id)
        print(format_currency(total, currency))

    elif args.command == "history":
        summary = await service.summary_for(args.person_id)
        for entry in summary.history:
            print(
                f"{entry.calculated_at:%Y-%m-%d %H:%M} "
                f"property {entry.property_id} "
                f"{entry.source.value} level {entry.level_order} "
                f"({format_percentage(entry.percentage)}) "
                f"{entry.entry_type.value} "
                f"{format_currency(entry.amount, currency)}"
            )
        print(f"Total: {format_currency(summary.total, currency)}")

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Command line entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except SettingsValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(settings)

    try:
        return asyncio.run(run(args, settings))
    except CommissionManagerError as e:
        logger.error(f"{args.command} failed: {e.message}", extra={"code": e.code})
        return 1


if __name__ == "__main__":
    sys.exit(main())
