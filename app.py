#!/usr/bin/env python3
"""Tip pool calculator - command line entry point

Splits a shift's cash tips between the selected staff and keeps the roster
and the calculation history in the database.

Usage:
    python app.py roles
    python app.py staff list
    python app.py staff add "Ana Souza" waiter --lunch 6 --dinner 4.5
    python app.py staff update STAFF_ID --dinner 3
    python app.py calculate 250.00 --meal dinner --save
    python app.py calculate 250.00 --staff ID1 ID2 --date 2026-10-17
    python app.py history list
    python app.py history show CALC_ID
    python app.py import-legacy tips-backup.json

    # Use another database
    python app.py --db sqlite:///data/other.db staff list

Environment variables (or .env):
    DATABASE_URL      Database URL (default sqlite:///data/tips.db)
    CURRENCY_SYMBOL   Currency symbol (default $)
    LOG_LEVEL         Log level (default INFO)
    LOG_FILE          Optional log file path
"""
import argparse
import sys
from datetime import datetime
from typing import List, Optional

from loguru import logger

from config.settings import settings
from tipping.exceptions import CalculationNotFoundError, InvalidAmountError, TipPoolError
from tipping.formatting import (
    format_currency, format_date, format_percentage, format_shift,
    parse_amount_input,
)
from tipping.models import MealPeriod, Pool
from tipping.roles import role_catalog
from tipping.validation import resolve_meal_period, validate_amount


def setup_logging(level: Optional[str] = None) -> None:
    """Configure loguru sinks from the settings."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=level or settings.log_level,
    )
    if settings.log_file:
        logger.add(settings.log_file, rotation="1 MB", level="DEBUG")


def _parse_amount(text: str):
    """Accept ``12.34`` style amounts, or digits-only cents entry (``1234``).

    With both separators present the comma groups thousands (``1,234.56``);
    a lone comma is the decimal point (``12,50``).
    """
    if "." in text:
        return text.replace(",", "")
    if "," in text:
        return text.replace(",", ".")
    amount = parse_amount_input(text)
    if amount is None:
        raise InvalidAmountError("Please enter a valid amount")
    return amount


def _parse_date(text: Optional[str]) -> datetime:
    if not text:
        return datetime.now()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise TipPoolError(f"Invalid date: {text}")


# ================================================================
# Commands
# ================================================================

def cmd_roles(store, args) -> None:
    config = store.config
    shares = config.get_pool_shares()
    for role in role_catalog(config):
        pool = config.pool_for_role(role.id)
        share = format_percentage(shares[pool] * 100) if pool else "-"
        print(f"{role.id:<15} {role.name:<15} {pool or 'no pool':<8} {share}")


def cmd_staff(store, args) -> None:
    if args.staff_command == "add":
        store.add_staff(
            args.name, args.role,
            lunch_shift=args.lunch, dinner_shift=args.dinner,
            is_active=not args.inactive,
        )
        member = store.snapshot.staff[-1]
        print(f"Added {member.name} ({member.id})")
    elif args.staff_command == "update":
        changes = {}
        if args.name is not None:
            changes["name"] = args.name
        if args.role is not None:
            changes["role_id"] = args.role
        if args.lunch is not None:
            changes["lunch_shift"] = args.lunch
        if args.dinner is not None:
            changes["dinner_shift"] = args.dinner
        if args.active is not None:
            changes["is_active"] = args.active
        store.update_staff(args.staff_id, **changes)
        print(f"Updated {args.staff_id}")
    elif args.staff_command == "remove":
        store.remove_staff(args.staff_id)
        print(f"Removed {args.staff_id}")
    else:
        members = store.snapshot.search_staff(args.search or "", args.role)
        if not members:
            print("No staff members")
        for member in members:
            status = "" if member.is_active else " (inactive)"
            print(
                f"{member.id}  {member.name:<20} {member.role.name:<15} "
                f"lunch {format_shift(member.lunch_shift):<5} "
                f"dinner {format_shift(member.dinner_shift):<5}{status}"
            )


def _print_lines(lines, pool: Pool, title: str) -> None:
    selected = [line for line in lines if line.pool == pool]
    if not selected:
        return
    print(title)
    for line in selected:
        print(
            f"  {line.staff_name:<20} {line.role.name:<15} "
            f"{format_shift(line.shift_value):<6} {format_currency(line.tip_amount):>10}"
        )


def _print_breakdown(total, lines, undistributed, pool2_base, pool2_extra) -> None:
    _print_lines(lines, Pool.POOL1, "Pool 1")
    _print_lines(lines, Pool.POOL2, "Pool 2")
    print(f"Total tips:     {format_currency(total):>10}")
    print(f"Distributed:    {format_currency(sum(line.tip_amount for line in lines)):>10}")
    print(f"Undistributed:  {format_currency(undistributed):>10}")
    print(f"Pool 2 nominal: {format_currency(pool2_base):>10}")
    if pool2_extra:
        print(f"Pool 2 extra:   {format_currency(pool2_extra):>10}")


def cmd_calculate(store, args) -> None:
    date = _parse_date(args.date)
    meal_period = resolve_meal_period(date.date(), args.meal)
    if meal_period.value != args.meal:
        logger.warning(f"No lunch service on {date:%A}; using dinner shifts")

    staff_ids = args.staff or [member.id for member in store.snapshot.active_staff()]
    amount = validate_amount(_parse_amount(args.amount))

    if args.save:
        calculation = store.save_calculation(amount, staff_ids, meal_period, date)
        print(f"Saved calculation {calculation.id} ({meal_period.label}, {format_date(date)})")
        _print_breakdown(
            calculation.total_tip_amount, calculation.staff_members,
            calculation.undistributed_amount, calculation.pool2_base_amount,
            calculation.pool2_extra_amount,
        )
        return

    result = store.calculate(amount, staff_ids, meal_period)
    if result.is_empty:
        print("No staff in any tip pool selected")
        return
    _print_breakdown(
        amount, result.calculation_staff, result.undistributed_amount,
        result.pool2_base_amount, result.pool2_extra_amount,
    )


def cmd_history(store, args) -> None:
    if args.history_command == "show":
        calculation = store.snapshot.get_calculation(args.calculation_id)
        if calculation is None:
            raise CalculationNotFoundError(f"Calculation not found: {args.calculation_id}")
        print(f"{calculation.id}  {format_date(calculation.date)}  {calculation.meal_period.label}")
        _print_breakdown(
            calculation.total_tip_amount, calculation.staff_members,
            calculation.undistributed_amount, calculation.pool2_base_amount,
            calculation.pool2_extra_amount,
        )
    elif args.history_command == "delete":
        store.remove_calculation(args.calculation_id)
        print(f"Deleted {args.calculation_id}")
    else:
        history = store.snapshot.history()
        if not history:
            print("No saved calculations")
        if args.limit:
            history = history[:args.limit]
        for calculation in history:
            print(
                f"{calculation.id}  {format_date(calculation.date)}  "
                f"{calculation.meal_period.label:<7} "
                f"{format_currency(calculation.total_tip_amount):>10}  "
                f"{len(calculation.staff_members)} staff"
            )


def cmd_import_legacy(store, args) -> None:
    counts = store.db.import_legacy_file(args.path)
    store.load()
    print(f"Imported {counts['staff']} staff and {counts['calculations']} calculations")


COMMANDS = {
    "roles": cmd_roles,
    "staff": cmd_staff,
    "calculate": cmd_calculate,
    "history": cmd_history,
    "import-legacy": cmd_import_legacy,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Restaurant tip pool calculator")
    parser.add_argument("--db", default=None, help="Database URL (default: DATABASE_URL)")
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("roles", help="List roles and their pools")

    staff = subparsers.add_parser("staff", help="Manage the roster")
    staff_sub = staff.add_subparsers(dest="staff_command")
    staff_list = staff_sub.add_parser("list", help="List staff members")
    staff_list.add_argument("--search", default=None, help="Name filter")
    staff_list.add_argument("--role", default=None, help="Role id filter")
    staff_add = staff_sub.add_parser("add", help="Add a staff member")
    staff_add.add_argument("name")
    staff_add.add_argument("role", help="Role id, see 'roles'")
    staff_add.add_argument("--lunch", default="6", help="Lunch shift hours (default: 6)")
    staff_add.add_argument("--dinner", default="6", help="Dinner shift hours (default: 6)")
    staff_add.add_argument("--inactive", action="store_true", help="Add as inactive")
    staff_update = staff_sub.add_parser("update", help="Update a staff member")
    staff_update.add_argument("staff_id")
    staff_update.add_argument("--name", default=None)
    staff_update.add_argument("--role", default=None)
    staff_update.add_argument("--lunch", default=None)
    staff_update.add_argument("--dinner", default=None)
    staff_update.add_argument("--active", dest="active", action="store_true", default=None)
    staff_update.add_argument("--inactive", dest="active", action="store_false")
    staff_remove = staff_sub.add_parser("remove", help="Remove a staff member")
    staff_remove.add_argument("staff_id")
    staff.set_defaults(staff_command="list", search=None, role=None)

    calculate = subparsers.add_parser("calculate", help="Split a tip amount")
    calculate.add_argument("amount", help="Tip amount, e.g. 250.00 or 25000 (cents)")
    calculate.add_argument("--meal", choices=[m.value for m in MealPeriod],
                           default=MealPeriod.DINNER.value)
    calculate.add_argument("--staff", nargs="+", default=None,
                           help="Staff ids (default: every active member)")
    calculate.add_argument("--date", default=None, help="ISO date/time (default: now)")
    calculate.add_argument("--save", action="store_true", help="Save to the history")

    history = subparsers.add_parser("history", help="Saved calculations")
    history_sub = history.add_subparsers(dest="history_command")
    history_list = history_sub.add_parser("list", help="List saved calculations")
    history_list.add_argument("--limit", type=int, default=None)
    history_show = history_sub.add_parser("show", help="Show one calculation")
    history_show.add_argument("calculation_id")
    history_delete = history_sub.add_parser("delete", help="Delete one calculation")
    history_delete.add_argument("calculation_id")
    history.set_defaults(history_command="list", limit=None)

    legacy = subparsers.add_parser("import-legacy", help="Import a legacy JSON backup")
    legacy.add_argument("path")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    from database import DatabaseManager
    from business import TipStore

    db = None
    try:
        db = DatabaseManager(args.db)
        db.create_tables()
        db.upgrade_schema()
        logger.debug(f"Database connected: {db.database_url}")

        store = TipStore(db)
        store.load()
        COMMANDS[args.command](store, args)
        return 0
    except TipPoolError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Invalid data: {e}")
        return 1
    finally:
        if db is not None:
            db.close()


if __name__ == "__main__":
    sys.exit(main())
