from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from src.core.config import SETTINGS
from src.data_io.exporter import ExportError, export_workbook
from src.data_io.importer import ImportFormatError, import_accounts
from src.utils.account_store import AccountStore
from src.utils.formatters import format_currency, format_date, format_duration
from src.utils.logging import setup_logging
from src.utils.quant_engine import project_account, project_goal
from src.utils.quant_models import AccountSnapshot, AmountGoal, DateGoal, DefaultGoal


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _snapshot(args: argparse.Namespace) -> AccountSnapshot:
    goal = DefaultGoal()
    if getattr(args, "target_amount", None) is not None:
        goal = AmountGoal(target_amount=args.target_amount)
    elif getattr(args, "target_date", None):
        goal = DateGoal(target_date=args.target_date)
    return AccountSnapshot(
        starting_balance=args.balance,
        interest_rate=args.rate,
        compound_frequency=args.frequency,
        monthly_contribution=args.contribution,
        goal=goal,
    )


def cmd_project(args: argparse.Namespace) -> int:
    try:
        snap = _snapshot(args)
    except ValidationError as e:
        print(f"❌ Invalid account: {e.errors()[0].get('msg')}")
        return 2

    points = project_account(snap, args.months, now=_now())
    if args.json:
        print(json.dumps([p.model_dump(mode="json") for p in points], indent=2))
        return 0

    for p in points:
        print(
            f"{p.month_index:>4}  {format_date(p.calendar_date):<13} "
            f"{format_currency(p.balance):>16}  interest {format_currency(p.interest_earned)}"
        )
    return 0


def cmd_goal(args: argparse.Namespace) -> int:
    try:
        snap = _snapshot(args)
    except ValidationError as e:
        print(f"❌ Invalid account: {e.errors()[0].get('msg')}")
        return 2

    out = project_goal(snap, now=_now(), default_months=args.months)
    if args.json:
        print(out.model_dump_json(indent=2))
        return 0

    print(f"Achievable: {'yes' if out.achievable else 'no'}")
    if out.time_to_goal_months is not None:
        print(f"Time to goal: {format_duration(out.time_to_goal_months)} ({out.time_to_goal_months:.2f} months)")
    if out.final_amount is not None:
        print(f"Final amount: {format_currency(out.final_amount)}")
    if out.monthly_needed is not None:
        print(f"Monthly needed: {format_currency(out.monthly_needed)}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    path = Path(args.file)
    try:
        result = import_accounts(path.read_bytes(), path.name, now=_now())
    except (OSError, ImportFormatError) as e:
        print(f"❌ Import failed: {e}")
        return 2

    for issue in result.errors:
        print(f"ERROR: row {issue.row} {issue.column}: {issue.message}")
    for issue in result.warnings:
        print(f"WARN: row {issue.row} {issue.column}: {issue.message}")
    s = result.stats
    print(f"rows={s.total_rows} valid={s.valid_rows} errors={s.error_rows} warnings={s.warning_rows}")

    if args.commit and result.accounts:
        created = AccountStore(args.store or SETTINGS.accounts_path).bulk_import(result.accounts, now=_now())
        print(f"✅ Imported {len(created)} accounts")

    return 2 if result.errors else 0


def cmd_export(args: argparse.Namespace) -> int:
    store = AccountStore(args.store or SETTINGS.accounts_path)
    try:
        data = export_workbook(store.list(), args.kind, args.months, now=_now())
    except ExportError as e:
        print(f"❌ Export failed: {e}")
        return 2
    Path(args.out).write_bytes(data)
    print(f"✅ Wrote {args.out}")
    return 0


def _add_account_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--balance", type=float, required=True)
    p.add_argument("--rate", type=float, required=True, help="Annual rate as a decimal (0.05 = 5%%)")
    p.add_argument("--frequency", choices=["daily", "monthly", "yearly"], default="monthly")
    p.add_argument("--contribution", type=float, default=0.0)
    p.add_argument("--months", type=int, default=SETTINGS.default_projection_months)
    p.add_argument("--json", action="store_true")


def main() -> None:
    setup_logging(SETTINGS.log_level)
    p = argparse.ArgumentParser(prog="accounts_cli", description="Savings account projections")
    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser("project", help="Month-by-month projection")
    _add_account_args(pr)
    pr.set_defaults(func=cmd_project)

    g = sub.add_parser("goal", help="Evaluate a savings goal")
    _add_account_args(g)
    target = g.add_mutually_exclusive_group()
    target.add_argument("--target-amount", type=float, default=None)
    target.add_argument("--target-date", default=None, help="YYYY-MM-DD")
    g.set_defaults(func=cmd_goal)

    i = sub.add_parser("import", help="Validate (and optionally store) a CSV/Excel file")
    i.add_argument("file")
    i.add_argument("--commit", action="store_true")
    i.add_argument("--store", default=None)
    i.set_defaults(func=cmd_import)

    e = sub.add_parser("export", help="Export stored accounts to Excel")
    e.add_argument("--kind", choices=["summary", "detailed"], default="summary")
    e.add_argument("--months", type=int, default=SETTINGS.default_projection_months)
    e.add_argument("--out", required=True)
    e.add_argument("--store", default=None)
    e.set_defaults(func=cmd_export)

    args = p.parse_args()
    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
