#!/usr/bin/env python3
"""
Command-line front end for the cash reconciliation kernel.

Every command runs in one database transaction: it commits when the
command succeeds and rolls back when it raises.

Usage:
    python3 scripts/cashrecon.py balances
    python3 scripts/cashrecon.py open 200 500
    python3 scripts/cashrecon.py entry 2024-03-01 50 20 30 200
    python3 scripts/cashrecon.py withdraw 40 "bank deposit"
    python3 scripts/cashrecon.py history
    python3 scripts/cashrecon.py transactions --month 2024-03
    python3 scripts/cashrecon.py months
    python3 scripts/cashrecon.py close 2024-02
    python3 scripts/cashrecon.py verify
    python3 scripts/cashrecon.py --config my.yaml balances
"""

import argparse
import sys
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72


# =============================================================================
# Formatting
# =============================================================================

def hline(char: str = "=") -> str:
    return char * W


def banner(title: str) -> None:
    print()
    print(hline())
    print(f"  {title}")
    print(hline())


def _fmt(v) -> str:
    d = Decimal(str(v))
    return f"${d:,.2f}"


# =============================================================================
# Commands
# =============================================================================

def cmd_balances(recon, archive, args) -> None:
    balances = recon.balances.current()
    banner("SAFE BALANCES")
    print(f"  {'Front safe':<20} {_fmt(balances.front_safe):>16}")
    print(f"  {'Back safe':<20} {_fmt(balances.back_safe):>16}")
    print(f"  {'Total':<20} {_fmt(balances.total):>16}")
    print(f"  Next entry starts from {_fmt(recon.previous_balance())}")


def cmd_open(recon, archive, args) -> None:
    balances = recon.open_balances(args.front, args.back, note=args.note)
    print(f"  Opening balances set: front {_fmt(balances.front_safe)}, back {_fmt(balances.back_safe)}")


def cmd_entry(recon, archive, args) -> None:
    entry = recon.create_or_update_entry(
        {
            "id": args.id,
            "date": args.date,
            "cash_in": args.cash_in,
            "deposited": args.deposited,
            "to_back_safe": args.to_back,
            "left_in_front": args.left_in_front,
            "notes": args.notes,
        },
        is_editing=args.id is not None,
    )
    status = "BALANCED" if entry.is_balanced else f"OFF BY {_fmt(entry.difference)}"
    print(f"  Entry {entry.id} ({entry.date}): expected {_fmt(entry.expected_front_safe)}, {status}")


def cmd_withdraw(recon, archive, args) -> None:
    withdrawal = recon.create_withdrawal(args.amount, args.reason, withdrawal_date=args.date)
    balances = recon.balances.current()
    print(f"  Withdrew {_fmt(withdrawal.amount)} ({withdrawal.reason}); back safe now {_fmt(balances.back_safe)}")


def cmd_history(recon, archive, args) -> None:
    entries = recon.history(limit=args.limit)
    if not entries:
        print("  No entries recorded.")
        return
    banner("DAILY ENTRIES")
    print(f"  {'Date':<12} {'Cash in':>11} {'Deposited':>11} {'To back':>11} {'In front':>11}  Status")
    print(f"  {'-'*12} {'-'*11} {'-'*11} {'-'*11} {'-'*11}  {'-'*8}")
    for e in entries:
        if e.is_balanced:
            status = "ok"
        elif e.manually_approved:
            status = f"approved ({_fmt(e.difference)})"
        else:
            status = f"off {_fmt(e.difference)}"
        print(
            f"  {e.date:<12} {_fmt(e.cash_in):>11} {_fmt(e.deposited):>11} "
            f"{_fmt(e.to_back_safe):>11} {_fmt(e.left_in_front):>11}  {status}"
        )


def cmd_transactions(recon, archive, args) -> None:
    transactions = recon.back_safe_transactions(month=args.month, type=args.type)
    if not transactions:
        print("  No back-safe transactions.")
        return
    banner("BACK SAFE TRANSACTIONS")
    for t in transactions:
        sign = "+" if t.type.value == "deposit" else "-"
        print(f"  {t.date:<12} {t.type.value:<11} {sign}{_fmt(t.amount):>12}  {t.description}")


def cmd_months(recon, archive, args) -> None:
    closable = set(archive.closable_months())
    banner("MONTHS")
    for month in archive.list_available_months():
        status = archive.month_status(month).value
        starting = archive.get_month_starting_balances(month)
        marker = "  (closable)" if month in closable else ""
        print(
            f"  {month}  {status:<7} start front {_fmt(starting.front_safe):>12}"
            f"  back {_fmt(starting.back_safe):>12}{marker}"
        )


def cmd_close(recon, archive, args) -> None:
    result = archive.close_month(args.month)
    if result is None:
        print(f"  {args.month} has no entries; nothing to close.")
        return
    print(
        f"  Closed {result.month}: {len(result.entries)} entries, "
        f"{len(result.withdrawals)} withdrawals, ending front "
        f"{_fmt(result.ending_front_safe)}, back {_fmt(result.ending_back_safe)}"
    )


def cmd_verify(recon, archive, args) -> None:
    balances = recon.verify_balances()
    print(f"  Balances verified: front {_fmt(balances.front_safe)}, back {_fmt(balances.back_safe)}")


# =============================================================================
# Entry point
# =============================================================================

def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Daily cash-drawer reconciliation")
    p.add_argument("--config", default=None, help="YAML configuration file")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("balances", help="Show current safe balances")
    s.set_defaults(handler=cmd_balances)

    s = sub.add_parser("open", help="Set opening safe balances")
    s.add_argument("front")
    s.add_argument("back")
    s.add_argument("--note", default=None)
    s.set_defaults(handler=cmd_open)

    s = sub.add_parser("entry", help="Record (or with --id, edit) a daily entry")
    s.add_argument("date", help="YYYY-MM-DD")
    s.add_argument("cash_in")
    s.add_argument("deposited")
    s.add_argument("to_back")
    s.add_argument("left_in_front")
    s.add_argument("--id", default=None, help="Existing entry id to edit")
    s.add_argument("--notes", default=None)
    s.set_defaults(handler=cmd_entry)

    s = sub.add_parser("withdraw", help="Withdraw cash from the back safe")
    s.add_argument("amount")
    s.add_argument("reason")
    s.add_argument("--date", default=None, help="YYYY-MM-DD (default: today)")
    s.set_defaults(handler=cmd_withdraw)

    s = sub.add_parser("history", help="List daily entries, newest first")
    s.add_argument("--limit", type=int, default=None)
    s.set_defaults(handler=cmd_history)

    s = sub.add_parser("transactions", help="List back-safe transactions")
    s.add_argument("--month", default=None, help="YYYY-MM")
    s.add_argument("--type", choices=("deposit", "withdrawal"), default=None)
    s.set_defaults(handler=cmd_transactions)

    s = sub.add_parser("months", help="List months with status and starting balances")
    s.set_defaults(handler=cmd_months)

    s = sub.add_parser("close", help="Close and archive a month")
    s.add_argument("month", help="YYYY-MM")
    s.set_defaults(handler=cmd_close)

    s = sub.add_parser("verify", help="Check balances against the ledger")
    s.set_defaults(handler=cmd_verify)

    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)

    from cash_config import get_active_config
    from cash_config.bridges import build_kernel_settings
    from cash_config.loader import log_level
    from cash_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from cash_kernel.exceptions import CashKernelError
    from cash_kernel.logging_config import configure_logging
    from cash_kernel.services import MonthArchiveService, ReconciliationService
    from cash_kernel.store import SqlAlchemyLedgerStore

    try:
        config = get_active_config(args.config)
    except CashKernelError as exc:
        print(f"{exc.code}: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=log_level(config))
    settings = build_kernel_settings(config)

    init_engine_from_url(config.database.url, echo=config.database.echo)
    create_tables()

    try:
        with session_scope() as session:
            store = SqlAlchemyLedgerStore(session)
            recon = ReconciliationService(store, settings=settings)
            archive = MonthArchiveService(store, settings=settings)
            args.handler(recon, archive, args)
    except CashKernelError as exc:
        print(f"{exc.code}: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
