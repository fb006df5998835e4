#!/usr/bin/env python3
"""
CLI for the periodic lease sweeps, meant to run from cron.

Usage:
    python -m app.cli expire-leases
    python -m app.cli mark-overdue
    python -m app.cli reconcile
    python -m app.cli all

Every sweep is idempotent; running one twice in a row changes nothing the
second time. Notifications queued by a sweep are delivered before exit.
"""

import argparse
import logging
import sys
from datetime import date

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import LeaseLedgerError
from app.core.notifications import EmailClient, NotificationDispatcher
from app.services import leases as lease_service
from app.services import payments as payment_service

logger = logging.getLogger("app.cli")


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value}")


def cmd_expire_leases(db, args) -> int:
    result = lease_service.expire_stale_leases(db, today=args.today)
    print(f"expire-leases: {result.count} expired, {len(result.failed)} failed")
    return 1 if result.failed else 0


def cmd_mark_overdue(db, args) -> int:
    updated = payment_service.mark_overdue(db, today=args.today)
    print(f"mark-overdue: {updated} payments marked overdue")
    return 0


def cmd_reconcile(db, args) -> int:
    result = lease_service.reconcile_property_availability(db)
    print(
        f"reconcile: {len(result.made_unavailable)} unlisted, "
        f"{len(result.made_available)} relisted"
    )
    return 0


def cmd_all(db, args) -> int:
    # Expire first so reconciliation sees the relisted properties
    status = cmd_expire_leases(db, args)
    status |= cmd_mark_overdue(db, args)
    status |= cmd_reconcile(db, args)
    return status


COMMANDS = {
    "expire-leases": (cmd_expire_leases, "Expire approved leases whose end date has passed"),
    "mark-overdue": (cmd_mark_overdue, "Mark pending payments past their due date as overdue"),
    "reconcile": (cmd_reconcile, "Repair property availability drift"),
    "all": (cmd_all, "Run every sweep in order"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lease Ledger - periodic sweeps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m app.cli expire-leases
    python -m app.cli all --today 2026-01-31
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, (func, help_text) in COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--today",
            type=_parse_date,
            default=None,
            help="Evaluate as of this date (YYYY-MM-DD); defaults to today in UTC",
        )
        sub.add_argument(
            "--no-notify",
            action="store_true",
            help="Leave queued notifications for a later run",
        )
        sub.set_defaults(func=func)
    return parser


def main(argv=None, session_factory=SessionLocal, dispatcher=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = session_factory()
    try:
        status = args.func(db, args)
    except LeaseLedgerError as e:
        print(f"Error: {e.detail}", file=sys.stderr)
        return 1
    finally:
        db.close()

    if not args.no_notify:
        dispatcher = dispatcher or NotificationDispatcher(session_factory=session_factory, mailer=EmailClient())
        sent = dispatcher.dispatch_pending()
        logger.info("Delivered %s queued notifications", sent)
    return status


if __name__ == "__main__":
    sys.exit(main())
