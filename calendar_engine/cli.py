"""Command-line interface for the calendar reconciliation engine."""

from __future__ import annotations

import argparse
import logging
from datetime import date

from calendar_engine.domain.availability import UnavailableSlot
from calendar_engine.domain.db import DatabaseManager, init_database, reset_database
from calendar_engine.domain.meeting import ROLE_NAMES, CalendarType, DateWindow
from calendar_engine.domain.store import SqlMeetingStore
from calendar_engine.engine.orchestrator import CalendarEngine
from calendar_engine.engine.pipeline import MeetingFilters
from calendar_engine.io.config import load_config
from calendar_engine.io.export_csv import export_meetings_csv
from calendar_engine.io.import_csv import import_employees_csv, import_locations_csv, import_unavailability_csv
from calendar_engine.services.currency import format_nis
from calendar_engine.services.notifications import LoggingNotifier
from calendar_engine.services.timeplan import parse_time_string


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}' (expected YYYY-MM-DD)")


def _parse_time(value: str):
    try:
        return parse_time_string(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid time '{value}' (expected HH:MM)")


def _build_engine(args: argparse.Namespace) -> CalendarEngine:
    cfg = load_config(args.config)
    db_url = args.db or cfg.database_url
    store = SqlMeetingStore(DatabaseManager(db_url))
    return CalendarEngine(store, config=cfg, notifier=LoggingNotifier())


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    db_url = args.db or load_config(args.config).database_url
    if args.reset:
        reset_database(db_url)
        print(f"[OK] Database reset: {db_url}")
    else:
        init_database(db_url)
        print(f"[OK] Database initialized: {db_url}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import CSV data into database."""
    db_url = args.db or load_config(args.config).database_url
    session = DatabaseManager(db_url).get_session()

    try:
        if args.employees:
            count = import_employees_csv(session, args.employees)
            print(f"[OK] Imported {count} employees")

        if args.unavailability:
            count = import_unavailability_csv(session, args.unavailability)
            print(f"[OK] Imported {count} unavailability rows")

        for path in args.lookups or []:
            count = import_locations_csv(session, path)
            print(f"[OK] Imported {count} lookup rows from {path}")

        session.close()
        print("[OK] CSV import complete")

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Import failed: {e}")
        raise


def _cmd_meetings(args: argparse.Namespace) -> None:
    """List reconciled meetings for a window."""
    window = DateWindow(args.start, args.end or args.start)
    filters = MeetingFilters.build(
        staff_name=args.staff,
        calendar_types=args.type or (),
        paid_only=args.paid,
    )

    with _build_engine(args) as engine:
        result = engine.get_reconciled_meetings(window, filters)

    if result.rejection is not None:
        print(f"[ERROR] {result.rejection}")
        return
    for kind in result.skipped_sources:
        print(f"[WARN] Source '{kind.value}' skipped")
    for kind, error in result.degraded_sources.items():
        print(f"[WARN] Source '{kind.value}' unavailable: {error.message}")
    for kind, planned in result.source_windows.items():
        if planned != window:
            print(f"[INFO] Source '{kind.value}' limited to {planned.start}..{planned.end}")

    for meeting in result.meetings:
        when = meeting.time.strftime("%H:%M") if meeting.time else "--:--"
        staff = meeting.attendee_label or meeting.participants.display("manager")
        print(
            f"{meeting.date} {when}  {meeting.id:<14} {meeting.calendar_type.value:<16} "
            f"{meeting.subject.name:<30} {staff:<24} {meeting.location.name}"
        )

    print(f"[INFO] {len(result.meetings)} meetings, total {format_nis(result.total_nis)}")

    if args.out:
        count = export_meetings_csv(result.meetings, args.out)
        print(f"[OK] Exported {count} meetings to {args.out}")


def _cmd_check(args: argparse.Namespace) -> None:
    """Check whether an employee is available at a date/time."""
    with _build_engine(args) as engine:
        result = engine.check_assignment(args.employee, args.date, args.time)

    if result.available:
        print(f"[OK] {args.employee} is available")
    else:
        print(f"[WARN] {result.as_warning()}")


def _cmd_assign(args: argparse.Namespace) -> None:
    """Assign an employee to a meeting role."""
    window = DateWindow(args.date, args.date)

    with _build_engine(args) as engine:
        engine.get_reconciled_meetings(window)
        outcome = engine.assign(
            args.meeting,
            args.role,
            args.employee,
            acknowledge_conflict=args.force,
            principal=args.principal,
        )

    if outcome.failure is not None:
        print(f"[ERROR] {outcome.failure}")
    elif not outcome.written:
        print(f"[WARN] {outcome.conflict}")
        print("[INFO] Re-run with --force to assign anyway")
    else:
        if outcome.conflict is not None:
            print(f"[WARN] Assigned despite conflict: {outcome.conflict}")
        print(f"[OK] {outcome.employee.display_name} assigned as {args.role} on {args.meeting}")


def _cmd_add_unavailable(args: argparse.Namespace) -> None:
    """Declare an unavailable slot for an employee."""
    with _build_engine(args) as engine:
        try:
            slot = UnavailableSlot(args.date, args.start, args.end, args.reason)
            engine.add_unavailable_slot(args.employee, slot)
        except ValueError as e:
            print(f"[ERROR] {e}")
            return

    print(f"[OK] {args.employee} unavailable on {args.date} {args.start:%H:%M}-{args.end:%H:%M}")


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="calendar-engine",
        description="Meeting reconciliation and staff-conflict engine",
    )

    # Global options
    parser.add_argument("--db", help="Database URL (default: database_url from config)")
    parser.add_argument("--config", help="Path to config YAML/JSON (optional)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.add_argument("--reset", action="store_true", help="Drop and recreate all tables")
    init.set_defaults(func=_cmd_init_db)

    # import-csv command
    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--employees", help="Path to employees CSV")
    imp.add_argument("--unavailability", help="Path to unavailability CSV")
    imp.add_argument("--lookups", action="append", help="Path to a locations or currencies CSV (repeatable)")
    imp.set_defaults(func=_cmd_import_csv)

    # meetings command
    meet = sub.add_parser("meetings", help="List reconciled meetings for a date window")
    meet.add_argument("--from", dest="start", required=True, type=_parse_date, help="First date (YYYY-MM-DD)")
    meet.add_argument("--to", dest="end", type=_parse_date, help="Last date, inclusive (default: --from)")
    meet.add_argument("--staff", help="Only meetings with this employee in any role")
    meet.add_argument("--type", action="append", choices=[t.value for t in CalendarType], help="Calendar type (repeatable)")
    meet.add_argument("--paid", action="store_true", help="Only meetings with a payment reference")
    meet.add_argument("--out", help="Optional: export meetings to CSV")
    meet.set_defaults(func=_cmd_meetings)

    # check command
    chk = sub.add_parser("check", help="Check an employee's availability")
    chk.add_argument("--employee", required=True, help="Employee display name")
    chk.add_argument("--date", required=True, type=_parse_date)
    chk.add_argument("--time", type=_parse_time, help="Time of day (HH:MM); omit to check the whole day")
    chk.set_defaults(func=_cmd_check)

    # assign command
    asg = sub.add_parser("assign", help="Assign an employee to a meeting role")
    asg.add_argument("--meeting", required=True, help="Meeting id (e.g. legacy_501)")
    asg.add_argument("--date", required=True, type=_parse_date, help="Meeting date")
    asg.add_argument("--role", required=True, choices=ROLE_NAMES)
    asg.add_argument("--employee", required=True, help="Employee id or display name")
    asg.add_argument("--principal", help="Login of the person making the change")
    asg.add_argument("--force", action="store_true", help="Acknowledge an availability conflict")
    asg.set_defaults(func=_cmd_assign)

    # add-unavailable command
    una = sub.add_parser("add-unavailable", help="Declare an unavailable slot")
    una.add_argument("--employee", required=True, help="Employee id or display name")
    una.add_argument("--date", required=True, type=_parse_date)
    una.add_argument("--start", required=True, type=_parse_time)
    una.add_argument("--end", required=True, type=_parse_time)
    una.add_argument("--reason", required=True)
    una.set_defaults(func=_cmd_add_unavailable)

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
