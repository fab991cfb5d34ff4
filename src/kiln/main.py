from __future__ import annotations

import argparse
import logging
import sys

from kiln.application.container import build_container
from kiln.config import get_app_paths
from kiln.domain.errors import AppError
from kiln.logging_config import setup_logging
from kiln.services.aggregation import due_report, ledger_stats, sales_on_day, summarize_sales, today_string


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kiln", description="Brick kiln ledger")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("summary", help="Show totals, today's sales and dues")
    sub.add_parser("backup", help="Write a JSON backup to the backups folder")
    restore = sub.add_parser("restore", help="Replace all data with a JSON backup")
    restore.add_argument("file")
    report = sub.add_parser("report", help="Export a sales report to Excel")
    report.add_argument("start", help="YYYY-MM-DD")
    report.add_argument("end", help="YYYY-MM-DD")
    report.add_argument("out", help="Target .xlsx path")
    sub.add_parser("health", help="Run a health check")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    app = build_container(paths.db_path, backup_dir=paths.backups_dir)

    try:
        if args.command == "summary":
            entries = app.store.entries
            stats = ledger_stats(entries)
            today = summarize_sales(sales_on_day(entries, today_string()))
            dues = due_report(entries)
            print(f"Total sales:    {stats.total_sales:,.2f}")
            print(f"Total expenses: {stats.total_expenses:,.2f}")
            print(f"Profit/loss:    {stats.profit:,.2f}")
            print(f"Net cash:       {stats.net_cash:,.2f}")
            print(f"Today: {today.total_bricks} bricks, {today.total_amount:,.2f}")
            print(f"Due: {dues.total_due:,.2f} across {dues.open_count} memos")
            print(f"Next challan: {app.sales.next_challan_number()}")
        elif args.command == "backup":
            print(app.backup.create_backup())
        elif args.command == "restore":
            n_entries, n_customers = app.backup.restore_backup(args.file)
            print(f"Restored {n_entries} entries and {n_customers} customers")
        elif args.command == "report":
            app.reporting.export_sales_report_excel(args.out, args.start, args.end)
            print(args.out)
        elif args.command == "health":
            report = app.operations.run_health_check()
            for k, v in report.__dict__.items():
                print(f"{k}: {v}")
    except AppError as e:
        logging.getLogger(__name__).error("command_failed command=%s error=%s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
