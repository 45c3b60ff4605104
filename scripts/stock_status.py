#!/usr/bin/env python3
"""
Print current stock from the transaction log.

Connects to the database (assumes tables and data already exist), replays
the stock transaction log for the given filters and prints the summary and
one sorted page of stock rows.

Usage:
    python3 scripts/stock_status.py --db-url sqlite:///stock.db
    python3 scripts/stock_status.py --location MR --mr-id 42 --sort total_value --desc
    python3 scripts/stock_status.py --product amox --expiry-to 2025-06-30 --json
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_DB_URL = "sqlite:///stock_ledger.db"
W = 110


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show stock positions replayed from the transaction log.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/stock_status.py --location GODOWN\n"
            "  python3 scripts/stock_status.py --location MR --mr-id 42\n"
            "  python3 scripts/stock_status.py --category Antibiotics --json\n"
        ),
    )
    parser.add_argument(
        "--db-url", type=str, default=DEFAULT_DB_URL,
        help=f"Database URL (default: {DEFAULT_DB_URL})",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Configuration YAML (default: stock_config/sets/default.yaml)",
    )
    parser.add_argument(
        "--location", choices=("ALL", "GODOWN", "MR"), default="ALL",
        help="Location scope",
    )
    parser.add_argument("--mr-id", type=str, help="Single MR (requires --location MR)")
    parser.add_argument("--product", type=str, help="Product name/code contains")
    parser.add_argument("--batch", type=str, help="Batch number contains")
    parser.add_argument("--category", type=str, help="Exact category name")
    parser.add_argument("--expiry-from", type=_parse_date, help="Earliest expiry (inclusive)")
    parser.add_argument("--expiry-to", type=_parse_date, help="Latest expiry (inclusive)")
    parser.add_argument("--sort", type=str, default=None, help="Sort field")
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--offset", type=int, default=0)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument(
        "--json", action="store_true",
        help="Output the report as JSON instead of formatted text",
    )
    return parser


def _location_filter(args):
    from stock_kernel.domain.values import LocationFilter

    if args.mr_id:
        if args.location != "MR":
            raise ValueError("--mr-id requires --location MR")
        return LocationFilter.mr(args.mr_id)
    return {
        "ALL": LocationFilter.all,
        "GODOWN": LocationFilter.godown,
        "MR": LocationFilter.any_mr,
    }[args.location]()


def print_report(report) -> None:
    s = report.summary
    print("=" * W)
    print(f"  STOCK STATUS  as of {report.as_of}")
    print("=" * W)
    print(f"  Products: {s.total_products:<8} Batches: {s.total_batches:<8} "
          f"Value: {s.total_value:,.2f}")
    print(f"  Low stock: {s.low_stock_count:<7} Expiring soon: {s.expiring_soon_count:<5} "
          f"Expired: {s.expired_count}")
    print(f"  Godown rows: {s.godown_position_count:<5} MR rows: {s.mr_position_count}")
    print("-" * W)
    print(f"  {'Product':<28}{'Batch':<14}{'Expiry':<12}{'Location':<16}"
          f"{'Qty':>8}{'Cost':>10}{'Value':>12}  Status")
    print("-" * W)
    for row in report.rows:
        v = row.view
        print(f"  {v.product_name[:27]:<28}{v.batch_number[:13]:<14}"
              f"{v.expiry_date.isoformat():<12}{str(v.location)[:15]:<16}"
              f"{v.current_quantity:>8}{v.cost_per_unit:>10.2f}{v.total_value:>12.2f}"
              f"  {row.status.stock.value}/{row.status.expiry.value}")
    print("-" * W)
    last = report.offset + len(report.rows)
    print(f"  Rows {report.offset + 1 if report.rows else 0}-{last} of {report.total_count}"
          f"  ({report.outcome.value})")


def report_to_dict(report) -> dict:
    return {
        "as_of": report.as_of.isoformat(),
        "outcome": report.outcome.value,
        "total_count": report.total_count,
        "offset": report.offset,
        "limit": report.limit,
        "summary": asdict(report.summary),
        "rows": [
            {
                "product_id": str(row.view.product_id),
                "product_name": row.view.product_name,
                "product_code": row.view.product_code,
                "batch_id": str(row.view.batch_id),
                "batch_number": row.view.batch_number,
                "expiry_date": row.view.expiry_date.isoformat(),
                "location_type": row.view.location_type.value,
                "location_id": row.view.location_id,
                "current_quantity": row.view.current_quantity,
                "cost_per_unit": str(row.view.cost_per_unit),
                "total_value": str(row.view.total_value),
                "stock_status": row.status.stock.value,
                "expiry_status": row.status.expiry.value,
            }
            for row in report.rows
        ],
    }


def run(args: argparse.Namespace) -> int:
    from sqlalchemy.exc import SQLAlchemyError

    from stock_config import get_active_config
    from stock_engines.listing import SortDirection, SortField, validate_page_request
    from stock_kernel.db.engine import get_session, init_engine_from_url
    from stock_kernel.domain.clock import SystemClock
    from stock_kernel.domain.dtos import StockFilters
    from stock_kernel.exceptions import StockLedgerError
    from stock_services.stock_ledger_service import StockLedgerService

    try:
        config = get_active_config(args.config)
        filters = StockFilters(
            location=_location_filter(args),
            product_text=args.product,
            batch_text=args.batch,
            category=args.category,
            expiry_from=args.expiry_from,
            expiry_to=args.expiry_to,
        )
    except (StockLedgerError, ValueError, OSError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 2

    try:
        sort_field = SortField.parse(args.sort or config.default_sort_field)
        sort_direction = (
            SortDirection.DESC if args.desc
            else SortDirection.parse(config.default_sort_direction)
        )
        limit = args.limit if args.limit is not None else config.default_page_size
        validate_page_request(args.offset, limit, config.max_page_size)
    except StockLedgerError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 2

    try:
        init_engine_from_url(args.db_url, echo=False)
    except SQLAlchemyError as exc:
        print(f"  ERROR: Cannot connect to database: {exc}", file=sys.stderr)
        return 1

    session = get_session()
    try:
        service = StockLedgerService(session, clock=SystemClock(), config=config)
        report = service.stock_report(
            filters,
            sort_field=sort_field,
            sort_direction=sort_direction,
            offset=args.offset,
            limit=limit,
        )
    except StockLedgerError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        session.close()

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2, default=str))
    else:
        print_report(report)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Suppress library logging
    logging.disable(logging.CRITICAL)
    try:
        return run(args)
    finally:
        logging.disable(logging.NOTSET)


if __name__ == "__main__":
    sys.exit(main())
