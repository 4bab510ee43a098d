"""Command-line interface for the audit dashboard.

Provides subcommands: `ingest`, `detail`, `dashboard`, `years` and
`reports`. Each command is implemented as a `cmd_*` function that accepts an
argparse namespace and prints JSON to stdout.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from dotenv import load_dotenv

from audit_dashboard.config import Settings, get_settings
from audit_dashboard.logging_config import configure_logging
from audit_dashboard.db import (
    fetch_all_rows,
    fetch_audit_rows,
    fetch_audit_years,
    fetch_dashboard_rows,
    get_client,
    get_db,
)

# INGEST
from audit_dashboard.ingest.load_rows import frame_to_records, load_rows_to_mongo, read_rows_file

# AGGREGATE
from audit_dashboard.aggregate.dashboard import aggregate_dashboard, overall_score
from audit_dashboard.aggregate.detail import assemble_audit_detail
from audit_dashboard.aggregate.build_reports import build_dashboard_reports
from audit_dashboard.aggregate.load_reports import load_reports

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _collection(s: Settings, name: str) -> Any:
    client = get_client(s.mongo_uri, tls=s.mongo_tls)
    return get_db(client, s.mongo_db)[name]


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


# --------------------------------------------------
# INGEST
# --------------------------------------------------
def cmd_ingest(args: argparse.Namespace) -> None:
    """Load a CSV/JSON export of flattened rows into the rows collection.

    Args:
        args: argparse namespace with `file`.
    """
    s = get_settings()
    pdf = read_rows_file(Path(args.file))
    log.info("Read %d rows from %s", len(pdf), args.file)

    good, bad = load_rows_to_mongo(
        _collection(s, s.rows_collection), frame_to_records(pdf), s.audit_timezone
    )
    _emit({"file": str(args.file), "good": good, "bad": bad})


# --------------------------------------------------
# DETAIL / DASHBOARD
# --------------------------------------------------
def cmd_detail(args: argparse.Namespace) -> None:
    """Print the assembled detail of one audit, or exit 1 when it has no data."""
    s = get_settings()
    rows = fetch_audit_rows(_collection(s, s.rows_collection), args.audit_id)
    detail = assemble_audit_detail(rows)
    if detail is None:
        _emit(None)
        raise SystemExit(1)
    _emit(detail.to_payload())


def cmd_dashboard(args: argparse.Namespace) -> None:
    """Print the `{processos, resultadosMensais}` dashboard of a client/year."""
    s = get_settings()
    rows = fetch_dashboard_rows(
        _collection(s, s.rows_collection), args.client_id, args.year, s.audit_timezone
    )
    report = aggregate_dashboard(rows, args.year, s.audit_timezone)
    log.info(
        "Dashboard client=%d year=%d overall=%s",
        args.client_id,
        args.year,
        overall_score(report),
    )
    _emit(report.to_payload())


def cmd_years(args: argparse.Namespace) -> None:
    """Print the years in which a client has audits."""
    s = get_settings()
    coll = _collection(s, s.rows_collection)
    _emit(fetch_audit_years(coll, args.client_id, str(s.audit_timezone)))


# --------------------------------------------------
# REPORTS
# --------------------------------------------------
def cmd_reports(_: argparse.Namespace) -> None:
    """Rebuild every (client, year) dashboard and upsert it into Mongo."""
    s = get_settings()
    rows = fetch_all_rows(_collection(s, s.rows_collection))
    if not rows:
        raise RuntimeError(f"{s.rows_collection} is empty. Run ingest first.")

    reports = build_dashboard_reports(rows, s.audit_timezone)
    written = load_reports(_collection(s, s.reports_collection), reports)
    _emit({"reports": written})


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="audit-dashboard")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ingest = sub.add_parser("ingest", help="load flattened rows from a file")
    p_ingest.add_argument("--file", required=True)

    p_detail = sub.add_parser("detail", help="assemble one audit")
    p_detail.add_argument("--audit-id", type=int, required=True)

    p_dash = sub.add_parser("dashboard", help="aggregate a client's year")
    p_dash.add_argument("--client-id", type=int, required=True)
    p_dash.add_argument("--year", type=int, required=True)

    p_years = sub.add_parser("years", help="list years with audits for a client")
    p_years.add_argument("--client-id", type=int, required=True)

    sub.add_parser("reports", help="rebuild stored dashboards for every client/year")

    return p


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(Path("logs/audit.log"), get_settings().log_level)

    if args.cmd == "ingest":
        cmd_ingest(args)
    elif args.cmd == "detail":
        cmd_detail(args)
    elif args.cmd == "dashboard":
        cmd_dashboard(args)
    elif args.cmd == "years":
        cmd_years(args)
    elif args.cmd == "reports":
        cmd_reports(args)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
