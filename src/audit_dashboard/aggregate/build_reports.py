"""Build stored dashboards for every (client, year) pair.

Each dashboard is an independent request, so the pairs are computed as
separate `dask.delayed` tasks; the aggregation of a single dashboard stays
sequential.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Iterable, Mapping
from typing import cast, Any as TypingAny

from dask import delayed, compute  # type: ignore[attr-defined]

from audit_dashboard.aggregate.dashboard import aggregate_dashboard, audits_in, overall_score
from audit_dashboard.aggregate.scoring import year_of
from audit_dashboard.clean.validate import validate_records
from audit_dashboard.models import AuditRow, StoredDashboardReport

log = logging.getLogger(__name__)


def group_rows_by_client_year(
    rows: Iterable[AuditRow | Mapping[str, Any]],
    tz: tzinfo = timezone.utc,
) -> dict[tuple[int, int], list[AuditRow]]:
    """Split rows into per-(client_id, year) lists, keeping row order.

    Rows without a client id or audit date cannot be attributed and are
    dropped.
    """
    validated, _ = validate_records(rows, lenient_answers=True)
    groups: dict[tuple[int, int], list[AuditRow]] = {}
    dropped = 0
    for row in validated:
        if row.client_id is None or row.audit_date is None:
            dropped += 1
            continue
        key = (row.client_id, year_of(row.audit_date, tz))
        groups.setdefault(key, []).append(row)

    if dropped:
        log.warning("Dropped %d rows without client id or audit date", dropped)
    return groups


def _build_one(client_id: int, year: int, rows: list[AuditRow], tz: tzinfo) -> dict[str, Any]:
    """Runs inside a worker (delayed task) and returns a Mongo-ready document."""
    report = aggregate_dashboard(rows, year, tz)
    stored = StoredDashboardReport(
        client_id=client_id,
        year=year,
        overall_score=overall_score(report),
        audits_count=audits_in(rows),
        report=report.to_payload(),
        built_ts=datetime.now(timezone.utc),
    )
    return stored.model_dump(mode="python")


def build_dashboard_reports(
    rows: Iterable[AuditRow | Mapping[str, Any]],
    tz: tzinfo = timezone.utc,
) -> list[dict[str, Any]]:
    """Compute one stored dashboard per (client, year) pair found in `rows`.

    Args:
        rows: Audit rows for any number of clients and years.
        tz: Zone used to bucket timezone-aware audit dates.

    Returns:
        List of `StoredDashboardReport` documents sorted by client and year.
    """
    groups = group_rows_by_client_year(rows, tz)
    if not groups:
        log.warning("No rows to build dashboards from")
        return []

    log.info("Building %d dashboards", len(groups))
    tasks = [
        delayed(_build_one)(client_id, year, group, tz)
        for (client_id, year), group in sorted(groups.items())
    ]

    # `compute` is untyped in our environment; cast to Any before calling
    results = cast(TypingAny, compute)(*tasks)
    return list(results)
