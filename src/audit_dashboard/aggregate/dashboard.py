"""Dashboard aggregation for one client and one year of audits.

Rows (one per audit × topic × question with that audit's answer) are turned
into two views:

- `processes`: one row per topic with the mean TopicScore per calendar month
- `monthly_results`: twelve monthly overall scores

Averaging happens in two levels for the monthly overall: first each audit's
own mean over its scored topics, then the mean of those audit means within
the month. It is not a flat mean over every topic score of the month.

Expectations:
- Rows already filtered to the requested client and year.
- At most one definitive answer per (audit, topic, question); when repeated,
  the first row read wins.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Any, Iterable, Mapping

from audit_dashboard.aggregate.scoring import (
    MONTH_ABBREVIATIONS,
    MeanAccumulator,
    month_index,
    month_labels,
    round_half_up,
    status_weight,
)
from audit_dashboard.clean.validate import validate_records
from audit_dashboard.models import AuditRow, DashboardReport, MonthlyResult, ProcessScores

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TopicMeta:
    id: int
    name: str | None
    order: int | None
    seen_at: int


@dataclass
class _Grouped:
    """Result of the grouping pass over the rows."""
    topics: dict[int, _TopicMeta]
    audit_months: dict[int, int]
    topic_scores: dict[tuple[int, int], MeanAccumulator]
    skipped: int


def _group_rows(rows: list[AuditRow], tz: tzinfo) -> _Grouped:
    topics: dict[int, _TopicMeta] = {}
    audit_months: dict[int, int] = {}
    topic_scores: dict[tuple[int, int], MeanAccumulator] = {}
    seen_questions: set[tuple[int, int, int]] = set()
    skipped = 0

    for row in rows:
        if (
            row.audit_id is None
            or row.audit_date is None
            or row.topic_id is None
            or row.question_id is None
        ):
            skipped += 1
            continue

        if row.topic_id not in topics:
            topics[row.topic_id] = _TopicMeta(
                id=row.topic_id,
                name=row.topic_name,
                order=row.topic_order,
                seen_at=len(topics),
            )
        if row.audit_id not in audit_months:
            audit_months[row.audit_id] = month_index(row.audit_date, tz)

        key = (row.audit_id, row.topic_id)
        acc = topic_scores.setdefault(key, MeanAccumulator())

        question_key = (row.audit_id, row.topic_id, row.question_id)
        if question_key in seen_questions:
            continue
        seen_questions.add(question_key)

        weight = status_weight(row.status)
        if weight is not None:
            acc.add(weight)

    return _Grouped(topics, audit_months, topic_scores, skipped)


def aggregate_dashboard(
    rows: Iterable[AuditRow | Mapping[str, Any]],
    year: int,
    tz: tzinfo = timezone.utc,
) -> DashboardReport:
    """Aggregate a client's year of audit rows into a `DashboardReport`.

    Args:
        rows: Audit rows for one client and one year, as models or mappings.
        year: Requested year; used for the ``MES/YY`` labels.
        tz: Zone used to bucket timezone-aware audit datetimes into months.

    Returns:
        A report with one `ProcessScores` per distinct topic (ordered by topic
        display order, then first appearance) and exactly twelve
        `MonthlyResult` entries, January first. Cells without data are None.
    """
    validated, _ = validate_records(rows, lenient_answers=True)
    grouped = _group_rows(validated, tz)

    topic_month: dict[tuple[int, int], MeanAccumulator] = defaultdict(MeanAccumulator)
    audit_means: dict[int, MeanAccumulator] = defaultdict(MeanAccumulator)

    for (audit_id, topic_id), acc in grouped.topic_scores.items():
        score = acc.mean()
        if score is None:
            continue
        month = grouped.audit_months[audit_id]
        topic_month[(topic_id, month)].add(score)
        audit_means[audit_id].add(score)

    month_overall: dict[int, MeanAccumulator] = defaultdict(MeanAccumulator)
    for audit_id, acc in audit_means.items():
        audit_mean = acc.mean()
        if audit_mean is not None:
            month_overall[grouped.audit_months[audit_id]].add(audit_mean)

    ordered_topics = sorted(
        grouped.topics.values(),
        key=lambda t: (t.order is None, t.order or 0, t.seen_at),
    )
    processes = []
    for topic in ordered_topics:
        cells: dict[str, int | None] = {}
        for month, abbr in enumerate(MONTH_ABBREVIATIONS):
            cell = topic_month.get((topic.id, month))
            cells[abbr] = cell.percentage() if cell is not None else None
        processes.append(ProcessScores(id=topic.id, name=topic.name, **cells))

    monthly_results = []
    for month, label in enumerate(month_labels(year)):
        overall = month_overall.get(month)
        monthly_results.append(
            MonthlyResult(label=label, result=overall.percentage() if overall is not None else None)
        )

    log.debug(
        "Aggregated %d audits across %d topics for year=%d (skipped %d rows)",
        len(grouped.audit_months),
        len(grouped.topics),
        year,
        grouped.skipped,
    )
    return DashboardReport(processes=processes, monthly_results=monthly_results)


def overall_score(report: DashboardReport) -> int | None:
    """Return the yearly score: the mean of the non-null monthly results.

    Args:
        report: A report produced by `aggregate_dashboard`.

    Returns:
        Integer percentage, or ``None`` when no month has data.
    """
    values = [m.result for m in report.monthly_results if m.result is not None]
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def audits_in(rows: Iterable[AuditRow]) -> int:
    """Count distinct audit ids among validated rows."""
    return len({r.audit_id for r in rows if r.audit_id is not None})
