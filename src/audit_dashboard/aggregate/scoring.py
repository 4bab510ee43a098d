"""Scoring primitives shared by the dashboard aggregation.

- answer weights (CF=1, PC=0.5, NC=0; NE is not scored)
- `MeanAccumulator`, the running {sum, count} record behind every mean
- half-up rounding to integer percentages
- calendar-month bucketing of audit dates
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo

from audit_dashboard.models import AnswerStatus

STATUS_WEIGHTS: dict[AnswerStatus, float] = {
    AnswerStatus.CF: 1.0,
    AnswerStatus.PC: 0.5,
    AnswerStatus.NC: 0.0,
}

MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "jan", "fev", "mar", "abr", "mai", "jun",
    "jul", "ago", "set", "out", "nov", "dez",
)


def status_weight(status: AnswerStatus | None) -> float | None:
    """Return the scoring weight of an answer, or ``None`` if it is not scored."""
    if status is None:
        return None
    return STATUS_WEIGHTS.get(status)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def to_percentage(fraction: float) -> int:
    """Convert a fraction in [0, 1] to an integer percentage in [0, 100]."""
    return min(100, max(0, round_half_up(fraction * 100)))


@dataclass
class MeanAccumulator:
    """Running sum/count used for every arithmetic mean in the dashboard."""
    total: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        self.total += value
        self.count += 1

    def mean(self) -> float | None:
        if self.count == 0:
            return None
        return self.total / self.count

    def percentage(self) -> int | None:
        m = self.mean()
        return None if m is None else to_percentage(m)


def _localize(value: date, tz: tzinfo) -> date:
    if isinstance(value, datetime) and value.utcoffset() is not None:
        return value.astimezone(tz)
    return value


def month_index(value: date, tz: tzinfo = timezone.utc) -> int:
    """Return the 0-based calendar month of an audit date.

    Naive dates and datetimes are taken at face value; timezone-aware
    datetimes are converted to `tz` first.
    """
    return _localize(value, tz).month - 1


def year_of(value: date, tz: tzinfo = timezone.utc) -> int:
    """Return the calendar year of an audit date, bucketed like `month_index`."""
    return _localize(value, tz).year


def month_labels(year: int) -> list[str]:
    """Return the twelve ``MES/YY`` labels for a year, January first."""
    suffix = f"{year % 100:02d}"
    return [f"{abbr.upper()}/{suffix}" for abbr in MONTH_ABBREVIATIONS]
