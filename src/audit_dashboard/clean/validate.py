"""Validation utilities for flattened audit rows.

This module validates records against the Pydantic `AuditRow` model. Records
that fail validation are counted and dropped, never raised, so a single bad
row cannot break a whole detail or dashboard request.

With ``lenient_answers=True`` (the read paths) a row whose only problem is its
answer fields keeps its place in the audit: the answer is cleared and the row
is treated as unanswered instead of being dropped.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from audit_dashboard.models import AuditRow

log = logging.getLogger(__name__)

ANSWER_KEYS = frozenset(
    {"status", "st_pergunta", "comment", "comentario", "photo_paths", "caminhos_fotos"}
)


def _validate_without_answer(rec: Mapping[str, Any]) -> AuditRow | None:
    stripped = {k: v for k, v in rec.items() if k not in ANSWER_KEYS}
    try:
        return AuditRow.model_validate(stripped)
    except (ValidationError, TypeError, ValueError):
        return None


def validate_records(
    records: Iterable[AuditRow | Mapping[str, Any]],
    lenient_answers: bool = False,
) -> tuple[list[AuditRow], int]:
    """Validate records using Pydantic, keeping input order.

    `AuditRow` instances pass through untouched; mappings are validated with
    `AuditRow.model_validate`.

    Args:
        records: Rows as models or as dictionaries keyed by field or column name.
        lenient_answers: Keep rows with an invalid answer as unanswered rows
            instead of rejecting them.

    Returns:
        A tuple of (list_of_validated_rows, bad_count). Rows kept as
        unanswered are not counted as bad.
    """
    good: list[AuditRow] = []
    bad = 0
    cleared = 0

    for rec in records:
        if isinstance(rec, AuditRow):
            good.append(rec)
            continue
        try:
            good.append(AuditRow.model_validate(dict(rec)))
        except (ValidationError, TypeError, ValueError) as exc:
            retry = lenient_answers and isinstance(rec, Mapping)
            row = _validate_without_answer(rec) if retry else None
            if row is not None:
                cleared += 1
                good.append(row)
                log.debug("Cleared invalid answer of audit row %r: %s", rec, exc)
                continue
            bad += 1
            log.debug("Rejected audit row %r: %s", rec, exc)

    if cleared:
        log.warning("Treated %d audit rows with invalid answers as unanswered", cleared)
    if bad:
        log.warning("Dropped %d audit rows that failed validation", bad)
    return good, bad
