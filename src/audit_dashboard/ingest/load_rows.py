"""Load flattened audit rows from CSV/JSON exports into MongoDB.

Module notes:
- Files are read with pandas; missing cells become ``None``.
- Rows are validated with `AuditRow` before upsert.
- Dates become aware datetimes in the audit zone (naive values are read as
  wall-clock time there) and enums become their values, for BSON.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd
from pymongo.collection import Collection

from audit_dashboard.clean.validate import validate_records
from audit_dashboard.db import ROW_KEY_FIELDS, bulk_upsert
from audit_dashboard.models import AuditRow

log = logging.getLogger(__name__)


def read_rows_file(path: Path) -> pd.DataFrame:
    """Read a CSV or JSON (records) export of flattened audit rows.

    Args:
        path: File path; the suffix selects the parser.

    Raises:
        ValueError: for any suffix other than ``.csv`` or ``.json``.
    """
    suffix = path.suffix.lower()
    if suffix == ".csv":
        # keep comma-joined photo paths and ids as text; pydantic coerces
        return pd.read_csv(path, dtype=str, keep_default_na=True)
    if suffix == ".json":
        return pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    raise ValueError(f"Unsupported rows file type: {path.name} (expected .csv or .json)")


def frame_to_records(pdf: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame to row dicts with NaN/NaT replaced by ``None``."""
    if pdf.empty:
        return []
    cleaned = pdf.astype(object).where(pdf.notna(), None)
    return cleaned.to_dict(orient="records")


def _normalize_doc(doc: dict[str, Any], tz: tzinfo = timezone.utc) -> dict[str, Any]:
    """Convert non-BSON-safe types to Mongo-safe types.

    BSON stores instants in UTC, so naive dates and datetimes are pinned to
    `tz` before storage; aware datetimes are kept as given.
    """
    for k, v in list(doc.items()):
        if isinstance(v, Enum):
            doc[k] = v.value
        elif isinstance(v, datetime):
            if v.utcoffset() is None:
                doc[k] = v.replace(tzinfo=tz)
        elif isinstance(v, date):
            doc[k] = datetime.combine(v, time.min, tzinfo=tz)
    return doc


def load_rows_to_mongo(
    collection: Collection[dict[str, Any]],
    records: Iterable[AuditRow | Mapping[str, Any]],
    tz: tzinfo = timezone.utc,
) -> tuple[int, int]:
    """Validate rows and upsert them keyed by (audit_id, topic_id, question_id).

    Args:
        collection: Target rows collection.
        records: Rows as models or mappings.
        tz: Zone that naive audit dates are expressed in.

    Returns:
        A tuple ``(good, bad)``: rows written and rows rejected, where rows
        lacking any key id count as rejected.
    """
    log.info("Loading audit rows into MongoDB...")
    rows, bad = validate_records(records)

    docs: list[dict[str, Any]] = []
    for row in rows:
        doc = _normalize_doc(row.model_dump(mode="python"), tz)
        if any(doc.get(k) is None for k in ROW_KEY_FIELDS):
            bad += 1
            continue
        docs.append(doc)

    good = bulk_upsert(collection, docs, ROW_KEY_FIELDS)
    log.info("Row load complete: good=%d bad=%d", good, bad)
    return good, bad
