"""Utilities for loading built dashboards into MongoDB.

Dashboards are small (one document per client and year) and are upserted
keyed by `(client_id, year)`, so rebuilding replaces the previous version.
"""

from __future__ import annotations

from typing import Any, Iterable
import logging

from pymongo import UpdateOne
from pymongo.collection import Collection

log = logging.getLogger(__name__)

KEY_FIELDS = ("client_id", "year")


def load_reports(
    collection: Collection[dict[str, Any]],
    reports: Iterable[dict[str, Any]],
) -> int:
    """Upsert stored dashboards into `collection`.

    Args:
        collection: Target PyMongo collection.
        reports: Documents produced by `build_dashboard_reports`.

    Returns:
        Number of dashboards written.
    """
    ops = [
        UpdateOne(
            {k: doc[k] for k in KEY_FIELDS},
            {"$set": doc},
            upsert=True,
        )
        for doc in reports
    ]

    if not ops:
        log.warning("No dashboards to load into %s", collection.name)
        return 0

    collection.bulk_write(ops, ordered=False)
    log.info("Dashboard load complete for %s: %d reports", collection.name, len(ops))
    return len(ops)
