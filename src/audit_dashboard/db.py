"""MongoDB helpers: client creation, bulk upsert and the row-source queries.

The `audit_rows` collection stores the flattened join, one document per
audit × topic × question, with `audit_date` as a BSON datetime (an instant
in UTC). The client is timezone-aware, so dates come back as aware UTC
datetimes and month bucketing converts them to the audit zone. The queries
here return plain documents in a stable order; validation and aggregation
happen in the core.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Iterable, Sequence

import certifi
from pymongo import ASCENDING, MongoClient, UpdateOne
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

log = logging.getLogger(__name__)

ROW_SORT = [
    ("audit_id", ASCENDING),
    ("topic_order", ASCENDING),
    ("question_order", ASCENDING),
]
ROW_KEY_FIELDS = ("audit_id", "topic_id", "question_id")


def get_client(uri: str, tls: bool = False) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    Args:
        uri: MongoDB connection URI.
        tls: Connect over TLS, trusting the certifi CA bundle.

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "tz_aware": True,
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if tls:
        options.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(uri, **options)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient."""
    return client[db_name]


def bulk_upsert(
    collection: Collection[dict[str, Any]],
    docs: Iterable[dict[str, Any]],
    key_fields: Sequence[str],
    batch_size: int = 1000,
) -> int:
    """Bulk upsert documents using `key_fields` as the selector.

    Documents missing any key field are skipped. Failed batches are logged
    and do not stop the remaining batches.

    Args:
        collection: Target PyMongo collection.
        docs: Iterable of document dictionaries to upsert.
        key_fields: Document keys forming the upsert selector.
        batch_size: Number of ops per bulk_write call.

    Returns:
        Integer number of documents attempted.
    """
    ops: list[UpdateOne] = []
    attempted = 0

    def _flush() -> None:
        try:
            collection.bulk_write(ops, ordered=False)
        except PyMongoError as e:
            log.warning("bulk_upsert batch of %d failed: %s", len(ops), e)
        ops.clear()

    for d in docs:
        if any(d.get(k) is None for k in key_fields):
            continue

        ops.append(
            UpdateOne(
                {k: d[k] for k in key_fields},
                {"$set": d},
                upsert=True,
            )
        )
        attempted += 1

        if len(ops) >= batch_size:
            _flush()

    if ops:
        _flush()

    return attempted


# --------------------------------------------------
# Row source
# --------------------------------------------------
def fetch_audit_rows(collection: Collection[dict[str, Any]], audit_id: int) -> list[dict[str, Any]]:
    """Return the rows of one audit, ordered by topic then question order."""
    cursor = collection.find({"audit_id": audit_id}, {"_id": False}).sort(ROW_SORT)
    return list(cursor)


def fetch_dashboard_rows(
    collection: Collection[dict[str, Any]],
    client_id: int,
    year: int,
    tz: tzinfo = timezone.utc,
) -> list[dict[str, Any]]:
    """Return every row of a client's audits dated within `year` in zone `tz`."""
    query = {
        "client_id": client_id,
        "audit_date": {
            "$gte": datetime(year, 1, 1, tzinfo=tz),
            "$lt": datetime(year + 1, 1, 1, tzinfo=tz),
        },
    }
    projection = {
        "_id": False,
        "audit_id": True,
        "audit_date": True,
        "client_id": True,
        "topic_id": True,
        "topic_name": True,
        "topic_order": True,
        "question_id": True,
        "status": True,
    }
    rows = list(collection.find(query, projection).sort(ROW_SORT))
    log.info("Fetched %d dashboard rows for client=%d year=%d", len(rows), client_id, year)
    return rows


def fetch_all_rows(collection: Collection[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return every stored row, ordered like the per-audit queries."""
    return list(collection.find({}, {"_id": False}).sort(ROW_SORT))


def fetch_audit_years(
    collection: Collection[dict[str, Any]],
    client_id: int,
    tz_name: str = "UTC",
) -> list[int]:
    """Return the distinct years, in zone `tz_name`, in which the client has audits."""
    pipeline = [
        {"$match": {"client_id": client_id, "audit_date": {"$ne": None}}},
        {"$group": {"_id": {"$year": {"date": "$audit_date", "timezone": tz_name}}}},
        {"$sort": {"_id": 1}},
    ]
    return [int(doc["_id"]) for doc in collection.aggregate(pipeline)]


def fetch_clients(collection: Collection[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return ``{client_id, client_name}`` for every client with audit rows."""
    pipeline = [
        {"$match": {"client_id": {"$ne": None}}},
        {"$group": {"_id": "$client_id", "client_name": {"$first": "$client_name"}}},
        {"$sort": {"client_name": 1, "_id": 1}},
    ]
    return [
        {"client_id": int(doc["_id"]), "client_name": doc.get("client_name")}
        for doc in collection.aggregate(pipeline)
    ]
