"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the MongoDB location, collection names and the timezone used to bucket
audit dates into calendar months.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Container for application configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Target MongoDB database name.
        rows_collection: Collection holding flattened audit rows.
        reports_collection: Collection receiving built dashboard reports.
        mongo_tls: Whether to connect with TLS using the certifi CA bundle.
        audit_timezone: Zone audit dates are bucketed, filtered and stored in.
        log_level: Root logging level name.
    """
    mongo_uri: str
    mongo_db: str
    rows_collection: str
    reports_collection: str
    mongo_tls: bool
    audit_timezone: ZoneInfo
    log_level: str


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `AUDIT_TIMEZONE` is not a known IANA zone name.
    """
    tz_name = os.getenv("AUDIT_TIMEZONE", "UTC").strip() or "UTC"
    try:
        audit_timezone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(
            f"AUDIT_TIMEZONE={tz_name!r} is not a valid timezone "
            "(example: 'UTC' or 'America/Sao_Paulo')."
        ) from exc

    return Settings(
        mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
        mongo_db=os.getenv("MONGO_DB", "auditorias"),
        rows_collection=os.getenv("ROWS_COLLECTION", "audit_rows"),
        reports_collection=os.getenv("REPORTS_COLLECTION", "dashboard_reports"),
        mongo_tls=os.getenv("MONGO_TLS", "false").strip().lower() in _TRUTHY,
        audit_timezone=audit_timezone,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
