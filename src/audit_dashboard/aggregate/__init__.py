"""Audit aggregation core.

This package contains the pure transformations at the heart of the
application: assembling one audit's detail record from flattened rows and
aggregating a client's year of rows into the topic × month dashboard. Nothing
here performs I/O except `load_reports`, which persists built dashboards.
"""

from audit_dashboard.aggregate.dashboard import aggregate_dashboard, overall_score
from audit_dashboard.aggregate.detail import assemble_audit_detail

__all__ = ["aggregate_dashboard", "assemble_audit_detail", "overall_score"]
