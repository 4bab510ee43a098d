"""audit_dashboard package.

Contains modules for loading flattened compliance-audit rows into MongoDB,
assembling a single audit's detail record, aggregating a client's year of
audits into a topic × month dashboard, and serving that dashboard through a
CLI and a Streamlit app.

Architecture:
- Flattened audit rows (one per audit × topic × question) stored in MongoDB
- Pure aggregation core in `audit_dashboard.aggregate`
- Dask is used to build many (client, year) dashboards in parallel
- Pydantic models validate rows and shape the outputs
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
