"""Row ingestion: read flattened audit rows from files and upsert them into MongoDB."""
