"""Row validation utilities.

Turns raw mappings coming from files or MongoDB into `AuditRow` models and
counts the records that cannot be validated.
"""
