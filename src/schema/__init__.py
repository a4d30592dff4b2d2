"""Schema Package - JSON Schema Loading and Validation.

This package provides centralized loading of the JSON schemas used by
postbox to validate persisted data.

Available Schemas:
    POST_RECORDS_SCHEMA: JSON Schema for the record store document
        (an array of post records). Checked on every read of the store so a
        hand-edited or truncated document is reported as corrupt instead of
        surfacing as a KeyError deep inside the query service.

Usage Patterns:
    from schema import POST_RECORDS_SCHEMA
    validate(instance=records, schema=POST_RECORDS_SCHEMA)
"""
from .schema import POST_RECORDS_SCHEMA

__all__ = ["POST_RECORDS_SCHEMA"]
