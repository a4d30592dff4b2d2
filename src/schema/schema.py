"""
Centralized JSON Schema Loading Module.

This module loads JSON schema files from disk once, at import time, and
exposes them as module-level constants for use throughout the application.

File Location:
    Schemas live in the same directory as this module (src/schema/). The path
    is resolved using __file__ so it works regardless of the working directory.

Error Handling:
    - FileNotFoundError: Schema file doesn't exist at expected path
    - json.JSONDecodeError: Schema file contains invalid JSON syntax

    Both fail the import, so a broken schema is caught at startup rather than
    on the first write to the record store.
"""
import json
from pathlib import Path
from typing import Dict, Any

SCHEMA_DIR = Path(__file__).parent


def _load_schema(schema_filename: str) -> Dict[str, Any]:
    """
    Load a JSON schema file from the schema directory.

    Args:
        schema_filename: Name of the JSON schema file (e.g., "post_records_schema.json")

    Returns:
        Parsed JSON schema as a dictionary, ready for use with jsonschema library

    Raises:
        FileNotFoundError: If the schema file doesn't exist at the expected location.
        json.JSONDecodeError: If the schema file exists but contains invalid JSON.

    Example:
        >>> schema = _load_schema("post_records_schema.json")
        >>> schema["$schema"]
        "http://json-schema.org/draft-07/schema#"
    """
    schema_path = SCHEMA_DIR / schema_filename

    if not schema_path.exists():
        raise FileNotFoundError(
            f"Schema file not found: {schema_path}. "
            f"Expected location: {SCHEMA_DIR}"
        )

    try:
        with open(schema_path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise json.JSONDecodeError(
            f"Invalid JSON in schema file {schema_filename}: {e.msg}",
            e.doc,
            e.pos
        ) from e


# Post Records Schema
# JSON Schema (Draft 7) for the whole record document: an array of post
# records with reference, title, description, image paths and Unix timestamp.
POST_RECORDS_SCHEMA = _load_schema("post_records_schema.json")

