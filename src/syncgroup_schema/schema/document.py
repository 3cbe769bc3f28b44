"""Serialization of a registered schema to the sync group schema document.

The document is the JSON payload pushed back to the sync group and the
audit artifact written on every post-deployment run.  Only the fields the
service accepts are emitted. Error flags and primary-key hints from the
live schema never appear in it.

Usage:
    from syncgroup_schema.schema.document import (
        load_schema_document,
        to_schema_document,
        write_schema_document,
    )

    path = write_schema_document(result.registered, "/tmp/schema.json")
    schema = load_schema_document(path)
"""

import json
import tempfile
from pathlib import Path
from typing import Any

from syncgroup_schema.schema.models import RegisteredSchema

DEFAULT_DOCUMENT_NAME = "syncgroup-schema.json"


def default_document_path() -> Path:
    """Well-known artifact location in the system temp directory."""
    return Path(tempfile.gettempdir()) / DEFAULT_DOCUMENT_NAME


def to_schema_document(schema: RegisteredSchema) -> dict[str, Any]:
    """Build the JSON-ready schema document.

    Example:
        >>> to_schema_document(RegisteredSchema())
        {'masterSyncMemberName': None, 'tables': []}
    """
    return {
        "masterSyncMemberName": schema.master_sync_member_name,
        "tables": [
            {
                "quotedName": table.quoted_name,
                "columns": [
                    {
                        "quotedName": column.quoted_name,
                        "dataType": column.data_type,
                        "dataSize": column.data_size,
                    }
                    for column in table.columns
                ],
            }
            for table in schema.tables
        ],
    }


def write_schema_document(
    schema: RegisteredSchema,
    output_path: str | Path | None = None,
) -> Path:
    """Write the schema document as indented JSON.

    Args:
        schema: Schema to serialize.
        output_path: Destination file.  When ``None``, uses
            ``default_document_path()``.

    Returns:
        Absolute path to the written file.
    """
    path = Path(output_path) if output_path is not None else default_document_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(to_schema_document(schema), f, indent=2)

    return path.resolve()


def load_schema_document(path: str | Path) -> RegisteredSchema:
    """Read a schema document written by ``write_schema_document``.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the document is malformed.
    """
    with open(path) as f:
        data = json.load(f)
    return RegisteredSchema.model_validate(data)
