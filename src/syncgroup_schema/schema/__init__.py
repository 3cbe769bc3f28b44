"""Schema models, filtering, reconciliation, and the schema document.

Provides the pure reconciliation core (``reconcile_schema``), the
include/exclude evaluator (``should_include``, ``FilterRules``), and
serialization of the corrected schema (``to_schema_document``,
``write_schema_document``).

Usage:
    from syncgroup_schema.schema import FilterRules, reconcile_schema
    from syncgroup_schema.schema import write_schema_document
"""

from syncgroup_schema.schema.document import (
    default_document_path,
    load_schema_document,
    to_schema_document,
    write_schema_document,
)
from syncgroup_schema.schema.filters import FilterRules, should_include
from syncgroup_schema.schema.models import (
    ColumnDescriptor,
    LiveSchema,
    ReconciliationResult,
    RegisteredSchema,
    SchemaChange,
    SyncGroupInfo,
    SyncState,
    TableDescriptor,
)
from syncgroup_schema.schema.reconciler import reconcile_schema

__all__ = [
    "reconcile_schema",
    "should_include",
    "FilterRules",
    "ColumnDescriptor",
    "TableDescriptor",
    "RegisteredSchema",
    "LiveSchema",
    "SyncGroupInfo",
    "SyncState",
    "SchemaChange",
    "ReconciliationResult",
    "to_schema_document",
    "write_schema_document",
    "load_schema_document",
    "default_document_path",
]
