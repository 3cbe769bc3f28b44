"""Pydantic models for sync group schemas and reconciliation results.

This module contains schema-domain models:
- Descriptor models: ColumnDescriptor, TableDescriptor
- Schema models: RegisteredSchema, LiveSchema, SyncGroupInfo
- Reconciliation models: SchemaChange, ReconciliationResult

Models parse the Azure Resource Manager JSON shape (``quotedName``,
``dataType``, ``hasError``...) by alias and also accept field names.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base for models that round-trip through the ARM camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def as_utc(value: datetime) -> datetime:
    """Return *value* in UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _find_duplicates(names: list[str]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for name in names:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    return duplicates


# ============================================================================
# Descriptor Models
# ============================================================================


class ColumnDescriptor(_WireModel):
    """A column tracked by (or discovered for) a sync group table.

    ``data_type`` and ``data_size`` are opaque and copied verbatim.

    Example:
        >>> col = ColumnDescriptor(quoted_name="[id]", data_type="int")
        >>> col.has_error
        False
    """

    quoted_name: str
    data_type: str | None = None
    data_size: str | None = None
    is_primary_key: bool = False
    has_error: bool = False
    error_id: str | None = None


class TableDescriptor(_WireModel):
    """A table identified by its ``[schema].[table]`` qualified name."""

    quoted_name: str
    columns: list[ColumnDescriptor] = Field(default_factory=list)
    has_error: bool = False
    error_id: str | None = None

    @model_validator(mode="after")
    def _unique_columns(self) -> "TableDescriptor":
        duplicates = _find_duplicates([c.quoted_name for c in self.columns])
        if duplicates:
            raise ValueError(
                f"Duplicate columns in table '{self.quoted_name}': "
                f"{', '.join(duplicates)}"
            )
        return self

    def get_column(self, quoted_name: str) -> ColumnDescriptor | None:
        """Return the column with exactly this qualified name, if any."""
        for column in self.columns:
            if column.quoted_name == quoted_name:
                return column
        return None

    def column_names(self) -> list[str]:
        return [c.quoted_name for c in self.columns]


# ============================================================================
# Schema Models
# ============================================================================


class _TableCollection(_WireModel):
    tables: list[TableDescriptor] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_tables(self):
        duplicates = _find_duplicates([t.quoted_name for t in self.tables])
        if duplicates:
            raise ValueError(f"Duplicate tables in schema: {', '.join(duplicates)}")
        return self

    def get_table(self, quoted_name: str) -> TableDescriptor | None:
        """Return the table with exactly this qualified name, if any."""
        for table in self.tables:
            if table.quoted_name == quoted_name:
                return table
        return None

    def table_names(self) -> list[str]:
        return [t.quoted_name for t in self.tables]


class RegisteredSchema(_TableCollection):
    """Schema currently configured on a sync group."""

    master_sync_member_name: str | None = None


class LiveSchema(_TableCollection):
    """Schema discovered by the most recent hub schema refresh."""

    last_update_time: datetime | None = None


class SyncState(str, Enum):
    """Sync group state as reported by the service."""

    NOT_READY = "NotReady"
    ERROR = "Error"
    WARNING = "Warning"
    PROGRESSING = "Progressing"
    GOOD = "Good"


class SyncGroupInfo(_WireModel):
    """Subset of sync group properties the deployment phases need.

    ``interval`` is in seconds; ``-1`` means periodic sync is disabled.
    Unknown ``sync_state`` values are kept as raw strings.
    """

    name: str = ""
    interval: int = -1
    sync_state: SyncState | str | None = Field(default=None, union_mode="left_to_right")
    last_sync_time: datetime | None = None
    registered_schema: RegisteredSchema = Field(
        default_factory=RegisteredSchema, alias="schema"
    )

    @field_validator("registered_schema", mode="before")
    @classmethod
    def _empty_schema(cls, value: object) -> object:
        # a group created without tables reports "schema": null
        return {} if value is None else value

    @property
    def is_syncing(self) -> bool:
        return self.sync_state == SyncState.PROGRESSING


# ============================================================================
# Reconciliation Models
# ============================================================================


ChangeAction = Literal[
    "remove_table",
    "remove_column",
    "add_table",
    "add_column",
    "skip_table",
    "skip_column",
]

ChangeReason = Literal[
    "filtered",
    "missing_upstream",
    "has_error",
    "new_upstream",
]


class SchemaChange(BaseModel):
    """A single decision made while reconciling. Observability only."""

    action: ChangeAction
    table: str
    column: str | None = None
    reason: ChangeReason
    error_id: str | None = None

    def describe(self) -> str:
        target = f"{self.table}.{self.column}" if self.column else self.table
        return f"{self.action} {target} ({self.reason})"


class ReconciliationResult(BaseModel):
    """Corrected registered schema plus the log of changes that produced it.

    Example:
        >>> result = ReconciliationResult(registered=RegisteredSchema())
        >>> result.has_changes
        False
        >>> result.format_report()
        'Schema unchanged'
    """

    registered: RegisteredSchema
    changes: list[SchemaChange] = Field(default_factory=list)

    def _by_action(self, action: str) -> list[SchemaChange]:
        return [c for c in self.changes if c.action == action]

    @property
    def tables_removed(self) -> list[SchemaChange]:
        return self._by_action("remove_table")

    @property
    def columns_removed(self) -> list[SchemaChange]:
        return self._by_action("remove_column")

    @property
    def tables_added(self) -> list[SchemaChange]:
        return self._by_action("add_table")

    @property
    def columns_added(self) -> list[SchemaChange]:
        return self._by_action("add_column")

    @property
    def skipped(self) -> list[SchemaChange]:
        return [c for c in self.changes if c.action.startswith("skip_")]

    @property
    def has_changes(self) -> bool:
        """True when any table or column was removed or added."""
        return bool(
            self.tables_removed
            or self.columns_removed
            or self.tables_added
            or self.columns_added
        )

    def format_report(self) -> str:
        """Format the reconciliation as a human-readable report."""
        if not self.has_changes:
            return "Schema unchanged"

        lines = ["Schema reconciled:"]

        if self.tables_removed:
            lines.append(f"\n  Removed tables ({len(self.tables_removed)}):")
            for change in self.tables_removed:
                lines.append(f"    - {change.table} ({change.reason})")

        if self.columns_removed:
            lines.append(f"\n  Removed columns ({len(self.columns_removed)}):")
            for change in self.columns_removed:
                lines.append(f"    - {change.table}.{change.column}")

        if self.tables_added:
            lines.append(f"\n  Added tables ({len(self.tables_added)}):")
            for change in self.tables_added:
                lines.append(f"    + {change.table}")

        if self.columns_added:
            lines.append(f"\n  Added columns ({len(self.columns_added)}):")
            for change in self.columns_added:
                lines.append(f"    + {change.table}.{change.column}")

        errored = [c for c in self.skipped if c.reason == "has_error"]
        if errored:
            targets = ", ".join(
                f"{c.table}.{c.column}" if c.column else c.table for c in errored
            )
            lines.append(f"\n  Unsupported (warning): {targets}")

        return "\n".join(lines)
