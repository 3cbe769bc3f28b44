"""Reconcile a sync group's registered schema against the live hub schema.

Pure logic with no I/O.  Two passes, in this order:

1. **Removal**: registered tables that fail the filter or no longer exist
   upstream are dropped, and columns missing from the live table are
   dropped from surviving tables.
2. **Addition**: live tables passing the filter contribute every column
   not yet tracked, except tables or columns the service flagged with an
   error.  A new table is only registered if it ends up with columns.

Usage:
    from syncgroup_schema.schema.reconciler import reconcile_schema
    from syncgroup_schema.schema.filters import FilterRules

    result = reconcile_schema(before, live, FilterRules())
    print(result.format_report())
"""

import logging

from syncgroup_schema.schema.filters import FilterRules
from syncgroup_schema.schema.models import (
    ColumnDescriptor,
    LiveSchema,
    ReconciliationResult,
    RegisteredSchema,
    SchemaChange,
    TableDescriptor,
)

logger = logging.getLogger(__name__)


def _removal_pass(
    registered: RegisteredSchema,
    live: LiveSchema,
    rules: FilterRules,
    changes: list[SchemaChange],
) -> RegisteredSchema:
    tables_to_remove: set[str] = set()
    columns_to_remove: dict[str, set[str]] = {}

    for table in registered.tables:
        name = table.quoted_name
        if not rules.includes(name):
            logger.info("Removing table %s", name)
            tables_to_remove.add(name)
            changes.append(
                SchemaChange(action="remove_table", table=name, reason="filtered")
            )
            continue

        live_table = live.get_table(name)
        if live_table is None:
            logger.info("Removing table %s", name)
            tables_to_remove.add(name)
            changes.append(
                SchemaChange(
                    action="remove_table", table=name, reason="missing_upstream"
                )
            )
            continue

        for column in table.columns:
            if live_table.get_column(column.quoted_name) is None:
                logger.info("Removing column %s.%s", name, column.quoted_name)
                columns_to_remove.setdefault(name, set()).add(column.quoted_name)
                changes.append(
                    SchemaChange(
                        action="remove_column",
                        table=name,
                        column=column.quoted_name,
                        reason="missing_upstream",
                    )
                )

    surviving: list[TableDescriptor] = []
    for table in registered.tables:
        if table.quoted_name in tables_to_remove:
            continue
        dropped = columns_to_remove.get(table.quoted_name, set())
        surviving.append(
            table.model_copy(
                update={
                    "columns": [c for c in table.columns if c.quoted_name not in dropped]
                }
            )
        )

    return registered.model_copy(update={"tables": surviving})


def _addition_pass(
    registered: RegisteredSchema,
    live: LiveSchema,
    rules: FilterRules,
    changes: list[SchemaChange],
) -> RegisteredSchema:
    tables = list(registered.tables)
    positions = {t.quoted_name: i for i, t in enumerate(tables)}

    for live_table in live.tables:
        name = live_table.quoted_name
        if not rules.includes(name):
            logger.info("Skipping filtered table %s", name)
            continue

        if live_table.has_error:
            logger.warning(
                "Skipping table %s: unsupported (error id %s)",
                name,
                live_table.error_id,
            )
            changes.append(
                SchemaChange(
                    action="skip_table",
                    table=name,
                    reason="has_error",
                    error_id=live_table.error_id,
                )
            )
            continue

        existing = tables[positions[name]] if name in positions else None
        is_new = existing is None
        columns = list(existing.columns) if existing else []
        tracked = {c.quoted_name for c in columns}
        added: list[SchemaChange] = []

        for live_column in live_table.columns:
            column_name = live_column.quoted_name
            if column_name in tracked:
                logger.info("Column %s.%s already tracked", name, column_name)
                continue

            if live_column.has_error:
                logger.warning(
                    "Skipping column %s.%s: unsupported (error id %s)",
                    name,
                    column_name,
                    live_column.error_id,
                )
                changes.append(
                    SchemaChange(
                        action="skip_column",
                        table=name,
                        column=column_name,
                        reason="has_error",
                        error_id=live_column.error_id,
                    )
                )
                continue

            logger.info("Adding column %s.%s", name, column_name)
            columns.append(
                ColumnDescriptor(
                    quoted_name=column_name,
                    data_type=live_column.data_type,
                    data_size=live_column.data_size,
                )
            )
            tracked.add(column_name)
            added.append(
                SchemaChange(
                    action="add_column",
                    table=name,
                    column=column_name,
                    reason="new_upstream",
                )
            )

        if not added:
            continue

        if is_new:
            # new tables are only registered once they have a column
            logger.info("Adding table %s", name)
            changes.append(
                SchemaChange(action="add_table", table=name, reason="new_upstream")
            )
            positions[name] = len(tables)
            tables.append(TableDescriptor(quoted_name=name, columns=columns))
        else:
            tables[positions[name]] = existing.model_copy(update={"columns": columns})
        changes.extend(added)

    return registered.model_copy(update={"tables": tables})


def reconcile_schema(
    registered: RegisteredSchema,
    live: LiveSchema,
    rules: FilterRules | None = None,
) -> ReconciliationResult:
    """Compute the corrected registered schema.

    The removal pass runs first so that re-added tables never collide with
    stale entries.  Neither input is mutated.

    Args:
        registered: Schema currently configured on the sync group.
        live: Schema returned by the latest hub schema refresh.
        rules: Include/exclude rules.  ``None`` means no filtering.

    Returns:
        ``ReconciliationResult`` holding the corrected schema and the
        ordered list of changes (removals first, then additions).

    Examples:
        >>> before = RegisteredSchema(tables=[
        ...     TableDescriptor(quoted_name="[dbo].[T1]", columns=[
        ...         ColumnDescriptor(quoted_name="[c1]"),
        ...         ColumnDescriptor(quoted_name="[c2]"),
        ...     ]),
        ... ])
        >>> live = LiveSchema(tables=[
        ...     TableDescriptor(quoted_name="[dbo].[T1]", columns=[
        ...         ColumnDescriptor(quoted_name="[c1]"),
        ...         ColumnDescriptor(quoted_name="[c3]"),
        ...     ]),
        ... ])
        >>> result = reconcile_schema(before, live)
        >>> result.registered.tables[0].column_names()
        ['[c1]', '[c3]']
    """
    rules = rules or FilterRules()
    changes: list[SchemaChange] = []

    pruned = _removal_pass(registered.model_copy(deep=True), live, rules, changes)
    updated = _addition_pass(pruned, live, rules, changes)

    return ReconciliationResult(registered=updated, changes=changes)
