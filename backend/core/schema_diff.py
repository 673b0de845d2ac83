"""
Schema reconciler — diffs a stored schema against a freshly introspected one.

Tables and columns are matched by name. Output order follows the fresh
schema; anything missing from the fresh schema is dropped. User-authored
annotations (description, aiDescription, hidden) survive from the stored copy,
structural fields always come from the fresh copy.
"""
import logging

from models.schema import ChangeSummary, Column, Schema, Table

logger = logging.getLogger(__name__)


def has_column_changed(current: Column, fresh: Column) -> bool:
    """True if any structural field (type, nullable, primary_key, foreign_key) differs.

    Missing booleans count as False and an empty foreign key counts as none,
    since introspection sometimes omits a field instead of returning a value.
    """
    type_changed = current.type != fresh.type
    nullable_changed = bool(current.nullable) != bool(fresh.nullable)
    pk_changed = bool(current.primary_key) != bool(fresh.primary_key)
    fk_changed = (current.foreign_key or None) != (fresh.foreign_key or None)

    changed = type_changed or nullable_changed or pk_changed or fk_changed
    if changed:
        logger.debug(
            "Column %s changed: type=%s nullable=%s primary_key=%s foreign_key=%s",
            current.name,
            f"{current.type} -> {fresh.type}" if type_changed else "-",
            f"{current.nullable} -> {fresh.nullable}" if nullable_changed else "-",
            f"{current.primary_key} -> {fresh.primary_key}" if pk_changed else "-",
            f"{current.foreign_key} -> {fresh.foreign_key}" if fk_changed else "-",
        )
    return changed


def compare_columns(current_columns: list[Column], fresh_columns: list[Column]) -> list[Column]:
    """Merge one table's columns, flagging each as new or modified."""
    current_by_name = {c.name: c for c in current_columns}
    merged: list[Column] = []

    for fresh_col in fresh_columns:
        current_col = current_by_name.get(fresh_col.name)
        if current_col is None:
            merged.append(fresh_col.model_copy(update={"is_new": True, "is_modified": False}))
            continue

        merged.append(current_col.model_copy(update={
            "type": fresh_col.type,
            "nullable": fresh_col.nullable,
            "primary_key": fresh_col.primary_key,
            "foreign_key": fresh_col.foreign_key,
            "is_new": False,
            "is_modified": has_column_changed(current_col, fresh_col),
        }))

    return merged


def compare_schemas(current: Schema, fresh: Schema) -> Schema:
    """
    Reconcile `fresh` against the `current` baseline.

    A table only in `fresh` is emitted as-is with isNew=True; its columns are
    not diffed and carry no column-level flags. A table in both keeps the
    stored table-level annotations and gets its columns from compare_columns.
    The connectionId of the result is the baseline's.
    """
    logger.debug("Comparing schemas: %d current tables, %d fresh tables",
                 len(current.tables), len(fresh.tables))
    current_by_name = {t.name: t for t in current.tables}
    merged: list[Table] = []

    for fresh_table in fresh.tables:
        current_table = current_by_name.get(fresh_table.name)
        if current_table is None:
            logger.info("New table detected: %s", fresh_table.name)
            merged.append(fresh_table.model_copy(update={"is_new": True}, deep=True))
            continue

        merged.append(current_table.model_copy(update={
            "columns": compare_columns(current_table.columns, fresh_table.columns),
            "is_new": False,
        }))

    return Schema(connection_id=current.connection_id, tables=merged)


def has_schema_changes(schema: Schema) -> bool:
    return any(
        t.is_new or any(c.is_new or c.is_modified for c in t.columns)
        for t in schema.tables
    )


def get_change_summary(schema: Schema) -> ChangeSummary:
    """Counts of new tables, new columns and modified columns in a reconciled schema."""
    summary = ChangeSummary()
    for table in schema.tables:
        if table.is_new:
            summary.new_tables += 1
        for col in table.columns:
            if col.is_new:
                summary.new_columns += 1
            elif col.is_modified:
                summary.modified_columns += 1
    return summary


def filter_hidden_items(schema: Schema) -> Schema:
    """Drop hidden tables and hidden columns (what gets sent as AI context)."""
    return Schema(
        connection_id=schema.connection_id,
        tables=[
            t.model_copy(update={"columns": [c.model_copy() for c in t.columns if not c.hidden]})
            for t in schema.tables
            if not t.hidden
        ],
    )


def clear_change_flags(schema: Schema) -> Schema:
    """Copy of `schema` without isNew/isModified, as stored once accepted."""
    return Schema(
        connection_id=schema.connection_id,
        tables=[
            t.model_copy(update={
                "is_new": None,
                "columns": [c.model_copy(update={"is_new": None, "is_modified": None}) for c in t.columns],
            })
            for t in schema.tables
        ],
    )
