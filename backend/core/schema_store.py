"""
In-process store of accepted schema baselines, keyed by connectionId.

Stored schemas never carry isNew/isModified; those exist only on
reconciliation output until a user accepts the changes.
"""
import logging
import threading
from typing import Optional

from core.schema_diff import clear_change_flags
from models.schema import Column, Schema, Table

logger = logging.getLogger(__name__)


class SchemaStore:
    def __init__(self):
        self._schemas: dict[str, Schema] = {}
        self._lock = threading.Lock()

    def get(self, connection_id: str) -> Optional[Schema]:
        with self._lock:
            schema = self._schemas.get(connection_id)
            return schema.model_copy(deep=True) if schema else None

    def save(self, schema: Schema) -> Schema:
        if not schema.connection_id:
            raise ValueError("Schema has no connectionId")
        stored = clear_change_flags(schema).model_copy(deep=True)
        with self._lock:
            self._schemas[schema.connection_id] = stored
        logger.info("Stored schema for %s (%d tables)", schema.connection_id, len(stored.tables))
        return stored.model_copy(deep=True)

    def update_description(self, connection_id: str, table_name: str,
                           column_name: Optional[str], description: Optional[str]) -> None:
        with self._lock:
            target = self._find(connection_id, table_name, column_name)
            target.ai_description = description

    def set_hidden(self, connection_id: str, table_name: str,
                   column_name: Optional[str], hidden: bool) -> None:
        with self._lock:
            target = self._find(connection_id, table_name, column_name)
            target.hidden = hidden

    def _find(self, connection_id: str, table_name: str, column_name: Optional[str]) -> Table | Column:
        schema = self._schemas.get(connection_id)
        if schema is None:
            raise LookupError(f"No schema stored for connection '{connection_id}'")
        table = schema.get_table(table_name)
        if table is None:
            raise LookupError(f"Table '{table_name}' not found")
        if column_name is None:
            return table
        column = table.get_column(column_name)
        if column is None:
            raise LookupError(f"Column '{table_name}.{column_name}' not found")
        return column
