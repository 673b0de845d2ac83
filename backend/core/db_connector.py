"""
Database connector — SQLAlchemy engine factory and schema introspection.
Supports SQLite and PostgreSQL. Extracts tables, columns, types, PK/FK constraints.
"""
import logging
import os
from typing import Callable, Optional
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from config import settings
from models.connection import ConnectionRequest
from models.schema import Column, Schema, Table

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


def create_engine_from_request(req: ConnectionRequest):
    """Build and test a SQLAlchemy engine from a ConnectionRequest."""
    # SQLite would silently create a missing file
    if req.db_type == "sqlite" and not os.path.isfile(req.file_path):
        raise ValueError(f"Could not connect to database: file not found: {req.file_path}")
    url = req.get_sqlalchemy_url()
    engine = create_engine(url, pool_pre_ping=True, connect_args=req.get_connect_args())
    # Validate the connection immediately
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as e:
        engine.dispose()
        raise ValueError(f"Could not connect to database: {e}") from e
    return engine


def reflect_schema(req: ConnectionRequest, on_progress: Optional[ProgressCallback] = None) -> Schema:
    """
    Introspect all tables from the target database.
    Tables come back sorted by name; columns keep their ordinal order.
    on_progress(progress, message) is called as each phase starts (25% → 85%).
    """
    engine = create_engine_from_request(req)
    try:
        insp = inspect(engine)
        schema_name = _get_default_schema(req.db_type)

        _report(on_progress, 25, "Fetching table information...")
        table_names = sorted(insp.get_table_names(schema=schema_name))
        total = len(table_names)
        logger.info("Discovered %d tables in %s", total, req.name or req.database or req.file_path)

        tables: list[Table] = []
        for i, table_name in enumerate(table_names):
            _report(on_progress, 25 + (i * 60) // total, f"Processing table {i + 1}/{total}: {table_name}")
            tables.append(_reflect_table(insp, table_name, schema_name))
    finally:
        engine.dispose()

    return Schema(tables=tables)


def _reflect_table(insp, table_name: str, schema: Optional[str]) -> Table:
    pk_cols = set(insp.get_pk_constraint(table_name, schema=schema).get("constrained_columns") or [])
    fk_map: dict[str, str] = {}
    for fk in insp.get_foreign_keys(table_name, schema=schema):
        for lc, rc in zip(fk["constrained_columns"], fk["referred_columns"]):
            fk_map[lc] = f"{fk['referred_table']}.{rc}"

    columns = [
        Column(
            name=col["name"],
            type=str(col["type"]),
            nullable=bool(col.get("nullable", True)),
            primary_key=col["name"] in pk_cols,
            foreign_key=fk_map.get(col["name"]),
        )
        for col in insp.get_columns(table_name, schema=schema)
    ]
    return Table(name=table_name, columns=columns)


def _report(on_progress: Optional[ProgressCallback], progress: int, message: str) -> None:
    if on_progress is not None:
        on_progress(progress, message)


def _get_default_schema(db_type: str) -> Optional[str]:
    if db_type == "postgresql":
        return settings.POSTGRES_SCHEMA
    return None   # SQLite has no schema concept
