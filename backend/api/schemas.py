"""Schema baselines: compare, store, annotate.

POST  /api/schema/compare             — reconcile two schemas, no persistence
GET   /api/schemas/{connection_id}    — stored baseline
PUT   /api/schemas/{connection_id}    — accept a (reconciled) schema as the new baseline
POST  /api/schema/update-description  — set aiDescription on a table or column
PATCH /api/schema/visibility          — hide/show a table or column
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from api.deps import get_schema_store
from core.schema_diff import compare_schemas, filter_hidden_items, get_change_summary, has_schema_changes
from core.schema_store import SchemaStore
from models.schema import Schema, Table

router = APIRouter()
logger = logging.getLogger(__name__)


class CompareRequest(BaseModel):
    current: Schema
    fresh: Schema


class SchemaUpdateRequest(BaseModel):
    tables: list[Table] = Field(default_factory=list)


class AnnotationTarget(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    connection_id: str = Field(..., alias="connectionId")
    table_name: str = Field(..., alias="tableName")
    column_name: Optional[str] = Field(None, alias="columnName")   # None = the table itself


class DescriptionUpdateRequest(AnnotationTarget):
    description: Optional[str] = None


class VisibilityUpdateRequest(AnnotationTarget):
    hidden: bool


@router.post("/schema/compare")
def compare(req: CompareRequest):
    reconciled = compare_schemas(req.current, req.fresh)
    return {
        "schema": reconciled.to_wire(),
        "changes": get_change_summary(reconciled).model_dump(by_alias=True),
        "hasChanges": has_schema_changes(reconciled),
    }


@router.get("/schemas/{connection_id}")
def get_schema(connection_id: str, visible_only: bool = False, store: SchemaStore = Depends(get_schema_store)):
    schema = store.get(connection_id)
    if schema is None:
        raise HTTPException(404, detail=f"No schema stored for connection '{connection_id}'")
    if visible_only:
        schema = filter_hidden_items(schema)
    return schema.to_wire()


@router.put("/schemas/{connection_id}")
def put_schema(connection_id: str, req: SchemaUpdateRequest, store: SchemaStore = Depends(get_schema_store)):
    store.save(Schema(connection_id=connection_id, tables=req.tables))
    return {"updated": True}


@router.post("/schema/update-description")
def update_description(req: DescriptionUpdateRequest, store: SchemaStore = Depends(get_schema_store)):
    try:
        store.update_description(req.connection_id, req.table_name, req.column_name, req.description)
    except LookupError as e:
        raise HTTPException(404, detail=str(e))
    logger.info("Updated description for %s.%s", req.table_name, req.column_name or "*")
    return {"success": True, "message": "Description updated successfully"}


@router.patch("/schema/visibility")
def update_visibility(req: VisibilityUpdateRequest, store: SchemaStore = Depends(get_schema_store)):
    try:
        store.set_hidden(req.connection_id, req.table_name, req.column_name, req.hidden)
    except LookupError as e:
        raise HTTPException(404, detail=str(e))
    return {"success": True, "hidden": req.hidden}
