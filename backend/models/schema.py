"""Pydantic schemas for stored and introspected database schemas.

Field aliases follow the wire format the UI already speaks
(``aiDescription``, ``isNew``, ``isModified``, ``connectionId``).
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Column(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: str
    nullable: Optional[bool] = None
    primary_key: Optional[bool] = None
    foreign_key: Optional[str] = None          # "other_table.column"
    description: Optional[str] = None
    ai_description: Optional[str] = Field(None, alias="aiDescription")
    hidden: Optional[bool] = None

    # Only set on reconciliation output
    is_new: Optional[bool] = Field(None, alias="isNew")
    is_modified: Optional[bool] = Field(None, alias="isModified")


class Table(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    columns: list[Column] = Field(default_factory=list)
    description: Optional[str] = None
    ai_description: Optional[str] = Field(None, alias="aiDescription")
    hidden: Optional[bool] = None

    is_new: Optional[bool] = Field(None, alias="isNew")

    def get_column(self, name: str) -> Optional[Column]:
        return next((c for c in self.columns if c.name == name), None)


class Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    connection_id: Optional[str] = Field(None, alias="connectionId")
    tables: list[Table] = Field(default_factory=list)

    def get_table(self, name: str) -> Optional[Table]:
        return next((t for t in self.tables if t.name == name), None)

    def to_wire(self) -> dict:
        """Serialize with camelCase aliases, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChangeSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_tables: int = Field(0, alias="newTables")
    new_columns: int = Field(0, alias="newColumns")
    modified_columns: int = Field(0, alias="modifiedColumns")
