"""Pydantic schemas for database connection descriptors."""
from typing import Optional, Literal
from urllib.parse import quote_plus
from pydantic import BaseModel, Field, model_validator


class ConnectionRequest(BaseModel):
    db_type: Literal["sqlite", "postgresql"] = Field("postgresql", description="Database engine type")
    name: Optional[str] = Field(None, description="Display name of the connection")

    # SQLite only
    file_path: Optional[str] = Field(None, description="Absolute path to .db file (SQLite only)")

    # PostgreSQL only
    host: Optional[str] = Field(None, description="Database host")
    port: Optional[int] = Field(5432, description="Database port")
    database: Optional[str] = Field(None, description="Database name")
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")
    ssl: bool = Field(False, description="Require SSL (managed cloud databases)")

    @model_validator(mode="after")
    def _check_engine_fields(self) -> "ConnectionRequest":
        if self.db_type == "sqlite":
            if not self.file_path:
                raise ValueError("file_path is required for sqlite connections")
        elif not self.host or not self.database:
            raise ValueError("host and database are required for postgresql connections")
        return self

    def get_sqlalchemy_url(self) -> str:
        if self.db_type == "sqlite":
            return f"sqlite:///{self.file_path}"
        pwd = quote_plus(self.password or "")
        return (
            f"postgresql+psycopg2://{self.username or 'postgres'}:{pwd}"
            f"@{self.host}:{self.port or 5432}/{self.database}"
        )

    def get_connect_args(self) -> dict:
        if self.db_type == "postgresql" and self.ssl:
            return {"sslmode": "require"}
        return {}
