"""Pydantic schemas for background introspection jobs."""
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


class IntrospectionJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: JobStatus = JobStatus.PENDING
    progress: int = Field(0, ge=0, le=100)
    message: str = ""
    result: Optional[dict[str, Any]] = None     # completed only
    error: Optional[str] = None                 # error only
    start_time: int = Field(..., alias="startTime")          # epoch millis
    finished_at: Optional[float] = Field(None, exclude=True)  # clock seconds

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
