"""POST /api/schema/start-introspection, GET /api/schema/status — background introspection jobs."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from api.deps import get_introspection_service, get_job_tracker
from core.introspection import IntrospectionService
from core.job_tracker import JobTracker
from models.connection import ConnectionRequest

router = APIRouter()
logger = logging.getLogger(__name__)


class StartIntrospectionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    connection: Optional[ConnectionRequest] = None
    connection_id: Optional[str] = Field(None, alias="connectionId")   # baseline to reconcile against


@router.post("/schema/start-introspection")
def start_introspection(
    req: StartIntrospectionRequest,
    service: IntrospectionService = Depends(get_introspection_service),
):
    if req.connection is None:
        raise HTTPException(400, detail="Connection data is required")

    try:
        process_id = service.start(req.connection, req.connection_id)
    except RuntimeError as e:
        logger.error("Could not start schema introspection: %s", e)
        raise HTTPException(503, detail="Schema introspection is unavailable")
    return {
        "processId": process_id,
        "message": "Schema introspection started in background",
    }


@router.get("/schema/status")
def get_status(
    process_id: Optional[str] = Query(None, alias="processId"),
    tracker: JobTracker = Depends(get_job_tracker),
):
    if not process_id:
        raise HTTPException(400, detail="Process ID is required")

    job = tracker.get(process_id)
    if job is None:
        raise HTTPException(404, detail="Process not found")
    return job.to_wire()
