"""GET /api/health — liveness and job registry size."""
from fastapi import APIRouter, Depends

from api.deps import get_job_tracker
from core.job_tracker import JobTracker

router = APIRouter()


@router.get("/health")
def health_check(tracker: JobTracker = Depends(get_job_tracker)):
    return {
        "status": "ok",
        "jobs": {"tracked": len(tracker)},
    }
