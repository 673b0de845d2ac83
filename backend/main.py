"""
DataQuery Pro — Schema Drift Service
FastAPI application entry point.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import health, introspection, schemas
from config import settings
from core.introspection import IntrospectionService
from core.job_tracker import JobTracker
from core.schema_store import SchemaStore

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("dataquery")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Schema service starting up…")
    executor = ThreadPoolExecutor(max_workers=settings.JOB_WORKER_THREADS, thread_name_prefix="introspection")
    app.state.job_tracker = JobTracker(grace_period_seconds=settings.JOB_GRACE_PERIOD_SECONDS)
    app.state.schema_store = SchemaStore()
    app.state.introspection = IntrospectionService(app.state.job_tracker, app.state.schema_store, executor)
    yield
    executor.shutdown(wait=False, cancel_futures=True)
    logger.info("Schema service shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="DataQuery Pro — Schema Drift Service",
    description="Background schema introspection and drift reconciliation.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,        prefix="/api")
app.include_router(introspection.router, prefix="/api")
app.include_router(schemas.router,       prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
