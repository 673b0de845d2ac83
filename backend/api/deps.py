"""Request-scoped accessors for the process-wide services built in the app lifespan."""
from fastapi import Request

from core.introspection import IntrospectionService
from core.job_tracker import JobTracker
from core.schema_store import SchemaStore


def get_job_tracker(request: Request) -> JobTracker:
    return request.app.state.job_tracker


def get_schema_store(request: Request) -> SchemaStore:
    return request.app.state.schema_store


def get_introspection_service(request: Request) -> IntrospectionService:
    return request.app.state.introspection
