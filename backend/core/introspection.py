"""
Background schema introspection.

start() registers a job and hands the work to a thread pool, returning the
job id straight away. The worker reports progress only through the tracker
and always ends the job in `completed` or `error`.
"""
import logging
from concurrent.futures import Executor
from typing import Callable, Optional

from core.db_connector import reflect_schema
from core.job_tracker import JobTracker
from core.schema_diff import compare_schemas, get_change_summary, has_schema_changes
from core.schema_store import SchemaStore
from models.connection import ConnectionRequest
from models.schema import Schema

logger = logging.getLogger(__name__)


class IntrospectionService:
    def __init__(
        self,
        tracker: JobTracker,
        store: SchemaStore,
        executor: Executor,
        reflect: Callable[..., Schema] = reflect_schema,
    ):
        self.tracker = tracker
        self.store = store
        self.executor = executor
        self._reflect = reflect

    def start(self, connection: ConnectionRequest, connection_id: Optional[str] = None) -> str:
        job_id = self.tracker.create()
        try:
            self.executor.submit(self.run, job_id, connection, connection_id)
        except RuntimeError as e:
            # Pool already shut down; finish the job so it can expire
            self.tracker.fail(job_id, f"Could not schedule introspection: {e}")
            raise
        return job_id

    def run(self, job_id: str, connection: ConnectionRequest, connection_id: Optional[str] = None) -> None:
        """Worker body. Never raises; failures end the job in the error state."""
        try:
            self.tracker.mark_processing(job_id, f"Connecting to {connection.db_type} database...")
            fresh = self._reflect(
                connection,
                on_progress=lambda progress, message: self.tracker.report_progress(job_id, progress, message),
            )
            fresh.connection_id = connection_id
            result = self.build_result(fresh)
            self.tracker.complete(
                job_id,
                result,
                f"Schema introspection completed! Found {len(fresh.tables)} tables.",
            )
        except Exception as e:
            logger.exception("Background schema introspection failed for job %s", job_id)
            self.tracker.fail(job_id, str(e) or type(e).__name__)

    def build_result(self, fresh: Schema) -> dict:
        """Job payload: the fresh schema, or the reconciled one plus a change summary
        when a baseline is stored for the same connection."""
        baseline = self.store.get(fresh.connection_id) if fresh.connection_id else None
        if baseline is None:
            return {"schema": fresh.to_wire()}

        reconciled = compare_schemas(baseline, fresh)
        return {
            "schema": reconciled.to_wire(),
            "changes": get_change_summary(reconciled).model_dump(by_alias=True),
            "hasChanges": has_schema_changes(reconciled),
        }
