"""
Schema introspection client.
Starts a background introspection job on the API and polls its status until
the job finishes, with the same contract the web UI follows.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union
import httpx

from config import settings
from models.connection import ConnectionRequest

logger = logging.getLogger(__name__)

NOT_FOUND_ERROR = "Process not found"


class IntrospectionStartError(RuntimeError):
    """The API refused to start an introspection job."""


@dataclass
class LoadingState:
    is_processing: bool = False
    progress: int = 0
    message: str = ""
    error: Optional[str] = None


class IntrospectionClient:
    """Thin client for the start-introspection / status endpoints."""

    def __init__(
        self,
        base_url: str = "",
        client: Optional[httpx.Client] = None,
        poll_interval: float = settings.POLL_INTERVAL_MS / 1000,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=30)
        self._owns_client = client is None
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock
        self.state = LoadingState()

    # ── Requests ──────────────────────────────────────────────────────────────

    def start_introspection(
        self,
        connection: Union[ConnectionRequest, dict],
        connection_id: Optional[str] = None,
    ) -> str:
        """POST the connection descriptor and return the job id."""
        if isinstance(connection, ConnectionRequest):
            connection = connection.model_dump(exclude_none=True)
        payload: dict[str, Any] = {"connection": connection}
        if connection_id:
            payload["connectionId"] = connection_id

        self.state = LoadingState(is_processing=True, message="Starting schema introspection...")
        try:
            resp = self.client.post("/api/schema/start-introspection", json=payload)
            resp.raise_for_status()
            process_id = resp.json().get("processId")
        except (httpx.HTTPError, ValueError) as e:
            self._finish(error=f"Failed to start introspection: {e}")
            raise IntrospectionStartError(self.state.error) from e
        if not process_id:
            self._finish(error="Failed to start introspection: no processId returned")
            raise IntrospectionStartError(self.state.error)
        return process_id

    def get_status(self, job_id: str) -> Optional[dict]:
        """Current job status object, or None if the job is unknown or expired."""
        resp = self.client.get("/api/schema/status", params={"processId": job_id})
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    # ── Polling ───────────────────────────────────────────────────────────────

    def wait_for_completion(
        self,
        job_id: str,
        on_complete: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        timeout: Optional[float] = None,
    ) -> Optional[dict]:
        """
        Poll every `poll_interval` seconds until the job is completed or errored.
        Returns the terminal status object, or None if `timeout` elapsed first
        (the job is abandoned, no callback fires). Failed polls are logged and
        retried on the next tick. A 404 ends polling: the job expired or never
        existed, so on_error gets "Process not found" and that is returned as an
        error status.
        """
        deadline = None if timeout is None else self._clock() + timeout
        self.state.is_processing = True

        while True:
            if deadline is not None and self._clock() >= deadline:
                logger.info("Abandoning introspection job %s after %.1fs", job_id, timeout)
                self.state.is_processing = False
                return None

            self._sleep(self.poll_interval)
            try:
                status = self.get_status(job_id)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Error polling status for %s: %s", job_id, e)
                continue

            if status is None:
                self._finish(error=NOT_FOUND_ERROR)
                if on_error:
                    on_error(NOT_FOUND_ERROR)
                return {"status": "error", "error": NOT_FOUND_ERROR}

            self.state.progress = status.get("progress", self.state.progress)
            self.state.message = status.get("message", self.state.message)

            if status.get("status") == "completed":
                self._finish(progress=100, message="Schema introspection completed")
                if on_complete:
                    on_complete(status.get("result"))
                return status
            if status.get("status") == "error":
                error = status.get("error") or "Schema introspection failed"
                self._finish(error=error)
                if on_error:
                    on_error(error)
                return status

    def load_schema(
        self,
        connection: Union[ConnectionRequest, dict],
        connection_id: Optional[str] = None,
        on_complete: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        timeout: Optional[float] = None,
    ) -> Optional[dict]:
        """Start a job and block until it finishes."""
        job_id = self.start_introspection(connection, connection_id)
        return self.wait_for_completion(job_id, on_complete, on_error, timeout)

    def _finish(self, progress: int = 0, message: str = "", error: Optional[str] = None) -> None:
        self.state = LoadingState(is_processing=False, progress=progress, message=message, error=error)

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()
