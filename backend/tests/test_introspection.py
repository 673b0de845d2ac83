from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from core.db_connector import reflect_schema
from core.introspection import IntrospectionService
from core.job_tracker import JobTracker
from core.schema_store import SchemaStore
from models.connection import ConnectionRequest
from models.job import JobStatus
from models.schema import Column, Schema, Table


@pytest.fixture
def sqlite_conn(temp_sqlite_db):
    return ConnectionRequest(db_type="sqlite", file_path=temp_sqlite_db)


@pytest.fixture
def service():
    return IntrospectionService(JobTracker(), SchemaStore(), executor=MagicMock())


# ── Reflection ────────────────────────────────────────────────────────────────

def test_reflect_schema_sqlite(sqlite_conn):
    progress = []
    schema = reflect_schema(sqlite_conn, on_progress=lambda p, m: progress.append((p, m)))

    assert [t.name for t in schema.tables] == ["orders", "users"]
    orders = schema.get_table("orders")
    assert [c.name for c in orders.columns] == ["id", "user_id", "total"]
    assert orders.get_column("id").primary_key is True
    assert orders.get_column("user_id").foreign_key == "users.id"
    assert orders.get_column("total").foreign_key is None
    users = schema.get_table("users")
    assert users.get_column("name").nullable is False
    assert users.get_column("email").type == "VARCHAR(255)"

    assert progress == [
        (25, "Fetching table information..."),
        (25, "Processing table 1/2: orders"),
        (55, "Processing table 2/2: users"),
    ]


def test_reflect_schema_bad_path_raises():
    conn = ConnectionRequest(db_type="sqlite", file_path="/nonexistent/dir/x.db")
    with pytest.raises(ValueError, match="Could not connect"):
        reflect_schema(conn)


def test_reflect_schema_missing_file_is_not_created(tmp_path):
    missing = tmp_path / "typo.db"
    conn = ConnectionRequest(db_type="sqlite", file_path=str(missing))

    with pytest.raises(ValueError, match="Could not connect"):
        reflect_schema(conn)
    assert not missing.exists()


# ── Worker ────────────────────────────────────────────────────────────────────

def test_start_submits_without_running(service, sqlite_conn):
    job_id = service.start(sqlite_conn, "conn-1")

    service.executor.submit.assert_called_once_with(service.run, job_id, sqlite_conn, "conn-1")
    assert service.tracker.get(job_id).status is JobStatus.PENDING


def test_run_completes_with_fresh_schema(service, sqlite_conn):
    job_id = service.tracker.create()
    service.run(job_id, sqlite_conn)

    job = service.tracker.get(job_id)
    assert job.status is JobStatus.COMPLETED
    assert job.progress == 100
    assert job.message == "Schema introspection completed! Found 2 tables."
    assert [t["name"] for t in job.result["schema"]["tables"]] == ["orders", "users"]
    assert "changes" not in job.result


def test_run_reconciles_against_stored_baseline(service, sqlite_conn):
    baseline = reflect_schema(sqlite_conn)
    baseline.connection_id = "conn-1"
    users = baseline.get_table("users")
    users.ai_description = "People"
    users.get_column("name").ai_description = "Full name"
    users.get_column("email").type = "VARCHAR(100)"
    baseline.tables = [users, Table(name="legacy", columns=[Column(name="id", type="INTEGER")])]
    service.store.save(baseline)

    job_id = service.tracker.create()
    service.run(job_id, sqlite_conn, "conn-1")

    result = service.tracker.get(job_id).result
    tables = {t["name"]: t for t in result["schema"]["tables"]}
    assert set(tables) == {"orders", "users"}
    assert tables["orders"]["isNew"] is True
    users = tables["users"]
    assert users["isNew"] is False
    assert users["aiDescription"] == "People"
    cols = {c["name"]: c for c in users["columns"]}
    assert cols["name"]["aiDescription"] == "Full name"
    assert cols["email"]["isModified"] is True
    assert cols["email"]["type"] == "VARCHAR(255)"
    assert result["changes"] == {"newTables": 1, "newColumns": 0, "modifiedColumns": 1}
    assert result["hasChanges"] is True
    assert result["schema"]["connectionId"] == "conn-1"


def test_run_converts_failures_to_error_state(service):
    service._reflect = MagicMock(side_effect=RuntimeError("connection refused"))
    job_id = service.tracker.create()

    service.run(job_id, ConnectionRequest(db_type="postgresql", host="db", database="app"))

    job = service.tracker.get(job_id)
    assert job.status is JobStatus.ERROR
    assert job.error == "connection refused"
    assert job.message == "Schema introspection failed"


def test_run_reports_progress_through_tracker(service, sqlite_conn):
    seen = []
    tracker = service.tracker
    original = tracker.report_progress

    def spy(job_id, progress, message):
        seen.append((tracker.get(job_id).status, progress))
        return original(job_id, progress, message)

    tracker.report_progress = spy
    job_id = tracker.create()
    service.run(job_id, sqlite_conn)

    assert seen and all(status is JobStatus.PROCESSING for status, _ in seen)
    assert [p for _, p in seen] == sorted(p for _, p in seen)


def test_missing_sqlite_file_fails_job_and_keeps_baseline(service, baseline_schema, tmp_path):
    service.store.save(baseline_schema)
    job_id = service.tracker.create()

    service.run(job_id, ConnectionRequest(db_type="sqlite", file_path=str(tmp_path / "typo.db")), "conn-1")

    job = service.tracker.get(job_id)
    assert job.status is JobStatus.ERROR
    assert "file not found" in job.error
    assert job.result is None
    assert service.store.get("conn-1") == baseline_schema


def test_start_on_shut_down_pool_fails_job(sqlite_conn):
    executor = ThreadPoolExecutor(max_workers=1)
    executor.shutdown()
    tracker = JobTracker()
    service = IntrospectionService(tracker, SchemaStore(), executor)

    with pytest.raises(RuntimeError):
        service.start(sqlite_conn)

    assert len(tracker) == 1
    (job,) = tracker._jobs.values()
    assert job.status is JobStatus.ERROR
    assert "Could not schedule introspection" in job.error


def test_background_run_in_thread_pool(sqlite_conn):
    with ThreadPoolExecutor(max_workers=1) as executor:
        service = IntrospectionService(JobTracker(), SchemaStore(), executor)
        job_id = service.start(sqlite_conn)
    # leaving the block waits for the worker
    assert service.tracker.get(job_id).status is JobStatus.COMPLETED


# ── Schema store ──────────────────────────────────────────────────────────────

def test_store_strips_change_flags(baseline_schema):
    store = SchemaStore()
    flagged = baseline_schema.model_copy(deep=True)
    flagged.tables[0].is_new = True
    flagged.tables[0].columns[0].is_modified = True

    store.save(flagged)
    stored = store.get("conn-1")

    assert stored == baseline_schema
    assert store.get("other") is None


def test_store_requires_connection_id():
    with pytest.raises(ValueError):
        SchemaStore().save(Schema(tables=[]))


def test_store_annotations(baseline_schema):
    store = SchemaStore()
    store.save(baseline_schema)

    store.update_description("conn-1", "users", "email", "Primary contact email")
    store.update_description("conn-1", "orders", None, "Customer orders")
    store.set_hidden("conn-1", "users", "id", True)

    stored = store.get("conn-1")
    assert stored.get_table("users").get_column("email").ai_description == "Primary contact email"
    assert stored.get_table("orders").ai_description == "Customer orders"
    assert stored.get_table("users").get_column("id").hidden is True

    with pytest.raises(LookupError):
        store.update_description("conn-1", "missing", None, "x")
    with pytest.raises(LookupError):
        store.set_hidden("conn-1", "users", "missing", True)
    with pytest.raises(LookupError):
        store.set_hidden("nope", "users", None, True)


def test_store_returns_copies(baseline_schema):
    store = SchemaStore()
    store.save(baseline_schema)
    store.get("conn-1").tables.clear()
    assert len(store.get("conn-1").tables) == 2
