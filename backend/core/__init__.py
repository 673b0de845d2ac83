from core.db_connector import create_engine_from_request, reflect_schema  # noqa: F401
from core.schema_diff import compare_schemas, get_change_summary, has_schema_changes  # noqa: F401
from core.job_tracker import JobTracker  # noqa: F401
from core.schema_store import SchemaStore  # noqa: F401
from core.introspection import IntrospectionService  # noqa: F401
