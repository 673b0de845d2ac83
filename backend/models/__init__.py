from models.connection import ConnectionRequest  # noqa: F401
from models.schema import Column, Table, Schema, ChangeSummary  # noqa: F401
from models.job import JobStatus, IntrospectionJob  # noqa: F401
