import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from fastapi.testclient import TestClient

from main import app
from models.schema import Column, Schema, Table


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        cur = conn.cursor()
        cur.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email VARCHAR(255));")
        cur.execute(
            "CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER REFERENCES users(id), total REAL);"
        )
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)


@pytest.fixture
def users_table():
    return Table(
        name="users",
        ai_description="Registered customers",
        columns=[
            Column(name="id", type="integer", nullable=False, primary_key=True),
            Column(name="email", type="varchar", nullable=True, ai_description="Customer email"),
        ],
    )


@pytest.fixture
def orders_table():
    return Table(
        name="orders",
        columns=[
            Column(name="id", type="integer", nullable=False, primary_key=True),
            Column(name="user_id", type="integer", nullable=True, foreign_key="users.id"),
        ],
    )


@pytest.fixture
def baseline_schema(users_table, orders_table):
    return Schema(connection_id="conn-1", tables=[users_table, orders_table])
