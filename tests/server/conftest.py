"""
Fixtures and helpers shared by all server tests.

Each test gets a fresh in-memory DuckDB. The autouse `fresh_db` fixture
resets the module connection and pre-inits ":memory:", so the FastAPI
lifespan's init_db() call hits the guard and skips.
"""
import gzip
import json

import pytest
import server.db as db_module
from fastapi.testclient import TestClient
from server.main import app

NOW = "2025-01-15T10:00:00+00:00"

HASH_A = "a" * 64
HASH_B = "b" * 64
HASH_C = "c" * 64


@pytest.fixture(autouse=True)
def fresh_db():
    """Give every server test a clean in-memory DuckDB."""
    db_module.close_db()
    db_module.init_db(":memory:")
    yield
    db_module.close_db()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def make_record(
    machine_id="mac",
    path="/users/alex",
    filename="file.txt",
    size=1000,
    mtime=NOW,
    hash=HASH_B,
):
    return {
        "machine_id": machine_id,
        "path": path,
        "filename": filename,
        "size": size,
        "mtime": mtime,
        "hash": hash,
    }


def post_gzip(client, records):
    body = gzip.compress(json.dumps(records).encode())
    return client.post(
        "/files",
        content=body,
        headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
    )


@pytest.fixture
def upload(client):
    """Post records gzip-compressed, as the agent does."""
    return lambda records: post_gzip(client, records)
