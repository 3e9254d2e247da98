import os

# Must be set before main (and config) are imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

import pytest
from fastapi.testclient import TestClient

import database
from main import app


@pytest.fixture()
def db(tmp_path, monkeypatch):
    """Fresh engine and empty schema registry on a throwaway SQLite file."""
    monkeypatch.setenv("PROJECTS_DB_PATH", str(tmp_path / "test.db"))
    database.dispose_db_engine()
    engine = database.init_db_engine()
    yield engine
    database.dispose_db_engine()


@pytest.fixture()
def services(db):
    import post_service
    import project_service

    project_service.define_table()
    post_service.define_table()
    return project_service, post_service


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("PROJECTS_DB_PATH", str(tmp_path / "api.db"))
    database.dispose_db_engine()
    with TestClient(app) as c:
        yield c
