import os

from dotenv import load_dotenv

load_dotenv()


def get_db_path() -> str:
    """Path of the SQLite file; read at engine start so tests can point it elsewhere."""
    return os.environ.get("PROJECTS_DB_PATH", "projects.db")


PORT = int(os.environ.get("PORT", 3000))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:8000"
    ).split(",")
    if origin.strip()
]

RATE_LIMIT = os.environ.get("RATE_LIMIT", "100/minute")
RATE_LIMIT_ENABLED = os.environ.get("RATE_LIMIT_ENABLED", "1") not in ("0", "false", "False")

PROJECT_TABLE = {
    "name": "project_entity",
    "schema": {
        "id": {"type": "INTEGER", "primary_key": True},
        "title": {"type": "TEXT", "not_null": True},
        "description": {"type": "TEXT"},
        "dateCreated": {"type": "TEXT"},
        "dateEnded": {"type": "TEXT"},
    },
}

POST_TABLE = {
    "name": "project_post_entity",
    "schema": {
        "id": {"type": "INTEGER", "primary_key": True},
        "title": {"type": "TEXT", "not_null": True},
        "content": {"type": "TEXT"},
        "datePosted": {"type": "TEXT"},
        "projectId": {
            "type": "INTEGER",
            "not_null": True,
            "foreign_key": "project_entity(id)",
        },
    },
}

##TABLE DEFINITIONS
##Both tables are declared as data in one place; the services only pass them
##to define_table_from_schema() at startup.
