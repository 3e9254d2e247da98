"""
Project Service

Personal projects stored in ``project_entity``. Deleting a project
removes its posts first; the two deletes are separate statements.
"""

from typing import Optional, Dict, Any, List

import database
import post_service
from config import PROJECT_TABLE

TABLE_NAME = PROJECT_TABLE["name"]


def define_table() -> None:
    database.define_table_from_schema(TABLE_NAME, PROJECT_TABLE["schema"])


def get_all_projects() -> List[Dict[str, Any]]:
    return database.get_objects_from_table(TABLE_NAME)


def get_project(project_id: int) -> Optional[Dict[str, Any]]:
    rows = database.get_objects_from_table(TABLE_NAME, "id = ?", [project_id])
    return rows[0] if rows else None


def add_project(
    title: str,
    description: Optional[str] = None,
    date_created: Optional[str] = None,
    date_ended: Optional[str] = None,
) -> int:
    return database.save_object_to_db(TABLE_NAME, {
        "title": title,
        "description": description,
        "dateCreated": date_created,
        "dateEnded": date_ended,
    })


def update_project(
    project_id: int,
    title: str,
    description: Optional[str] = None,
    date_created: Optional[str] = None,
    date_ended: Optional[str] = None,
) -> int:
    """Overwrite every field of the project. Returns 0 if it does not exist."""
    return database.save_object_to_db(TABLE_NAME, {
        "id": project_id,
        "title": title,
        "description": description,
        "dateCreated": date_created,
        "dateEnded": date_ended,
    })


def delete_project(project_id: int) -> int:
    post_service.delete_all_posts_for_project(project_id)
    return database.delete_objects_from_table(TABLE_NAME, "id = ?", [project_id])


def does_project_exist(project_id: int) -> bool:
    return get_project(project_id) is not None
