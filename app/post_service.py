"""
Post Service

Dated notes attached to a project, stored in ``project_post_entity``.
Every post references its project through ``projectId``.
"""

import logging
from datetime import date
from typing import Optional, Dict, Any, List

import database
from config import POST_TABLE
from date_utils import format_date

logger = logging.getLogger(__name__)

TABLE_NAME = POST_TABLE["name"]


def define_table() -> None:
    database.define_table_from_schema(TABLE_NAME, POST_TABLE["schema"])


def get_all_posts_for_project(project_id: int) -> List[Dict[str, Any]]:
    return database.get_objects_from_table(TABLE_NAME, "projectId = ?", [project_id])


def get_post_by_id(project_id: int, post_id: int) -> Optional[Dict[str, Any]]:
    """Return the post, or None if it does not exist under this project."""
    rows = database.get_objects_from_table(
        TABLE_NAME, "projectId = ? AND id = ?", [project_id, post_id]
    )
    return rows[0] if rows else None


def add_post_to_project(project_id: int, title: str, content: Optional[str] = None) -> int:
    return database.save_object_to_db(TABLE_NAME, {
        "title": title,
        "content": content,
        "datePosted": format_date(date.today()),
        "projectId": project_id,
    })


def update_post(project_id: int, post_id: int, title: str, content: Optional[str] = None) -> int:
    """Replace title and content; datePosted is stamped with today's date again."""
    return database.save_object_to_db(TABLE_NAME, {
        "id": post_id,
        "title": title,
        "content": content,
        "datePosted": format_date(date.today()),
        "projectId": project_id,
    })


def remove_project_post_by_id(project_id: int, post_id: int) -> int:
    return database.delete_objects_from_table(
        TABLE_NAME, "projectId = ? AND id = ?", [project_id, post_id]
    )


def delete_all_posts_for_project(project_id: int) -> int:
    deleted = database.delete_objects_from_table(TABLE_NAME, "projectId = ?", [project_id])
    logger.info(f"Deleted {deleted} posts for project {project_id}")
    return deleted
