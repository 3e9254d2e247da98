import re

import pytest

from database import StoreError


def test_add_and_get_project(services):
    project_service, _ = services
    project_service.add_project("Journal", "A project journal", "1-1-2024")

    projects = project_service.get_all_projects()
    assert projects == [{
        "id": 1,
        "title": "Journal",
        "description": "A project journal",
        "dateCreated": "1-1-2024",
        "dateEnded": None,
    }]
    assert project_service.get_project(1) == projects[0]
    assert project_service.get_project(2) is None
    assert project_service.does_project_exist(1)
    assert not project_service.does_project_exist(2)


def test_update_project(services):
    project_service, _ = services
    project_service.add_project("Old", "desc", "1-1-2024")

    assert project_service.update_project(1, "New", "desc2", "2-1-2024", "3-1-2024") == 1
    assert project_service.get_project(1)["title"] == "New"
    assert project_service.get_project(1)["dateEnded"] == "3-1-2024"
    assert project_service.update_project(7, "Nobody", "x", "x") == 0


def test_posts_lifecycle(services):
    project_service, post_service = services
    project_service.add_project("P", "d", "1-1-2024")

    post_service.add_post_to_project(1, "first", "hello")
    post_service.add_post_to_project(1, "second")

    posts = post_service.get_all_posts_for_project(1)
    assert [post["title"] for post in posts] == ["first", "second"]
    assert re.fullmatch(r"\d{1,2}-\d{1,2}-\d{4}", posts[0]["datePosted"])
    assert posts[1]["content"] is None

    post_service.update_post(1, 2, "second, edited", "body")
    assert post_service.get_post_by_id(1, 2)["title"] == "second, edited"
    assert post_service.get_post_by_id(2, 2) is None

    assert post_service.remove_project_post_by_id(1, 1) == 1
    assert [post["id"] for post in post_service.get_all_posts_for_project(1)] == [2]


def test_post_for_missing_project_fails(services):
    _, post_service = services
    with pytest.raises(StoreError):
        post_service.add_post_to_project(99, "orphan")


def test_delete_project_cascades_to_posts(services):
    project_service, post_service = services
    project_service.add_project("keep", "d", "1-1-2024")
    project_service.add_project("drop", "d", "1-1-2024")
    post_service.add_post_to_project(1, "kept post")
    post_service.add_post_to_project(2, "a")
    post_service.add_post_to_project(2, "b")

    project_service.delete_project(2)

    assert project_service.get_project(2) is None
    assert post_service.get_all_posts_for_project(2) == []
    assert len(post_service.get_all_posts_for_project(1)) == 1
