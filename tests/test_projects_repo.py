import pytest

from taskboard import projects_repo, tasks_repo
from taskboard.errors import NotFoundError, ValidationError


def test_create_assigns_sequence_and_position(database, owner):
    a = projects_repo.create_project({"title": "Alpha"}, owner_id=owner["id"])
    b = projects_repo.create_project({"title": "Beta", "estimated_end_date": "2024-06-30", "estimated_hours": 7200})
    assert (a["sequence_number"], a["position"]) == (1, 0)
    assert (b["sequence_number"], b["position"]) == (2, 1)
    assert b["estimated_end_date"] == "2024-06-30"
    assert b["estimated_hours"] == 7200


def test_title_required(database):
    with pytest.raises(ValidationError):
        projects_repo.create_project({"title": "  "})


def test_update_blank_strings_become_none(database, project):
    updated = projects_repo.update_project(project["id"], {"description": "  ", "analyst": "Bruna"})
    assert updated["description"] is None
    assert updated["analyst"] == "Bruna"
    with pytest.raises(NotFoundError):
        projects_repo.update_project(9999, {"analyst": "x"})


def test_negative_hours_rejected(database, project):
    with pytest.raises(ValidationError):
        projects_repo.update_project(project["id"], {"estimated_hours": -3600})
    with pytest.raises(ValidationError):
        projects_repo.create_project({"title": "Bad", "actual_hours": -1})
    assert projects_repo.get_project(project["id"])["estimated_hours"] is None
    assert projects_repo.update_project(project["id"], {"actual_hours": 0})["actual_hours"] == 0


def test_archive_and_restore(database):
    a = projects_repo.create_project({"title": "Alpha"})
    b = projects_repo.create_project({"title": "Beta"})
    projects_repo.archive_project(a["id"])

    assert [p["title"] for p in projects_repo.list_projects()] == ["Beta"]
    assert [p["title"] for p in projects_repo.list_projects(archived=True)] == ["Alpha"]

    restored = projects_repo.restore_project(a["id"])
    assert restored["archived"] is False
    assert [p["id"] for p in projects_repo.list_projects()] == [b["id"], a["id"]]


def test_reorder_projects(database):
    ids = [projects_repo.create_project({"title": t})["id"] for t in ("A", "B", "C")]
    projects_repo.reorder_projects([ids[2], ids[0], ids[1]])
    assert [p["title"] for p in projects_repo.list_projects()] == ["C", "A", "B"]


def test_sequence_number_keeps_growing_after_delete(database):
    a = projects_repo.create_project({"title": "A"})
    projects_repo.create_project({"title": "B"})
    projects_repo.delete_project(a["id"])
    c = projects_repo.create_project({"title": "C"})
    assert c["sequence_number"] == 3


def test_delete_project_cascades_tasks(database, project):
    parent = tasks_repo.create_task({"title": "Parent", "project_id": project["id"]})
    tasks_repo.create_task({"title": "Child", "parent_task_id": parent["id"]})

    assert projects_repo.delete_project(project["id"]) is True
    assert projects_repo.get_project(project["id"]) is None
    assert tasks_repo.list_tasks() == []
    assert projects_repo.delete_project(project["id"]) is False
