# tests/test_tasks.py
from datetime import datetime, timezone

import pytest
from sqlalchemy import text
from sqlmodel import select

import db
from errors import ForbiddenError, NotFoundError, ValidationError
from models.subtask import Subtask
from models.task import Task
from services import (
    add_member,
    create_project,
    create_subtask,
    create_task,
    delete_task,
    get_task,
    list_my_tasks,
    list_tasks,
    update_task,
)


@pytest.fixture
def alpha(users):
    """Alpha owned by u1 with u2 and u3 as plain members."""
    project = create_project(users["u1"], "Alpha")
    add_member(project["id"], users["u1"], "u2@strivio.test")
    add_member(project["id"], users["u1"], "u3@strivio.test")
    return project


def _task_count():
    with db.get_session() as s:
        return len(s.exec(select(Task)).all())


def test_create_task_fills_defaults_and_display_fields(alpha, users):
    task = create_task(alpha["id"], users["u2"], " Draft plan ", assigned_to=str(users["u3"]), due_date="2026-03-01")

    assert task["title"] == "Draft plan"
    assert task["status"] == "todo"
    assert task["priority"] == "medium"
    assert task["due_date"] == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert task["project"] == {"id": alpha["id"], "name": "Alpha"}
    assert task["assigned_by"]["id"] == users["u2"]
    assert task["assigned_to"]["email"] == "u3@strivio.test"


def test_create_task_non_member_assignee_writes_nothing(alpha, users):
    with pytest.raises(ForbiddenError):
        create_task(alpha["id"], users["u1"], "Plan", assigned_to=users["u4"])
    assert _task_count() == 0


@pytest.mark.parametrize("assignee, error", [
    ("not-an-id", ValidationError),
    (-3, ValidationError),
    (9999, NotFoundError),
])
def test_create_task_bad_assignee(alpha, users, assignee, error):
    with pytest.raises(error):
        create_task(alpha["id"], users["u1"], "Plan", assigned_to=assignee)
    assert _task_count() == 0


def test_create_task_requires_membership_and_valid_fields(alpha, users):
    with pytest.raises(ForbiddenError):
        create_task(alpha["id"], users["u4"], "Plan")
    with pytest.raises(ValidationError):
        create_task(alpha["id"], users["u1"], "   ")
    with pytest.raises(ValidationError):
        create_task(alpha["id"], users["u1"], "Plan", priority="urgent")
    with pytest.raises(ValidationError):
        create_task(alpha["id"], users["u1"], "Plan", status="blocked")
    with pytest.raises(ValidationError):
        create_task(alpha["id"], users["u1"], "Plan", due_date="someday soon")
    with pytest.raises(NotFoundError):
        create_task(9999, users["u1"], "Plan")
    assert _task_count() == 0


def test_get_task_includes_subtasks(alpha, users):
    task = create_task(alpha["id"], users["u2"], "Plan")
    create_subtask(users["u3"], task["id"], "first")
    create_subtask(users["u2"], task["id"], "second")

    fetched = get_task(users["u3"], task["id"])
    assert [st["title"] for st in fetched["subtasks"]] == ["first", "second"]
    with pytest.raises(ForbiddenError):
        get_task(users["u4"], task["id"])
    with pytest.raises(ForbiddenError):
        create_subtask(users["u4"], task["id"], "sneaky")


def test_update_task_permissions(alpha, users):
    task = create_task(alpha["id"], users["u2"], "Plan", assigned_to=users["u3"])

    assert update_task(users["u3"], task["id"], status="IN_PROGRESS")["status"] == "in_progress"
    assert update_task(users["u2"], task["id"], priority="high")["priority"] == "high"
    assert update_task(users["u1"], task["id"], title="Plan v2")["title"] == "Plan v2"

    add_member(alpha["id"], users["u1"], "u4@strivio.test")
    with pytest.raises(ForbiddenError):
        update_task(users["u4"], task["id"], title="Mine now")


def test_update_task_fields(alpha, users):
    task = create_task(alpha["id"], users["u1"], "Plan", due_date="2026-01-10")

    cleared = update_task(users["u1"], task["id"], due_date=None, assigned_to=users["u2"])
    assert cleared["due_date"] is None
    assert cleared["assigned_to"]["id"] == users["u2"]

    with pytest.raises(ForbiddenError):
        update_task(users["u1"], task["id"], assigned_to=users["u4"])
    with pytest.raises(ValidationError):
        update_task(users["u1"], task["id"], title="  ")
    with pytest.raises(ValidationError):
        update_task(users["u1"], task["id"], status="blocked")
    with pytest.raises(ValidationError):
        update_task(users["u1"], task["id"], owner=users["u2"])

    assert get_task(users["u1"], task["id"])["assigned_to"]["id"] == users["u2"]


def test_delete_task_creator_or_admin(alpha, users):
    task = create_task(alpha["id"], users["u2"], "Plan", assigned_to=users["u3"])

    with pytest.raises(ForbiddenError):
        delete_task(users["u3"], task["id"])

    delete_task(users["u2"], task["id"])
    other = create_task(alpha["id"], users["u2"], "Build")
    delete_task(users["u1"], other["id"])
    assert _task_count() == 0


def test_delete_task_removes_subtasks(alpha, users):
    task = create_task(alpha["id"], users["u1"], "Plan")
    keep = create_task(alpha["id"], users["u1"], "Keep")
    create_subtask(users["u1"], task["id"], "a")
    create_subtask(users["u1"], task["id"], "b")
    create_subtask(users["u1"], keep["id"], "c")

    delete_task(users["u1"], task["id"])

    with db.get_session() as s:
        titles = [st.title for st in s.exec(select(Subtask)).all()]
    assert titles == ["c"]


def test_delete_task_without_subtask_table(alpha, users, caplog):
    task = create_task(alpha["id"], users["u1"], "Plan")
    with db.engine.begin() as conn:
        conn.execute(text("DROP TABLE subtasks"))

    with caplog.at_level("WARNING", logger="services.lookups"):
        delete_task(users["u1"], task["id"])

    assert _task_count() == 0
    assert "Subtask table not found" in caplog.text


def test_get_task_without_subtask_table(alpha, users, caplog):
    task = create_task(alpha["id"], users["u1"], "Plan")
    with db.engine.begin() as conn:
        conn.execute(text("DROP TABLE subtasks"))

    with caplog.at_level("WARNING", logger="services.tasks"):
        fetched = get_task(users["u1"], task["id"])

    assert fetched["id"] == task["id"]
    assert fetched["subtasks"] == []
    assert "Subtask table not found" in caplog.text


def test_list_tasks_filters_and_paginates(alpha, users):
    for i in range(12):
        create_task(
            alpha["id"], users["u1"], f"Task {i:02d}",
            priority="high" if i % 3 == 0 else "low",
            assigned_to=users["u2"] if i % 2 == 0 else None,
        )

    page = list_tasks(users["u3"], alpha["id"], {"limit": 5, "page": 3, "sortBy": "title", "sortOrder": "asc"})
    assert page["pagination"] == {"total": 12, "page": 3, "limit": 5, "pages": 3}
    assert [t["title"] for t in page["items"]] == ["Task 10", "Task 11"]

    high = list_tasks(users["u1"], alpha["id"], {"priority": "HIGH"})
    assert high["pagination"]["total"] == 4

    mine = list_tasks(users["u1"], alpha["id"], {"assignedTo": str(users["u2"])})
    assert mine["pagination"]["total"] == 6

    with pytest.raises(ForbiddenError):
        list_tasks(users["u4"], alpha["id"])


def test_list_my_tasks(alpha, users):
    beta = create_project(users["u4"], "Beta")
    add_member(beta["id"], users["u4"], "u2@strivio.test")
    create_task(alpha["id"], users["u1"], "Alpha work", assigned_to=users["u2"])
    create_task(beta["id"], users["u4"], "Beta work", assigned_to=users["u2"])
    create_task(alpha["id"], users["u1"], "Someone else", assigned_to=users["u3"])

    everything = list_my_tasks(users["u2"])
    assert sorted(t["title"] for t in everything["items"]) == ["Alpha work", "Beta work"]

    scoped = list_my_tasks(users["u2"], {"project_id": beta["id"], "assigned_to": users["u3"]})
    assert [t["title"] for t in scoped["items"]] == ["Beta work"]
    assert scoped["items"][0]["project"]["name"] == "Beta"

    with pytest.raises(ForbiddenError):
        list_my_tasks(users["u3"], {"project_id": beta["id"]})


def test_update_task_stamps_aware_updated_at(alpha, users):
    task = create_task(alpha["id"], users["u1"], "Plan", due_date=datetime(2026, 5, 1, 9, 30))

    assert task["due_date"] == datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc)
    updated = update_task(users["u1"], task["id"], title="Plan v2")
    assert updated["updated_at"].tzinfo is not None
