# services/tasks.py
"""Tasks and their subtasks.

Every check (membership, assignee, field values) runs before the first write,
so a rejected call never leaves a Task row behind.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import delete
from sqlmodel import Session

import db
from errors import ForbiddenError, NotFoundError, ValidationError
from models.enums import TASK_PRIORITIES, TASK_STATUSES, TaskPriority, TaskStatus
from models.subtask import Subtask
from models.task import Task
from models.user import User
from services.lookups import delete_subtasks, require_project, require_task
from services.permissions import resolve_membership
from services.queries import build_task_query, get_param, paginate
from services.serializers import load_project_names, load_users, subtask_to_dict, task_to_dict
from utils.clock import utcnow
from utils.coerce import clean_text, coerce_id, parse_due_date

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "status", "priority", "due_date", "assigned_to")


def _choice(value: Any, allowed, label: str, default: Optional[str] = None) -> Optional[str]:
    if value is None:
        return default
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    raise ValidationError(f"Invalid {label} - valid values are {', '.join(allowed)}")


def _check_assignee(session: Session, project_id: int, raw_id: Any) -> int:
    uid = coerce_id(raw_id)
    if uid is None:
        raise ValidationError("Invalid assignee ID")
    if session.get(User, uid) is None:
        raise NotFoundError("Assigned user not found")
    if not resolve_membership(project_id, uid, session).is_member:
        raise ForbiddenError("Assigned user is not a member of this project")
    return uid


def _task_view(session: Session, task: Task) -> dict:
    users = load_users(session, [task.assigned_by, task.assigned_to])
    return task_to_dict(task, users, load_project_names(session, [task.project_id]))


def create_task(
    project_id: Any,
    actor_id: Any,
    title: Any,
    description: Any = None,
    assigned_to: Any = None,
    priority: Any = None,
    status: Any = None,
    due_date: Any = None,
) -> dict:
    title = clean_text(title)
    if not title:
        raise ValidationError("Task title is required")
    priority = _choice(priority, TASK_PRIORITIES, "priority", TaskPriority.MEDIUM.value)
    status = _choice(status, TASK_STATUSES, "status", TaskStatus.TODO.value)
    due = parse_due_date(due_date)

    with db.transaction("create_task") as s:
        project = require_project(s, project_id)
        if not resolve_membership(project.id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to create tasks in this project")

        assignee = None
        if assigned_to is not None and assigned_to != "":
            assignee = _check_assignee(s, project.id, assigned_to)

        task = Task(
            project_id=project.id,
            title=title,
            description=clean_text(description),
            assigned_by=coerce_id(actor_id),
            assigned_to=assignee,
            status=status,
            priority=priority,
            due_date=due,
        )
        s.add(task)
        s.flush()
        view = _task_view(s, task)

    logger.info("Task %s created in project %s", view["id"], view["project"]["id"])
    return view


def get_task(actor_id: Any, task_id: Any) -> dict:
    with db.transaction("get_task") as s:
        task = require_task(s, task_id)
        if not resolve_membership(task.project_id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to view this task")
        view = _task_view(s, task)
        view["subtasks"] = []
        if db.table_exists(s, Subtask.__tablename__):
            view["subtasks"] = [
                subtask_to_dict(st)
                for st in sorted(task.subtasks, key=lambda st: (st.created_at, st.id))
            ]
        else:
            logger.warning("Subtask table not found. Returning task %s without subtasks.", task.id)
        return view


def update_task(actor_id: Any, task_id: Any, **fields: Any) -> dict:
    """Update the given fields of a task.

    Allowed for the assignee, the task creator and project admins, provided
    they are still project members. ``due_date=None`` clears the due date and
    ``assigned_to=None`` unassigns the task.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
    if not fields:
        raise ValidationError("At least one field is required to update")

    with db.transaction("update_task") as s:
        task = require_task(s, task_id)
        uid = coerce_id(actor_id)
        access = resolve_membership(task.project_id, uid, s)
        if not access.is_member or not (
            access.is_admin or uid in (task.assigned_to, task.assigned_by)
        ):
            raise ForbiddenError("You are not authorized to update this task")

        if "title" in fields:
            title = clean_text(fields["title"])
            if not title:
                raise ValidationError("Task title cannot be empty")
            task.title = title
        if "description" in fields:
            task.description = clean_text(fields["description"])
        if "status" in fields:
            task.status = _choice(fields["status"], TASK_STATUSES, "status", task.status)
        if "priority" in fields:
            task.priority = _choice(fields["priority"], TASK_PRIORITIES, "priority", task.priority)
        if "due_date" in fields:
            task.due_date = parse_due_date(fields["due_date"])
        if "assigned_to" in fields:
            raw = fields["assigned_to"]
            if raw is None or raw == "":
                task.assigned_to = None
            elif coerce_id(raw) != task.assigned_to:
                task.assigned_to = _check_assignee(s, task.project_id, raw)

        task.updated_at = utcnow()
        s.add(task)
        s.flush()
        return _task_view(s, task)


def delete_task(actor_id: Any, task_id: Any) -> None:
    """Delete a task and its subtasks. Task creator or project admin only."""
    with db.transaction("delete_task") as s:
        task = require_task(s, task_id)
        uid = coerce_id(actor_id)
        if task.assigned_by != uid and not resolve_membership(task.project_id, uid, s).is_admin:
            raise ForbiddenError("You are not authorized to delete this task")

        tid = task.id
        delete_subtasks(s, [tid])
        s.exec(delete(Task).where(Task.id == tid))

    logger.info("Task %s deleted by user %s", tid, actor_id)


def create_subtask(actor_id: Any, task_id: Any, title: Any) -> dict:
    title = clean_text(title)
    if not title:
        raise ValidationError("Subtask title is required")

    with db.transaction("create_subtask") as s:
        task = require_task(s, task_id)
        if not resolve_membership(task.project_id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to add subtasks to this task")
        subtask = Subtask(task_id=task.id, title=title, created_by=coerce_id(actor_id))
        s.add(subtask)
        s.flush()
        return subtask_to_dict(subtask)


def _page(session: Session, spec) -> dict:
    rows, pagination = paginate(session, Task, spec)
    users = load_users(session, [u for t in rows for u in (t.assigned_by, t.assigned_to)])
    names = load_project_names(session, [t.project_id for t in rows])
    return {"items": [task_to_dict(t, users, names) for t in rows], "pagination": pagination.to_dict()}


def list_tasks(actor_id: Any, project_id: Any, params: Optional[Mapping[str, Any]] = None) -> dict:
    with db.transaction("list_tasks") as s:
        project = require_project(s, project_id)
        if not resolve_membership(project.id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to view tasks of this project")
        spec = build_task_query(params, base_filters=[Task.project_id == project.id])
        return _page(s, spec)


def list_my_tasks(actor_id: Any, params: Optional[Mapping[str, Any]] = None) -> dict:
    """Tasks assigned to the actor, optionally narrowed to one project."""
    uid = coerce_id(actor_id)
    if uid is None:
        raise ValidationError("Invalid user ID")

    with db.transaction("list_my_tasks") as s:
        base = [Task.assigned_to == uid]
        raw_project = get_param(params, "project_id", "projectId")
        if raw_project is not None:
            project = require_project(s, raw_project)
            if not resolve_membership(project.id, uid, s).is_member:
                raise ForbiddenError("You are not authorized to view tasks of this project")
            base.append(Task.project_id == project.id)
        # assignee is always the actor
        scoped = {k: v for k, v in (params or {}).items() if k not in ("assigned_to", "assignedTo")}
        return _page(s, build_task_query(scoped, base_filters=base))
