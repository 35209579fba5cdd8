# services/projects.py
"""Project lifecycle.

``create_project`` and ``delete_project`` span several tables and run inside
one ``db.transaction()``: either every row is written/removed or none is.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete, or_
from sqlmodel import Session, select

import db
from errors import ConflictError, ForbiddenError, ValidationError
from models.enums import UserRole
from models.note import Note
from models.project import Project
from models.project_member import ProjectMember
from models.task import Task
from services.lookups import delete_subtasks, require_project
from services.permissions import resolve_membership
from services.serializers import load_users, project_to_dict
from utils.clock import utcnow
from utils.coerce import clean_text, coerce_id

logger = logging.getLogger(__name__)


def _ensure_name_available(session: Session, name: str, exclude_id: Optional[int] = None):
    q = select(Project.id).where(Project.name == name)
    if exclude_id is not None:
        q = q.where(Project.id != exclude_id)
    if session.exec(q).first() is not None:
        raise ConflictError("A project with this name already exists")


def _add_creator_membership(session: Session, project: Project) -> ProjectMember:
    member = ProjectMember(project_id=project.id, user_id=project.created_by, role=UserRole.ADMIN.value)
    session.add(member)
    session.flush()
    return member


def _project_view(session: Session, project: Project) -> dict:
    return project_to_dict(project, load_users(session, [project.created_by]))


def create_project(actor_id: Any, name: Any, description: Any = None) -> dict:
    """Create a project and the creator's admin membership in one transaction."""
    uid = coerce_id(actor_id)
    if uid is None:
        raise ValidationError("Invalid user ID")
    name = clean_text(name)
    if not name:
        raise ValidationError("Project name is required")

    with db.transaction("create_project") as s:
        _ensure_name_available(s, name)
        project = Project(name=name, description=clean_text(description), created_by=uid)
        s.add(project)
        s.flush()
        _add_creator_membership(s, project)
        created = _project_view(s, project)

    logger.info("Project %s created by user %s", created["id"], uid)
    return created


def get_project(actor_id: Any, project_id: Any) -> dict:
    with db.transaction("get_project") as s:
        project = require_project(s, project_id)
        if not resolve_membership(project.id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to access this project")
        return _project_view(s, project)


def list_projects(actor_id: Any) -> list:
    """Projects the actor created or holds a membership in, newest first."""
    uid = coerce_id(actor_id)
    if uid is None:
        return []
    with db.transaction("list_projects") as s:
        member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == uid)
        projects = s.exec(
            select(Project)
            .where(or_(Project.created_by == uid, Project.id.in_(member_of)))
            .order_by(Project.created_at.desc(), Project.id.desc())
        ).all()
        users = load_users(s, [p.created_by for p in projects])
        return [project_to_dict(p, users) for p in projects]


def update_project(actor_id: Any, project_id: Any, name: Any = None, description: Any = None) -> dict:
    new_name = clean_text(name)
    if not new_name and description is None:
        raise ValidationError("At least one field is required to update")

    with db.transaction("update_project") as s:
        project = require_project(s, project_id)
        if not resolve_membership(project.id, actor_id, s).is_admin:
            raise ForbiddenError("You are not authorized to update this project")

        if new_name and new_name != project.name:
            _ensure_name_available(s, new_name, exclude_id=project.id)
            project.name = new_name
        if description is not None:
            project.description = clean_text(description)
        project.updated_at = utcnow()
        s.add(project)
        s.flush()
        return _project_view(s, project)


def _delete_project_tasks(session: Session, project_id: int):
    delete_subtasks(session, select(Task.id).where(Task.project_id == project_id))
    session.exec(delete(Task).where(Task.project_id == project_id))


def delete_project(actor_id: Any, project_id: Any) -> None:
    """Remove a project with its tasks, subtasks, notes and memberships.

    Children go first so foreign keys hold at every statement; all of it is
    one transaction.
    """
    with db.transaction("delete_project") as s:
        pid = require_project(s, project_id).id
        if not resolve_membership(pid, actor_id, s).is_admin:
            raise ForbiddenError("You are not authorized to delete this project")

        _delete_project_tasks(s, pid)
        s.exec(delete(Note).where(Note.project_id == pid))
        s.exec(delete(ProjectMember).where(ProjectMember.project_id == pid))
        s.exec(delete(Project).where(Project.id == pid))

    logger.info("Project %s deleted by user %s", pid, actor_id)
