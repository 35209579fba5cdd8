# services/serializers.py
"""Plain-dict views of rows, built while the session is still open.

Returning dicts keeps callers away from detached lazy loads and lets each
view carry the joined display fields (user name/email, project name).
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from sqlmodel import Session, select

from models.project import Project
from models.user import User


def load_users(session: Session, ids: Iterable[Optional[int]]) -> Dict[int, User]:
    wanted = {i for i in ids if i is not None}
    if not wanted:
        return {}
    rows = session.exec(select(User).where(User.id.in_(wanted))).all()
    return {u.id: u for u in rows}


def load_project_names(session: Session, ids: Iterable[int]) -> Dict[int, str]:
    wanted = set(ids)
    if not wanted:
        return {}
    rows = session.exec(select(Project.id, Project.name).where(Project.id.in_(wanted))).all()
    return {pid: name for pid, name in rows}


def user_summary(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def project_to_dict(project, users: Dict[int, User]) -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "created_by": user_summary(users.get(project.created_by)),
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


def member_to_dict(member, users: Dict[int, User], creator_id: Optional[int] = None) -> dict:
    return {
        "id": member.id,
        "project_id": member.project_id,
        "role": member.role,
        "user": user_summary(users.get(member.user_id)),
        "is_creator": creator_id is not None and member.user_id == creator_id,
        "created_at": member.created_at,
    }


def task_to_dict(task, users: Dict[int, User], project_names: Optional[Dict[int, str]] = None) -> dict:
    project_names = project_names or {}
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "project": {"id": task.project_id, "name": project_names.get(task.project_id)},
        "status": task.status,
        "priority": task.priority,
        "due_date": task.due_date,
        "assigned_by": user_summary(users.get(task.assigned_by)),
        "assigned_to": user_summary(users.get(task.assigned_to)) if task.assigned_to else None,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }


def subtask_to_dict(subtask) -> dict:
    return {
        "id": subtask.id,
        "task_id": subtask.task_id,
        "title": subtask.title,
        "is_completed": subtask.is_completed,
        "created_by": subtask.created_by,
        "created_at": subtask.created_at,
    }


def note_to_dict(note, users: Dict[int, User], project_names: Optional[Dict[int, str]] = None) -> dict:
    project_names = project_names or {}
    return {
        "id": note.id,
        "content": note.content,
        "project": {"id": note.project_id, "name": project_names.get(note.project_id)},
        "created_by": user_summary(users.get(note.created_by)),
        "created_at": note.created_at,
        "updated_at": note.updated_at,
    }
