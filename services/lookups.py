# services/lookups.py
"""Fetch-or-raise helpers shared by the operation modules."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete
from sqlmodel import Session, select

import db
from errors import NotFoundError, ValidationError
from models.note import Note
from models.project import Project
from models.subtask import Subtask
from models.task import Task
from models.user import User
from utils.coerce import coerce_id

logger = logging.getLogger(__name__)


def _get_or_raise(session: Session, model, raw_id: Any, label: str):
    pk = coerce_id(raw_id)
    if pk is None:
        raise ValidationError(f"Invalid {label} ID")
    row = session.get(model, pk)
    if row is None:
        raise NotFoundError(f"{label.capitalize()} not found")
    return row


def require_project(session: Session, project_id: Any) -> Project:
    return _get_or_raise(session, Project, project_id, "project")


def require_task(session: Session, task_id: Any) -> Task:
    return _get_or_raise(session, Task, task_id, "task")


def require_note(session: Session, note_id: Any) -> Note:
    return _get_or_raise(session, Note, note_id, "note")



def find_user_by_email(session: Session, email: str):
    return session.exec(select(User).where(User.email == email.strip().lower())).one_or_none()


def delete_subtasks(session: Session, task_ids) -> None:
    """Delete subtasks of ``task_ids`` (ids or a select of ids).

    Subtasks are optional dependents: when their table is not present the
    cascade is skipped with a warning instead of failing the parent delete.
    """
    if not db.table_exists(session, Subtask.__tablename__):
        logger.warning("Subtask table not found. Skipping subtask deletion.")
        return
    session.exec(delete(Subtask).where(Subtask.task_id.in_(task_ids)))
