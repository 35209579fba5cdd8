# services/notes.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import or_
from sqlmodel import Session, select

import db
from errors import ForbiddenError, ValidationError
from models.note import Note
from models.project import Project
from models.project_member import ProjectMember
from services.lookups import require_note, require_project
from services.permissions import resolve_membership
from services.queries import build_note_query, paginate
from services.serializers import load_project_names, load_users, note_to_dict
from utils.clock import utcnow
from utils.coerce import clean_text, coerce_id

logger = logging.getLogger(__name__)


def _require_content(content: Any) -> str:
    content = clean_text(content)
    if not content:
        raise ValidationError("Note content is required")
    return content


def _note_view(session: Session, note: Note) -> dict:
    return note_to_dict(note, load_users(session, [note.created_by]), load_project_names(session, [note.project_id]))


def _can_modify(session: Session, note: Note, actor_id: Any) -> bool:
    if note.created_by == coerce_id(actor_id):
        return True
    return resolve_membership(note.project_id, actor_id, session).is_admin


def create_note(project_id: Any, actor_id: Any, content: Any) -> dict:
    content = _require_content(content)
    with db.transaction("create_note") as s:
        project = require_project(s, project_id)
        if not resolve_membership(project.id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to add notes to this project")
        note = Note(project_id=project.id, created_by=coerce_id(actor_id), content=content)
        s.add(note)
        s.flush()
        view = _note_view(s, note)

    logger.info("Note %s created in project %s", view["id"], view["project"]["id"])
    return view


def get_note(actor_id: Any, note_id: Any) -> dict:
    with db.transaction("get_note") as s:
        note = require_note(s, note_id)
        if not resolve_membership(note.project_id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to view this note")
        return _note_view(s, note)


def update_note(actor_id: Any, note_id: Any, content: Any) -> dict:
    """Replace a note's content. Note author or project admin only."""
    content = _require_content(content)
    with db.transaction("update_note") as s:
        note = require_note(s, note_id)
        if not _can_modify(s, note, actor_id):
            raise ForbiddenError("You are not authorized to update this note")
        note.content = content
        note.updated_at = utcnow()
        s.add(note)
        s.flush()
        return _note_view(s, note)


def delete_note(actor_id: Any, note_id: Any) -> None:
    with db.transaction("delete_note") as s:
        note = require_note(s, note_id)
        if not _can_modify(s, note, actor_id):
            raise ForbiddenError("You are not authorized to delete this note")
        nid = note.id
        s.delete(note)

    logger.info("Note %s deleted by user %s", nid, actor_id)


def _visible_project_ids(session: Session, user_id: int) -> list:
    member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
    return list(
        session.exec(
            select(Project.id).where(or_(Project.created_by == user_id, Project.id.in_(member_of)))
        ).all()
    )


def list_notes(actor_id: Any, project_id: Any = None, params: Optional[Mapping[str, Any]] = None) -> dict:
    """Page through notes of one project, or of every project the actor can see.

    Without ``project_id`` an actor who belongs to no project is refused
    rather than handed an empty page.
    """
    uid = coerce_id(actor_id)
    if uid is None:
        raise ValidationError("Invalid user ID")

    with db.transaction("list_notes") as s:
        if project_id is not None:
            project = require_project(s, project_id)
            if not resolve_membership(project.id, uid, s).is_member:
                raise ForbiddenError("You are not authorized to view notes of this project")
            scope = Note.project_id == project.id
        else:
            project_ids = _visible_project_ids(s, uid)
            if not project_ids:
                raise ForbiddenError("You are not a member of any project")
            scope = Note.project_id.in_(project_ids)

        rows, pagination = paginate(s, Note, build_note_query(params, base_filters=[scope]))
        users = load_users(s, [n.created_by for n in rows])
        names = load_project_names(s, [n.project_id for n in rows])
        return {"items": [note_to_dict(n, users, names) for n in rows], "pagination": pagination.to_dict()}
