# services/members.py
"""Project membership lifecycle.

The creator's membership row is the one row that can never be removed; that
guard lives here and nowhere else. Creator access itself never depends on
the row (see ``services.permissions``).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlmodel import Session, select

import db
from errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models.enums import AVAILABLE_USER_ROLES, UserRole
from models.project import Project
from models.project_member import ProjectMember
from services.lookups import find_user_by_email, require_project
from services.permissions import resolve_membership
from services.serializers import load_users, member_to_dict
from utils.coerce import clean_text, coerce_id

logger = logging.getLogger(__name__)


def normalize_role(role: Any) -> Optional[str]:
    if not isinstance(role, str):
        return None
    role = role.strip().lower()
    return role if role in AVAILABLE_USER_ROLES else None


def _require_membership_row(session: Session, project: Project, member_id: Any) -> ProjectMember:
    mid = coerce_id(member_id)
    if mid is None:
        raise ValidationError("Invalid member ID")
    member = session.get(ProjectMember, mid)
    if member is None or member.project_id != project.id:
        raise NotFoundError("User not a member of this project")
    return member


def _member_view(session: Session, member: ProjectMember, creator_id: int) -> dict:
    return member_to_dict(member, load_users(session, [member.user_id]), creator_id)


def add_member(project_id: Any, actor_id: Any, email: Any, role: Any = None) -> dict:
    """Add the user registered under ``email`` to the project.

    Unknown or missing roles fall back to ``member``.
    """
    email = clean_text(email).lower()
    if not email:
        raise ValidationError("Invalid email - valid email is required")
    member_role = normalize_role(role) or UserRole.MEMBER.value

    with db.transaction("add_member") as s:
        project = require_project(s, project_id)
        if not resolve_membership(project.id, actor_id, s).is_admin:
            raise ForbiddenError("You are not authorized to add members to this project")

        user = find_user_by_email(s, email)
        if user is None:
            raise NotFoundError(f"User with email {email} not found")

        existing = s.exec(
            select(ProjectMember.id).where(
                ProjectMember.project_id == project.id,
                ProjectMember.user_id == user.id,
            )
        ).first()
        if existing is not None:
            raise ConflictError(f"User {user.email} is already a member of the project")

        member = ProjectMember(project_id=project.id, user_id=user.id, role=member_role)
        s.add(member)
        s.flush()
        view = _member_view(s, member, project.created_by)

    logger.info("User %s added to project %s as %s", view["user"]["id"], view["project_id"], member_role)
    return view


def remove_member(project_id: Any, actor_id: Any, member_id: Any) -> None:
    """Delete a membership row.

    The creator's row is refused for every actor. Otherwise a member may
    remove their own row and an admin may remove anyone's.
    """
    with db.transaction("remove_member") as s:
        project = require_project(s, project_id)
        member = _require_membership_row(s, project, member_id)

        if member.user_id == project.created_by:
            raise ConflictError("Project creator cannot be removed from the project")

        self_removal = member.user_id == coerce_id(actor_id)
        if not self_removal and not resolve_membership(project.id, actor_id, s).is_admin:
            raise ForbiddenError("You are not authorized to remove this member")

        s.delete(member)
        removed = (member.id, member.user_id, project.id)

    logger.info("Membership %s (user %s) removed from project %s", *removed)


def update_member_role(project_id: Any, actor_id: Any, member_id: Any, role: Any) -> dict:
    # No last-admin guard: the creator stays admin through created_by.
    new_role = normalize_role(role)
    if new_role is None:
        raise ValidationError(f"Invalid role - valid roles are {', '.join(AVAILABLE_USER_ROLES)}")

    with db.transaction("update_member_role") as s:
        project = require_project(s, project_id)
        member = _require_membership_row(s, project, member_id)
        if not resolve_membership(project.id, actor_id, s).is_admin:
            raise ForbiddenError("You are not authorized to update this project member role")

        member.role = new_role
        s.add(member)
        s.flush()
        return _member_view(s, member, project.created_by)


def list_members(project_id: Any, actor_id: Any) -> list:
    """Members in join order, each flagged with ``is_creator``."""
    with db.transaction("list_members") as s:
        project = require_project(s, project_id)
        if not resolve_membership(project.id, actor_id, s).is_member:
            raise ForbiddenError("You are not authorized to view this project members")

        rows = s.exec(
            select(ProjectMember)
            .where(ProjectMember.project_id == project.id)
            .order_by(ProjectMember.created_at.asc(), ProjectMember.id.asc())
        ).all()
        users = load_users(s, [m.user_id for m in rows])
        return [member_to_dict(m, users, project.created_by) for m in rows]
