# services/permissions.py
"""Project-level authorization checks.

Both checks are gates, not operations: they never raise. A malformed id, a
missing project or a storage failure all resolve to ``False``. Nothing is
cached; every call reads the current rows.

A project's creator is always a member and an admin, with or without a
``ProjectMember`` row. Otherwise membership means "has a row" and admin means
"has a row whose role is literally ``admin``". ``project_admin`` rows are
members only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

import db
from models.enums import UserRole
from models.project import Project
from models.project_member import ProjectMember
from utils.coerce import coerce_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipStatus:
    is_member: bool = False
    is_admin: bool = False


DENIED = MembershipStatus()


def _resolve(session: Session, project_id: int, user_id: int) -> MembershipStatus:
    creator_id = session.exec(
        select(Project.created_by).where(Project.id == project_id)
    ).one_or_none()
    if creator_id is None:
        logger.warning("Project not found in membership check: %s", project_id)
        return DENIED
    if creator_id == user_id:
        return MembershipStatus(is_member=True, is_admin=True)

    role = session.exec(
        select(ProjectMember.role).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    ).one_or_none()
    if role is None:
        return DENIED
    return MembershipStatus(is_member=True, is_admin=role == UserRole.ADMIN.value)


def resolve_membership(project_id: Any, user_id: Any, session: Optional[Session] = None) -> MembershipStatus:
    """Return the (is_member, is_admin) pair for ``user_id`` on ``project_id``.

    Pass ``session`` to evaluate inside an open transaction; otherwise a
    short-lived read session is used.
    """
    pid, uid = coerce_id(project_id), coerce_id(user_id)
    if pid is None or uid is None:
        return DENIED
    try:
        if session is not None:
            return _resolve(session, pid, uid)
        with db.get_session() as s:
            return _resolve(s, pid, uid)
    except SQLAlchemyError:
        logger.exception("Membership check failed for project=%s user=%s", pid, uid)
        return DENIED


def is_member(project_id: Any, user_id: Any, session: Optional[Session] = None) -> bool:
    return resolve_membership(project_id, user_id, session).is_member


def is_admin(project_id: Any, user_id: Any, session: Optional[Session] = None) -> bool:
    return resolve_membership(project_id, user_id, session).is_admin
