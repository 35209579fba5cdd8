# tests/test_permissions.py
import pytest
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError

import db
import services.permissions as permissions
from models.project_member import ProjectMember
from services import create_project, is_admin, is_member, resolve_membership


def _add_row(project_id, user_id, role):
    with db.transaction("test_add_row") as s:
        s.add(ProjectMember(project_id=project_id, user_id=user_id, role=role))


def test_creator_is_member_and_admin_without_membership_row(users):
    project = create_project(users["u1"], "Alpha")
    with db.transaction("test_strip_rows") as s:
        s.exec(delete(ProjectMember).where(ProjectMember.project_id == project["id"]))

    assert is_member(project["id"], users["u1"])
    assert is_admin(project["id"], users["u1"])


def test_non_member_is_denied(users):
    project = create_project(users["u1"], "Alpha")
    assert resolve_membership(project["id"], users["u2"]) == permissions.DENIED


@pytest.mark.parametrize("project_id, user_id", [
    ("abc", 1),
    (1, None),
    (-1, 1),
    (0, 1),
    (1.5, 1),
    (True, 1),
    ({"$gt": 0}, 1),
    ("²", 1),
    (1, "²"),
    ("99999999999999999999999", 1),
    (10**30, 1),
    (1, 2**63),
])
def test_malformed_ids_resolve_to_false(users, project_id, user_id):
    create_project(users["u1"], "Alpha")
    assert is_member(project_id, user_id) is False
    assert is_admin(project_id, user_id) is False


def test_missing_project_resolves_to_false(users):
    assert is_member(9999, users["u1"]) is False
    assert is_admin(9999, users["u1"]) is False


def test_string_ids_are_accepted(users):
    project = create_project(users["u1"], "Alpha")
    assert is_admin(str(project["id"]), str(users["u1"]))


def test_member_role_grants_membership_only(users):
    project = create_project(users["u1"], "Alpha")
    _add_row(project["id"], users["u2"], "member")

    status = resolve_membership(project["id"], users["u2"])
    assert status.is_member and not status.is_admin


def test_project_admin_role_is_not_admin(users):
    project = create_project(users["u1"], "Alpha")
    _add_row(project["id"], users["u2"], "project_admin")

    assert is_member(project["id"], users["u2"])
    assert not is_admin(project["id"], users["u2"])


def test_admin_role_grants_admin(users):
    project = create_project(users["u1"], "Alpha")
    _add_row(project["id"], users["u2"], "admin")

    assert is_admin(project["id"], users["u2"])


def test_storage_failure_fails_closed(users, monkeypatch):
    project = create_project(users["u1"], "Alpha")

    def boom(*args):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(permissions, "_resolve", boom)
    assert is_member(project["id"], users["u1"]) is False
    assert is_admin(project["id"], users["u1"]) is False
