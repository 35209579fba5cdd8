from services.members import add_member, list_members, remove_member, update_member_role
from services.notes import create_note, delete_note, get_note, list_notes, update_note
from services.permissions import MembershipStatus, is_admin, is_member, resolve_membership
from services.projects import create_project, delete_project, get_project, list_projects, update_project
from services.tasks import (
    create_subtask,
    create_task,
    delete_task,
    get_task,
    list_my_tasks,
    list_tasks,
    update_task,
)

__all__ = [
    "MembershipStatus",
    "resolve_membership",
    "is_member",
    "is_admin",
    "create_project",
    "get_project",
    "list_projects",
    "update_project",
    "delete_project",
    "add_member",
    "remove_member",
    "update_member_role",
    "list_members",
    "create_task",
    "get_task",
    "update_task",
    "delete_task",
    "create_subtask",
    "list_tasks",
    "list_my_tasks",
    "create_note",
    "get_note",
    "update_note",
    "delete_note",
    "list_notes",
]
