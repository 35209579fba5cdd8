# models/enums.py
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    PROJECT_ADMIN = "project_admin"
    MEMBER = "member"


class TaskStatus(str, Enum):
    TODO = "todo"
    PRIORITY = "priority"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    CANCELLED = "cancelled"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


AVAILABLE_USER_ROLES = tuple(r.value for r in UserRole)
TASK_STATUSES = tuple(s.value for s in TaskStatus)
TASK_PRIORITIES = tuple(p.value for p in TaskPriority)
