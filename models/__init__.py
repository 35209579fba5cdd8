# models/__init__.py
from .user import User
from .project import Project
from .project_member import ProjectMember
from .task import Task
from .subtask import Subtask
from .note import Note
