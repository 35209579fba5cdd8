# models/task.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime

from utils.clock import utcnow

from models.enums import TaskStatus, TaskPriority

if TYPE_CHECKING:
    from models.project import Project
    from models.subtask import Subtask


class Task(SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = {"extend_existing": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    title: str
    description: str = Field(default="")
    assigned_by: int = Field(foreign_key="users.id")
    assigned_to: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    status: str = Field(default=TaskStatus.TODO.value, index=True)
    priority: str = Field(default=TaskPriority.MEDIUM.value, index=True)
    due_date: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    project: "Project" = Relationship(back_populates="tasks")
    subtasks: List["Subtask"] = Relationship(back_populates="task")
