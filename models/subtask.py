# models/subtask.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime

from utils.clock import utcnow

if TYPE_CHECKING:
    from models.task import Task


class Subtask(SQLModel, table=True):
    __tablename__ = "subtasks"
    __table_args__ = {"extend_existing": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    title: str
    is_completed: bool = Field(default=False)
    created_by: int = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow)

    task: "Task" = Relationship(back_populates="subtasks")
