# models/note.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime

from utils.clock import utcnow

if TYPE_CHECKING:
    from models.project import Project


class Note(SQLModel, table=True):
    __tablename__ = "notes"
    __table_args__ = {"extend_existing": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    created_by: int = Field(foreign_key="users.id")
    content: str
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    project: "Project" = Relationship(back_populates="notes")
