# models/project_member.py
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from typing import Optional, TYPE_CHECKING
from datetime import datetime

from utils.clock import utcnow

from models.enums import UserRole

if TYPE_CHECKING:
    from models.project import Project
    from models.user import User


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_user"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    role: str = Field(default=UserRole.MEMBER.value)
    created_at: datetime = Field(default_factory=utcnow)

    project: "Project" = Relationship(back_populates="members")
    user: "User" = Relationship(back_populates="memberships")
