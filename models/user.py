# models/user.py
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime

from utils.clock import utcnow

from models.enums import UserRole

if TYPE_CHECKING:
    from models.project_member import ProjectMember


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: Optional[str] = None
    # global role; project authority comes from ProjectMember.role
    role: str = Field(default=UserRole.MEMBER.value)
    created_at: datetime = Field(default_factory=utcnow)

    memberships: List["ProjectMember"] = Relationship(back_populates="user")
