"""Staff directory tables backing the default identity lookup."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON
from sqlmodel import Field, SQLModel


class Employee(SQLModel, table=True):
    __tablename__ = "employees"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(default="")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_data: Optional[dict] = Field(default=None, sa_type=JSON)  # onboarding blob, may hold firstName/lastName
    profile_image: Optional[str] = None  # storage path
    status: str = Field(default="active")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Admin(SQLModel, table=True):
    __tablename__ = "admins"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(default="")
    status: str = Field(default="active")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
