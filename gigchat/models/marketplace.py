"""Marketplace participants, jobs and applications."""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Profile(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    avatar_url: Optional[str] = None
    user_type: str = Field(default="freelancer")  # "freelancer" | "business" | "influencer"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AuthToken(SQLModel, table=True):
    token: str = Field(primary_key=True)
    profile_id: int = Field(foreign_key="profile.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: Optional[datetime] = None


class Job(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="profile.id", index=True)
    title: str
    description: str = Field(default="")
    status: str = Field(default="open")  # "open" | "in_progress" | "completed"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class JobApplication(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    job_id: int = Field(foreign_key="job.id", index=True)
    freelancer_id: int = Field(foreign_key="profile.id", index=True)
    cover_letter: str = Field(default="")
    status: str = Field(default="pending")  # "pending" | "accepted" | "rejected"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
