"""Shared test fixtures."""

from dataclasses import dataclass
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from gigchat.core.auth import issue_token
from gigchat.core.config import settings
from gigchat.models.marketplace import Profile
from gigchat.repositories.conversations import ConversationRepository
from gigchat.repositories.jobs import JobRepository
from gigchat.repositories.messages import MessageRepository
from gigchat.services.messaging.feed import reset_feed

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@dataclass
class Party:
    id: int
    name: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def make_party(name: str, user_type: str = "freelancer", avatar_url: Optional[str] = None) -> Party:
    with Session(test_engine) as session:
        profile = Profile(name=name, user_type=user_type, avatar_url=avatar_url)
        session.add(profile)
        session.commit()
        session.refresh(profile)
        profile_id = profile.id
    return Party(id=profile_id, name=name, token=issue_token(profile_id))  # type: ignore


def open_conversation(owner: Party, freelancer: Party, title: str = "Logo design") -> int:
    """Post a job, apply, accept: the path that creates conversations."""
    jobs = JobRepository(test_engine)
    job = jobs.create_job(owner.id, title)
    application = jobs.apply(job["id"], freelancer.id, "I can do this")
    return jobs.accept(application["id"], owner.id)


@pytest.fixture(autouse=True)
def setup_test_db(tmp_path, monkeypatch):
    """Create all tables before each test, drop after. Attachments go to tmp_path."""
    import gigchat.models.conversation  # noqa: F401 - register models
    import gigchat.models.marketplace  # noqa: F401
    monkeypatch.setattr("gigchat.core.database.engine", test_engine)
    monkeypatch.setattr(settings, "data_dir", tmp_path / "data")
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)
    reset_feed()


@pytest.fixture
def feed():
    return reset_feed()


@pytest.fixture
def business():
    return make_party("Acme Studio", user_type="business")


@pytest.fixture
def freelancer():
    return make_party("Fran Lopez", avatar_url="https://cdn.example.com/fran.png")


@pytest.fixture
def conversation_id(business, freelancer):
    return open_conversation(business, freelancer)


@pytest.fixture
def conversations():
    return ConversationRepository(test_engine)


@pytest.fixture
def messages(feed):
    return MessageRepository(test_engine, feed)


@pytest.fixture
def client():
    """FastAPI TestClient running the app lifespan against the test DB."""
    from gigchat.main import app

    with TestClient(app) as c:
        yield c
