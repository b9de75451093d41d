import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from gigchat.core.config import settings
from gigchat.core.errors import FetchError

logger = logging.getLogger(__name__)

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    connect_args={"check_same_thread": False},
)


def get_engine() -> Engine:
    # Looked up at call time so tests can swap the module-level engine.
    return engine


def init_db() -> None:
    import gigchat.models.conversation  # noqa: F401 - ensure models are registered
    import gigchat.models.marketplace  # noqa: F401
    SQLModel.metadata.create_all(get_engine())


def get_session():
    with Session(get_engine()) as session:
        yield session


@contextmanager
def store_session(db: Engine, action: str) -> Iterator[Session]:
    """Open a session and turn store failures into FetchError."""
    try:
        with Session(db) as session:
            yield session
    except SQLAlchemyError as e:
        logger.error(f"Store failure while trying to {action}: {e}")
        raise FetchError(f"Could not {action}") from e
