# reminders/storage/db.py
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from core.errors import PersistenceError
from core.settings import DB_PATH

# Ensure SQLModel metadata is populated
import models  # noqa: F401


_engine = create_engine(f"sqlite:///{DB_PATH.as_posix()}", echo=False)


def init_db(engine=None):
    actual_engine = engine or _engine
    if engine is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(actual_engine)


def get_engine():
    return _engine


def get_session() -> Session:
    return Session(_engine)


SessionFactory = Callable[[], Session]


@contextmanager
def session_scope(factory: SessionFactory = get_session) -> Iterator[Session]:
    """Open a session and surface any database failure as :class:`PersistenceError`."""

    try:
        with factory() as session:
            yield session
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc)) from exc
