from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Generator

from fastapi import FastAPI, Request
from sqlalchemy.orm import Session

from studyhub.config import settings
from studyhub.database.session import SQLALCHEMY_DATABASE_URL, get_engine, get_local_session
from studyhub.log import get_logger

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Opens the database engine when the application starts and disposes
    of it at shutdown. The session factory lives on app.state so every
    request gets its session from the same, explicitly owned engine.
    """
    engine = get_engine(SQLALCHEMY_DATABASE_URL, settings.SQL_ECHO)
    app.state.engine = engine
    app.state.session_factory = get_local_session(engine)
    log.info("Database engine started (%s)", engine.url.render_as_string(hide_password=True))
    try:
        yield
    finally:
        engine.dispose()
        log.info("Database engine disposed")


def get_db(request: Request) -> Generator[Session, None, None]:  # pragma: no cover
    """
    Returns a generator that yields a database session

    Yields:
        Session: A database session object.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        try:
            db.close()
        except Exception as e:
            log.error(f"Error closing session: {e}")


@contextmanager
def get_ctx_db(database_url: str) -> Generator[Session, None, None]:
    """
    Context manager that creates a database session and yields
    it for use in a 'with' statement, outside of any request.

    Parameters:
        database_url (str): The URL of the database to connect to.

    Yields:
        Session: A database session.

    Raises:
        Exception: Re-raised after rollback when the block fails.
    """
    engine = get_engine(database_url)
    db = get_local_session(engine)()
    try:
        yield db
    except Exception as e:
        db.rollback()
        log.error("An error occurred while using the database session. Error: %s", e)
        raise
    finally:
        db.close()
        engine.dispose()
