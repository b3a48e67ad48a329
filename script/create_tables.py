# create_tables.py
from sqlalchemy import inspect

from studyhub.model import users, quizzes, questions, attempts, responses, user_progress, labs, lab_attempts
from studyhub.database.base_class import Base
from studyhub.database.db import get_ctx_db
from studyhub.database.session import SQLALCHEMY_DATABASE_URL
from studyhub.log import get_logger

log = get_logger("script.create_tables", "INFO")


def create_tables(database_url: str = SQLALCHEMY_DATABASE_URL) -> list:
    """Create every table that does not exist yet and return the table names."""
    with get_ctx_db(database_url) as db:
        engine = db.get_bind()
        Base.metadata.create_all(bind=engine)
        table_names = inspect(engine).get_table_names()
    log.info("Tables created. Existing tables: %s", table_names)
    return table_names


if __name__ == "__main__":
    create_tables()
