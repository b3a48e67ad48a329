import logging

import pytest
from sqlalchemy import text

from script.create_tables import create_tables
from studyhub.database.db import get_ctx_db
from studyhub.log import get_logger


def test_create_tables_with_ctx_session(tmp_path):
    url = f"sqlite:///{tmp_path / 'studyhub.db'}"

    tables = create_tables(url)

    assert {"users", "quizzes", "quiz_attempts", "lab_attempts", "user_progress"} <= set(tables)
    with get_ctx_db(url) as db:
        db.execute(text("INSERT INTO users (username, name, study_points, is_public) VALUES ('dave', 'Dave', 0, 1)"))
        db.commit()
        assert db.execute(text("SELECT count(*) FROM users")).scalar() == 1


def test_ctx_session_rolls_back_and_reraises(tmp_path):
    url = f"sqlite:///{tmp_path / 'studyhub.db'}"
    create_tables(url)

    with pytest.raises(RuntimeError):
        with get_ctx_db(url) as db:
            db.execute(text("INSERT INTO users (username, name, study_points, is_public) VALUES ('eve', 'Eve', 0, 1)"))
            raise RuntimeError("import aborted")

    with get_ctx_db(url) as db:
        assert db.execute(text("SELECT count(*) FROM users")).scalar() == 0


def test_logger_level_override():
    log = get_logger("visual_generation", "debug")

    assert log.name == "studyhub.visual_generation"
    assert log.level == logging.DEBUG
    assert get_logger("studyhub.other").level == logging.NOTSET
