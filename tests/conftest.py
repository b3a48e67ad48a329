import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from studyhub.main import app
from studyhub.database.db import get_db
from studyhub.database.base_class import Base
from studyhub.database.session import get_local_session
from studyhub.router.dependencies import get_scoring_policy
from studyhub.model.users import User
from studyhub.model.quizzes import Quiz
from studyhub.model.questions import Question
from studyhub.model.attempts import QuizAttempt
from studyhub.model.labs import VirtualLab

# In-memory SQLite shared by the test code and the app under test
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = get_local_session(engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """Override the get_db dependency."""
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_get_db) -> TestClient:
    return TestClient(app)


@pytest.fixture
def legacy_scoring(override_get_db):
    """Score submissions over the answered questions only."""
    app.dependency_overrides[get_scoring_policy] = lambda: "legacy"
    yield
    app.dependency_overrides.pop(get_scoring_policy, None)


@pytest.fixture
def test_user(db_session) -> User:
    user = User(username="alice", name="Alice Smith", email="alice@example.com")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_quiz(db_session):
    """Factory: make_quiz([(answer, points), ...], **quiz_settings) -> Quiz."""
    def _make_quiz(questions=(("Nmap", 10), ("Wireshark", 20)), **kwargs):
        settings = dict(
            title="Reconnaissance Basics",
            passing_score=70.0,
            randomize_questions=False,
            show_correct_answers=False,
        )
        settings.update(kwargs)
        quiz = Quiz(**settings)
        quiz.questions = [
            Question(
                question_text=f"Question {i + 1}",
                options=[answer, "Other"],
                correct_answer=answer,
                explanation=f"The answer is {answer}.",
                points=points,
                order_index=i,
            )
            for i, (answer, points) in enumerate(questions)
        ]
        db_session.add(quiz)
        db_session.commit()
        db_session.refresh(quiz)
        return quiz

    return _make_quiz


@pytest.fixture
def ten_by_ten_quiz(make_quiz) -> Quiz:
    """Ten questions worth ten points each, answers a0..a9."""
    return make_quiz(questions=[(f"a{i}", 10) for i in range(10)], title="Scoring Drill")


@pytest.fixture
def completed_attempts(db_session):
    """Factory: store n already graded attempts for a user on a quiz."""
    def _completed_attempts(user, quiz, n, score=80.0):
        start = datetime.now() - timedelta(days=1)
        rows = [
            QuizAttempt(
                user_id=user.user_id,
                quiz_id=quiz.quiz_id,
                attempt_number=i + 1,
                started_at=start,
                completed_at=start + timedelta(minutes=10),
                total_questions=len(quiz.questions),
                correct_answers=1,
                score=score,
                is_passed=score >= quiz.passing_score,
            )
            for i in range(n)
        ]
        db_session.add_all(rows)
        db_session.commit()
        return rows

    return _completed_attempts


@pytest.fixture
def test_lab(db_session) -> VirtualLab:
    lab = VirtualLab(
        title="Port Scanning Lab",
        category="reconnaissance",
        instructions="Scan the target network.",
        objectives=["Find open ports"],
        resources=["nmap cheat sheet"],
    )
    db_session.add(lab)
    db_session.commit()
    db_session.refresh(lab)
    return lab


@pytest.fixture
def answers_for():
    """Factory: responses answering the first `correct` questions right, the rest wrong."""
    def _answers_for(quiz, correct: int):
        return [
            {"question_id": q.question_id, "answer": q.correct_answer if i < correct else "wrong"}
            for i, q in enumerate(quiz.questions)
        ]

    return _answers_for
