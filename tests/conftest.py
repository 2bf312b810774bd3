import pytest

from quizstore.core.config import Settings
from quizstore.core.database import init_db
from quizstore.models.domain import Answer, Question, Theme
from quizstore.services.data_manager import DataManager


@pytest.fixture
def settings():
    return Settings(_env_file=None, ENVIRONMENT="testing", DATABASE_URL="sqlite://", WEEK_SCHEME="iso")


@pytest.fixture
def db(settings):
    database = init_db(settings)
    yield database
    database.close()


@pytest.fixture
def dm(db, settings):
    return DataManager(db, settings)


def make_question(theme, title, text, answers):
    question = Question(theme=theme, title=title, text=text)
    for answer_text, is_correct in answers:
        question.add_answer(Answer(text=answer_text, is_correct=is_correct, question=question))
    return question


@pytest.fixture
def capitals(dm):
    """Saved theme "Capitals" with one question (Paris correct, Lyon wrong)."""
    theme = Theme("Capitals", "European capitals")
    assert dm.save_theme(theme) is None
    question = make_question(theme, "Q1", "What is the capital of France?", [("Paris", True), ("Lyon", False)])
    assert dm.save_question(question) is None
    return theme, question


@pytest.fixture
def seeded(dm, capitals):
    """Two themes, three questions."""
    capitals_theme, q1 = capitals
    q2 = make_question(capitals_theme, "Q2", "What is the capital of Italy?", [("Rome", True), ("Milan", False)])
    assert dm.save_question(q2) is None
    rivers = Theme("Rivers", "Rivers of Europe")
    assert dm.save_theme(rivers) is None
    q3 = make_question(rivers, "R1", "Which river flows through Vienna?", [("Danube", True), ("Rhine", False)])
    assert dm.save_question(q3) is None
    return {"capitals": capitals_theme, "rivers": rivers, "questions": [q1, q2, q3]}
