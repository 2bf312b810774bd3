"""
Quiz content persistence and play statistics.
"""
from quizstore.core.config import Settings, get_settings
from quizstore.core.database import Database, init_db, close_db
from quizstore.models.domain import Answer, Question, QuizStatistic, Theme
from quizstore.models.selection import AllQuestions, AllThemes, SpecificQuestion, SpecificTheme
from quizstore.services.data_manager import DataManager

__version__ = "1.0.0"

__all__ = [
    "Settings", "get_settings", "Database", "init_db", "close_db",
    "Answer", "Question", "QuizStatistic", "Theme",
    "AllQuestions", "AllThemes", "SpecificQuestion", "SpecificTheme",
    "DataManager",
]
