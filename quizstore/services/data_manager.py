"""
Central persistence service used by every caller.

The manager owns the four DAOs, decides between insert and update, keeps a
question's answers in sync with the store and hydrates the relationships that
are not stored as columns (answer back-references, full theme of a question).
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from quizstore.core.config import Settings, get_settings
from quizstore.core.database import Database, init_db
from quizstore.dao.base import AnswerDAO, QuestionDAO, StatisticDAO, ThemeDAO
from quizstore.dao.sql import SqlAnswerDAO, SqlQuestionDAO, SqlStatisticDAO, SqlThemeDAO
from quizstore.models.domain import Answer, Question, QuizStatistic, Theme, is_persisted
from quizstore.models.schemas import StatisticSnapshot, ThemeSnapshot
from quizstore.models.selection import (
    ALL_QUESTIONS, ALL_THEMES, AllQuestions, AllThemes, QuestionSelection, SpecificQuestion, SpecificTheme,
    ThemeSelection,
)
from quizstore.services.validators import validate_question, validate_theme

logger = logging.getLogger(__name__)

MSG_THEME_INSERT_FAILED = "Error inserting theme."
MSG_THEME_UPDATE_FAILED = "Error updating theme."
MSG_QUESTION_NO_THEME = "Please select a valid theme before saving the question."
MSG_QUESTION_INSERT_FAILED = "Error inserting question."
MSG_QUESTION_UPDATE_FAILED = "Error updating question."
MSG_QUESTION_DELETE_FAILED = "Error deleting question."
MSG_ANSWERS_SAVE_FAILED = "Error saving answers."


class _Abort(Exception):
    """Unwinds a store transaction carrying the message for the caller."""


class DataManager:
    """Single entry point for loading and saving quiz content and statistics."""

    def __init__(
        self,
        db: Database,
        settings: Optional[Settings] = None,
        theme_dao: Optional[ThemeDAO] = None,
        question_dao: Optional[QuestionDAO] = None,
        answer_dao: Optional[AnswerDAO] = None,
        statistic_dao: Optional[StatisticDAO] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.theme_dao = theme_dao or SqlThemeDAO(db)
        self.question_dao = question_dao or SqlQuestionDAO(db)
        self.answer_dao = answer_dao or SqlAnswerDAO(db)
        self.statistic_dao = statistic_dao or SqlStatisticDAO(db)

    @classmethod
    def open(cls, settings: Optional[Settings] = None) -> "DataManager":
        """Open the configured store, create missing tables and wrap it."""
        settings = settings or get_settings()
        return cls(init_db(settings), settings)

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "DataManager":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------
    # Themes
    # ------------------------------------------------------------
    def get_all_themes(self) -> List[Theme]:
        return self.theme_dao.find_all()

    find_all_themes = get_all_themes

    def get_theme(self, theme_id: int) -> Optional[Theme]:
        return self.theme_dao.find_by_id(theme_id)

    def save_theme(self, theme: Theme) -> Optional[str]:
        """Insert a new theme or update a persisted one; returns an error message or None."""
        if theme.id <= 0:
            return None if self.theme_dao.insert(theme) else MSG_THEME_INSERT_FAILED
        return None if self.theme_dao.update(theme) else MSG_THEME_UPDATE_FAILED

    def delete_theme(self, theme_id: int) -> bool:
        # questions and answers are removed by ON DELETE CASCADE
        return self.theme_dao.delete(theme_id)

    # ------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------
    def find_questions_by_theme(self, theme: Theme) -> List[Question]:
        """Questions of a theme without their answers."""
        return self.question_dao.find_by_theme(theme)

    def get_questions_for(self, theme: Optional[Theme]) -> List[Question]:
        """
        Questions of a theme, each with a freshly loaded answer set.

        The questions are also registered on ``theme`` so the duplicate-title
        check of ``validate_question`` sees them.
        """
        if not is_persisted(theme):
            return []
        questions = self.question_dao.find_by_theme(theme)
        for question in questions:
            self._hydrate_answers(question)
            theme.add_question(question)
        return questions

    def get_full_question_by_id(self, question_id: int) -> Optional[Question]:
        """A question with its answers and its complete theme."""
        question = self.question_dao.find_by_id(question_id)
        if question is None:
            return None
        self._hydrate_answers(question)
        if is_persisted(question.theme):
            theme = self.theme_dao.find_by_id(question.theme.id)
            if theme is not None:
                question.theme = theme
        return question

    def save_question(self, question: Question) -> Optional[str]:
        """
        Insert or update a question and replace its answers in the store.

        The question row and the answer resynchronization run in one
        transaction. On failure nothing is written and the in-memory ids are
        put back the way they were.
        """
        if not is_persisted(question.theme):
            return MSG_QUESTION_NO_THEME

        is_new = question.id <= 0
        answers = question.answers
        saved_ids = (question.id, [(a, a.id, a.question_id) for a in answers])
        try:
            with self.db.transaction():
                ok = self.question_dao.insert(question) if is_new else self.question_dao.update(question)
                if not ok:
                    raise _Abort(MSG_QUESTION_INSERT_FAILED if is_new else MSG_QUESTION_UPDATE_FAILED)
                self._sync_answers(question, answers)
        except _Abort as e:
            self._restore_ids(question, saved_ids)
            logger.error("Saving question %r failed: %s", question.title, e)
            return str(e)
        except SQLAlchemyError:
            self.db.rollback()
            self._restore_ids(question, saved_ids)
            logger.exception("Committing question %r failed", question.title)
            return MSG_ANSWERS_SAVE_FAILED

        question.set_answers(answers)
        question.theme.add_question(question)
        return None

    def delete_question(self, question: Question) -> Optional[str]:
        question_id = question.id
        if not self.question_dao.delete(question_id):
            return MSG_QUESTION_DELETE_FAILED
        if question.theme is not None:
            question.theme.remove_question_by_id(question_id)
        if self.settings.PURGE_ORPHAN_STATISTICS and not self.statistic_dao.delete_by_question_id(question_id):
            logger.warning("Question %s deleted but its statistics could not be purged", question_id)
        return None

    def _hydrate_answers(self, question: Question) -> None:
        answers = self.answer_dao.find_by_question(question)
        question.clear_answers()
        for answer in answers:
            answer.attach(question)
            question.add_answer(answer)

    def _sync_answers(self, question: Question, answers: List[Answer]) -> None:
        # full replace: answer ids are not stable across saves
        if not self.answer_dao.delete_by_question_id(question.id):
            raise _Abort(MSG_ANSWERS_SAVE_FAILED)
        for answer in answers:
            answer.attach(question)
            if not self.answer_dao.insert(answer):
                raise _Abort(MSG_ANSWERS_SAVE_FAILED)
        logger.debug("Resynchronized %d answers of question %s", len(answers), question.id)

    @staticmethod
    def _restore_ids(question: Question, saved_ids) -> None:
        question.id, answer_ids = saved_ids
        for answer, answer_id, question_id in answer_ids:
            answer.id = answer_id
            answer.question_id = question_id

    # ------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------
    def insert_statistic(self, statistic: QuizStatistic) -> bool:
        return self.statistic_dao.insert(statistic)

    def find_all_statistics(self) -> List[QuizStatistic]:
        return self.statistic_dao.find_all()

    def find_statistics_by_question_id(self, question_id: int) -> List[QuizStatistic]:
        return self.statistic_dao.find_by_question_id(question_id)

    def questions_for_selection(self, selection: ThemeSelection) -> List[Question]:
        """Questions of one theme, or of every stored theme for ``AllThemes``."""
        if isinstance(selection, SpecificTheme):
            return self.find_questions_by_theme(selection.theme)
        if isinstance(selection, AllThemes):
            questions: List[Question] = []
            for theme in self.get_all_themes():
                questions.extend(self.find_questions_by_theme(theme))
            return questions
        raise TypeError(f"Unsupported theme selection: {selection!r}")

    def collect_statistics(self, themes: ThemeSelection, questions: QuestionSelection) -> List[QuizStatistic]:
        """Statistics behind a theme/question choice of the statistics views."""
        if isinstance(questions, SpecificQuestion):
            return self.find_statistics_by_question_id(questions.question.id)
        if isinstance(questions, AllQuestions):
            stats: List[QuizStatistic] = []
            for question in self.questions_for_selection(themes):
                stats.extend(self.find_statistics_by_question_id(question.id))
            return stats
        raise TypeError(f"Unsupported question selection: {questions!r}")

    # ------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------
    def export_themes(self) -> List[ThemeSnapshot]:
        return [ThemeSnapshot.from_entity(t, self.get_questions_for(t)) for t in self.get_all_themes()]

    def export_statistics(self, themes: ThemeSelection = ALL_THEMES,
                          questions: QuestionSelection = ALL_QUESTIONS) -> List[StatisticSnapshot]:
        return [StatisticSnapshot.from_entity(s) for s in self.collect_statistics(themes, questions)]

    def import_theme(self, snapshot: ThemeSnapshot) -> Optional[str]:
        """
        Store a snapshot as a brand-new theme with new ids.

        Every question is validated against the ones imported before it. The
        import is all-or-nothing.
        """
        theme = Theme(title=snapshot.title, text=snapshot.text)
        try:
            with self.db.transaction():
                error = validate_theme(theme.title, theme.text, self.get_all_themes()) or self.save_theme(theme)
                if error:
                    raise _Abort(error)
                for qs in snapshot.questions:
                    question = Question(theme=theme, title=qs.title, text=qs.text)
                    for a in qs.answers:
                        question.add_answer(Answer(text=a.text, is_correct=a.is_correct, question=question))
                    error = validate_question(question, theme) or self.save_question(question)
                    if error:
                        raise _Abort(error)
        except _Abort as e:
            logger.warning("Import of theme %r aborted: %s", snapshot.title, e)
            return str(e)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Import of theme %r failed", snapshot.title)
            return MSG_THEME_INSERT_FAILED
        logger.info("Imported theme %r with %d questions", theme.title, len(snapshot.questions))
        return None
