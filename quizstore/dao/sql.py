"""
SQLAlchemy implementations of the data-access contracts.

All DAOs share one ``Database`` and therefore one session. Each method runs
its statements, commits through the ``Database`` and converts rows into domain
entities. Store errors are logged and turned into ``False`` / ``None`` / ``[]``.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError

from quizstore.core.database import Database
from quizstore.dao.base import AnswerDAO, QuestionDAO, StatisticDAO, ThemeDAO
from quizstore.models.domain import Answer, Question, QuizStatistic, Theme
from quizstore.models.orm import AnswerRow, QuestionRow, StatisticRow, ThemeRow

logger = logging.getLogger(__name__)


def to_store_time(value: datetime) -> datetime:
    """Normalize to naive UTC; naive input is read as local time."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_store_time(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


class SqlDAO:
    """Shared plumbing: session access and failure handling."""

    def __init__(self, db: Database):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def _fail(self, message: str, *args) -> None:
        self.db.rollback()
        logger.exception(message, *args)


class SqlThemeDAO(SqlDAO, ThemeDAO):

    @staticmethod
    def _to_entity(row: ThemeRow) -> Theme:
        return Theme(title=row.title, text=row.text or "", id=row.id)

    def find_by_id(self, theme_id: int) -> Optional[Theme]:
        try:
            row = self.session.scalar(select(ThemeRow).where(ThemeRow.id == theme_id))
        except SQLAlchemyError:
            self._fail("Error loading theme %s", theme_id)
            return None
        return self._to_entity(row) if row else None

    def find_all(self) -> List[Theme]:
        try:
            rows = self.session.execute(select(ThemeRow).order_by(ThemeRow.id)).scalars().all()
        except SQLAlchemyError:
            self._fail("Error loading themes")
            return []
        return [self._to_entity(r) for r in rows]

    def insert(self, theme: Theme) -> bool:
        try:
            row = ThemeRow(title=theme.title, text=theme.text)
            self.session.add(row)
            self.session.flush()
            new_id = row.id
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error inserting theme %r", theme.title)
            return False
        theme.id = new_id
        return True

    def update(self, theme: Theme) -> bool:
        try:
            result = self.session.execute(
                update(ThemeRow).where(ThemeRow.id == theme.id).values(title=theme.title, text=theme.text)
            )
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error updating theme %s", theme.id)
            return False
        return result.rowcount > 0

    def delete(self, theme_id: int) -> bool:
        try:
            result = self.session.execute(delete(ThemeRow).where(ThemeRow.id == theme_id))
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error deleting theme %s", theme_id)
            return False
        return result.rowcount > 0


class SqlQuestionDAO(SqlDAO, QuestionDAO):

    @staticmethod
    def _to_entity(row: QuestionRow, theme: Theme) -> Question:
        return Question(theme=theme, title=row.title, text=row.text or "", id=row.id)

    def find_by_id(self, question_id: int) -> Optional[Question]:
        try:
            row = self.session.scalar(select(QuestionRow).where(QuestionRow.id == question_id))
        except SQLAlchemyError:
            self._fail("Error loading question %s", question_id)
            return None
        if row is None:
            return None
        shallow = Theme(id=row.theme_id if row.theme_id is not None else -1)
        return self._to_entity(row, shallow)

    def find_by_theme(self, theme: Theme) -> List[Question]:
        try:
            rows = self.session.execute(
                select(QuestionRow).where(QuestionRow.theme_id == theme.id).order_by(QuestionRow.id)
            ).scalars().all()
        except SQLAlchemyError:
            self._fail("Error loading questions of theme %s", theme.id)
            return []
        return [self._to_entity(r, theme) for r in rows]

    def insert(self, question: Question) -> bool:
        try:
            row = QuestionRow(title=question.title, text=question.text, theme_id=question.theme_id)
            self.session.add(row)
            self.session.flush()
            new_id = row.id
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error inserting question %r", question.title)
            return False
        question.id = new_id
        return True

    def update(self, question: Question) -> bool:
        try:
            result = self.session.execute(
                update(QuestionRow).where(QuestionRow.id == question.id)
                .values(title=question.title, text=question.text, theme_id=question.theme_id)
            )
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error updating question %s", question.id)
            return False
        return result.rowcount > 0

    def delete(self, question_id: int) -> bool:
        try:
            result = self.session.execute(delete(QuestionRow).where(QuestionRow.id == question_id))
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error deleting question %s", question_id)
            return False
        return result.rowcount > 0


class SqlAnswerDAO(SqlDAO, AnswerDAO):

    def find_by_question(self, question: Question) -> List[Answer]:
        try:
            rows = self.session.execute(
                select(AnswerRow).where(AnswerRow.question_id == question.id).order_by(AnswerRow.id)
            ).scalars().all()
        except SQLAlchemyError:
            self._fail("Error loading answers of question %s", question.id)
            return []
        return [Answer(text=r.text, is_correct=bool(r.is_correct), question=question, id=r.id) for r in rows]

    def insert(self, answer: Answer) -> bool:
        try:
            row = AnswerRow(question_id=answer.question_id, text=answer.text, is_correct=bool(answer.is_correct))
            self.session.add(row)
            self.session.flush()
            new_id = row.id
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error inserting answer for question %s", answer.question_id)
            return False
        answer.id = new_id
        return True

    def update(self, answer: Answer) -> bool:
        try:
            result = self.session.execute(
                update(AnswerRow).where(AnswerRow.id == answer.id)
                .values(text=answer.text, is_correct=bool(answer.is_correct), question_id=answer.question_id)
            )
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error updating answer %s", answer.id)
            return False
        return result.rowcount > 0

    def delete_by_question_id(self, question_id: int) -> bool:
        try:
            result = self.session.execute(delete(AnswerRow).where(AnswerRow.question_id == question_id))
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error deleting answers of question %s", question_id)
            return False
        logger.debug("Deleted %s answer rows of question %s", result.rowcount, question_id)
        return True


class SqlStatisticDAO(SqlDAO, StatisticDAO):

    @staticmethod
    def _to_entity(row: StatisticRow) -> QuizStatistic:
        return QuizStatistic(question_id=row.question_id, correct=bool(row.correct),
                             date=from_store_time(row.date), id=row.id)

    def insert(self, statistic: QuizStatistic) -> bool:
        try:
            row = StatisticRow(question_id=statistic.question_id, correct=bool(statistic.correct),
                               date=to_store_time(statistic.date))
            self.session.add(row)
            self.session.flush()
            new_id = row.id
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error inserting statistic for question %s", statistic.question_id)
            return False
        statistic.id = new_id
        return True

    def find_all(self) -> List[QuizStatistic]:
        try:
            rows = self.session.execute(select(StatisticRow).order_by(StatisticRow.id)).scalars().all()
        except SQLAlchemyError:
            self._fail("Error loading statistics")
            return []
        return [self._to_entity(r) for r in rows]

    def find_by_question_id(self, question_id: int) -> List[QuizStatistic]:
        try:
            rows = self.session.execute(
                select(StatisticRow).where(StatisticRow.question_id == question_id).order_by(StatisticRow.id)
            ).scalars().all()
        except SQLAlchemyError:
            self._fail("Error loading statistics of question %s", question_id)
            return []
        return [self._to_entity(r) for r in rows]

    def delete_by_question_id(self, question_id: int) -> bool:
        try:
            self.session.execute(delete(StatisticRow).where(StatisticRow.question_id == question_id))
            self.db.commit()
        except SQLAlchemyError:
            self._fail("Error deleting statistics of question %s", question_id)
            return False
        return True
