"""
Data-access contracts, one per entity.

Implementations never raise store errors to the caller: reads come back as
``None`` or an empty list and writes as ``False`` when the store fails.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from quizstore.models.domain import Answer, Question, QuizStatistic, Theme


class ThemeDAO(ABC):

    @abstractmethod
    def find_by_id(self, theme_id: int) -> Optional[Theme]:
        pass

    @abstractmethod
    def find_all(self) -> List[Theme]:
        pass

    @abstractmethod
    def insert(self, theme: Theme) -> bool:
        """Insert and write the generated id back onto ``theme``."""

    @abstractmethod
    def update(self, theme: Theme) -> bool:
        pass

    @abstractmethod
    def delete(self, theme_id: int) -> bool:
        """Delete a theme; its questions and answers go with it."""


class QuestionDAO(ABC):

    @abstractmethod
    def find_by_id(self, question_id: int) -> Optional[Question]:
        """
        Load one question.

        The returned question's theme is a shallow ``Theme`` carrying only the
        id. Callers that need title or text must fetch the theme themselves.
        """

    @abstractmethod
    def find_by_theme(self, theme: Theme) -> List[Question]:
        pass

    @abstractmethod
    def insert(self, question: Question) -> bool:
        pass

    @abstractmethod
    def update(self, question: Question) -> bool:
        pass

    @abstractmethod
    def delete(self, question_id: int) -> bool:
        pass


class AnswerDAO(ABC):

    @abstractmethod
    def find_by_question(self, question: Question) -> List[Answer]:
        pass

    @abstractmethod
    def insert(self, answer: Answer) -> bool:
        pass

    @abstractmethod
    def update(self, answer: Answer) -> bool:
        pass

    @abstractmethod
    def delete_by_question_id(self, question_id: int) -> bool:
        """Bulk delete used before re-inserting a question's answers."""


class StatisticDAO(ABC):
    # append-only: there is no update

    @abstractmethod
    def insert(self, statistic: QuizStatistic) -> bool:
        pass

    @abstractmethod
    def find_all(self) -> List[QuizStatistic]:
        pass

    @abstractmethod
    def find_by_question_id(self, question_id: int) -> List[QuizStatistic]:
        pass

    @abstractmethod
    def delete_by_question_id(self, question_id: int) -> bool:
        """Drop the history of a deleted question."""
