"""
Domain entities: Theme, Question, Answer and QuizStatistic.

Entities are plain in-memory holders. An id of ``-1`` (any id <= 0) marks an
entity that has never been persisted; the store assigns a positive id on the
first insert. Theme and Question compare and hash by id only.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

NEW_ID = -1


def is_persisted(entity: Any) -> bool:
    """True when the entity carries a store-assigned id."""
    return entity is not None and entity.id > 0


class Entity:
    """Base for entities identified by a surrogate key."""

    def __init__(self, id: int = NEW_ID):
        self.id = id

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if type(other) is not type(self):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class Theme(Entity):
    """A quiz topic owning questions keyed by question id."""

    def __init__(self, title: str = "", text: str = "", id: int = NEW_ID):
        super().__init__(id)
        self.title = title
        self.text = text
        self._questions: Dict[int, Question] = {}

    def add_question(self, question: Optional[Question]) -> None:
        """Register a persisted question; an existing entry with the same id is replaced."""
        if question is not None and question.id != NEW_ID:
            self._questions[question.id] = question

    def remove_question_by_id(self, question_id: int) -> bool:
        return self._questions.pop(question_id, None) is not None

    @property
    def questions(self) -> List[Question]:
        return list(self._questions.values())

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "text": self.text}

    def __str__(self) -> str:
        return self.title or ""


class Question(Entity):
    """
    A quiz prompt owned by one theme.

    Answers live in an insertion-ordered map keyed by answer id, so re-adding
    an answer with a known id replaces the earlier one. Answers that are not
    persisted yet get a transient negative key, which keeps several new
    answers side by side until the store hands out real ids.
    """

    def __init__(self, theme: Optional[Theme] = None, title: str = "", text: str = "", id: int = NEW_ID):
        super().__init__(id)
        self.theme = theme
        self.title = title
        self.text = text
        self._answers: Dict[int, Answer] = {}
        self._transient_keys = itertools.count(-1, -1)

    @property
    def theme_id(self) -> int:
        return self.theme.id if self.theme is not None else NEW_ID

    def _key_for(self, answer: Answer) -> int:
        if answer.id > 0:
            return answer.id
        for key, existing in self._answers.items():
            if key < 0 and existing is answer:
                return key
        return next(self._transient_keys)

    def add_answer(self, answer: Optional[Answer]) -> None:
        if answer is None:
            return
        self._answers[self._key_for(answer)] = answer

    @property
    def answers(self) -> List[Answer]:
        return list(self._answers.values())

    def clear_answers(self) -> None:
        self._answers.clear()

    def set_answers(self, answers: List[Answer]) -> None:
        """Replace the answer set, re-keying every entry by its current id."""
        self.clear_answers()
        for answer in answers:
            self.add_answer(answer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "theme_id": self.theme_id,
            "title": self.title,
            "text": self.text,
            "answers": [a.to_dict() for a in self.answers],
        }

    def __str__(self) -> str:
        return self.title or ""


class Answer(Entity):
    """
    One selectable option of a question.

    ``question_id`` is the persisted link. ``question`` is a transient
    back-reference restored during hydration and never serialized.
    Answers compare by identity; their ids change on every save.
    """

    __eq__ = object.__eq__
    __hash__ = object.__hash__

    def __init__(self, text: str = "", is_correct: bool = False, question: Optional[Question] = None,
                 id: int = NEW_ID):
        super().__init__(id)
        self.text = text
        self.is_correct = is_correct
        self.question_id = question.id if question is not None else NEW_ID
        self.question = question

    def attach(self, question: Question) -> None:
        self.question = question
        self.question_id = question.id

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "question_id": self.question_id, "text": self.text, "is_correct": self.is_correct}

    def __str__(self) -> str:
        return self.text or ""


@dataclass
class QuizStatistic:
    """Immutable record of one play attempt, linked to its question by id."""

    question_id: int
    correct: bool
    date: datetime = field(default_factory=lambda: datetime.now().astimezone())
    id: int = NEW_ID

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "question_id": self.question_id, "correct": self.correct,
                "date": self.date.isoformat()}
