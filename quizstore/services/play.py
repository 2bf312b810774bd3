"""
Quiz play: grading attempts and recording them as statistics.
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Collection, Optional, Sequence, Union

from quizstore.exceptions import NoSelectionError, QuizPlayError
from quizstore.models.domain import Question, QuizStatistic

logger = logging.getLogger(__name__)

MSG_NO_QUESTION_SELECTED = "Keine Frage ausgewählt."
MSG_NO_SELECTION_MADE = "Bitte wählen Sie mindestens eine Antwort aus."
MSG_NO_QUESTIONS_AVAILABLE = "Keine Fragen vorhanden."
MSG_CORRECT_ANSWER_IS = "Die richtige Antwort ist: "
MSG_CORRECT = "Richtig!"
MSG_WRONG = "Leider falsch."

Selection = Union[Sequence[bool], Collection[int]]


@dataclass
class AttemptResult:
    correct: bool
    statistic: QuizStatistic
    saved: bool

    @property
    def message(self) -> str:
        return MSG_CORRECT if self.correct else MSG_WRONG


def _chosen_flags(question: Question, selected: Selection) -> list:
    answers = question.answers
    items = list(selected)
    if items and all(isinstance(x, bool) for x in items):
        if len(items) != len(answers):
            raise QuizPlayError(f"Expected {len(answers)} flags, got {len(items)}")
        return items
    chosen_ids = set(items)
    unknown = chosen_ids - {a.id for a in answers}
    if unknown:
        raise QuizPlayError(f"Unknown answer ids: {sorted(unknown)}")
    return [a.id in chosen_ids for a in answers]


def grade_attempt(question: Question, selected: Selection) -> bool:
    """
    Grade a selection against the question's answers.

    ``selected`` is either one boolean per answer (in ``question.answers``
    order) or the ids of the chosen answers. The attempt counts as correct only
    when exactly the correct answers were chosen.
    """
    if question is None:
        raise QuizPlayError(MSG_NO_QUESTION_SELECTED)
    flags = _chosen_flags(question, selected)
    if not any(flags):
        raise NoSelectionError(MSG_NO_SELECTION_MADE)
    return all(answer.is_correct == chosen for answer, chosen in zip(question.answers, flags))


def record_attempt(data_manager, question: Question, selected: Selection,
                   when: Optional[datetime] = None) -> AttemptResult:
    """Grade an attempt and append it to the statistics."""
    correct = grade_attempt(question, selected)
    stat = QuizStatistic(question_id=question.id, correct=correct, date=when or datetime.now().astimezone())
    saved = data_manager.insert_statistic(stat)
    if not saved:
        logger.error("Attempt on question %s could not be stored", question.id)
    return AttemptResult(correct=correct, statistic=stat, saved=saved)


def pick_random_question(data_manager, questions: Sequence[Question],
                         rng: Optional[random.Random] = None) -> Optional[Question]:
    """Pick one question and reload it with answers and full theme."""
    if not questions:
        return None
    choice = (rng or random).choice(list(questions))
    return data_manager.get_full_question_by_id(choice.id)


def correct_answer_text(question: Question) -> str:
    return ", ".join(a.text for a in question.answers if a.is_correct)
