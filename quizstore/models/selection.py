"""
Explicit "everything" vs "one entity" choices used by the statistics views.
"""
from dataclasses import dataclass
from typing import Union

from .domain import Question, Theme


@dataclass(frozen=True)
class AllThemes:
    pass


@dataclass(frozen=True)
class SpecificTheme:
    theme: Theme


@dataclass(frozen=True)
class AllQuestions:
    pass


@dataclass(frozen=True)
class SpecificQuestion:
    question: Question


ThemeSelection = Union[AllThemes, SpecificTheme]
QuestionSelection = Union[AllQuestions, SpecificQuestion]

ALL_THEMES = AllThemes()
ALL_QUESTIONS = AllQuestions()


def theme_selection(theme: Theme | None) -> ThemeSelection:
    """Map an optional theme (None meaning all) onto a selection."""
    return ALL_THEMES if theme is None else SpecificTheme(theme)


def question_selection(question: Question | None) -> QuestionSelection:
    return ALL_QUESTIONS if question is None else SpecificQuestion(question)
