"""
Exceptions raised for caller mistakes.

Store failures never surface as exceptions; DAOs log them and return a
falsy result instead.
"""


class QuizStoreError(Exception):
    """Base class for quizstore errors."""


class QuizPlayError(QuizStoreError):
    """An attempt could not be graded."""


class NoSelectionError(QuizPlayError):
    """No answer was chosen for an attempt."""


class InvalidWeekLabelError(QuizStoreError, ValueError):
    """A week label does not have the ``<year>-KW<week>`` shape."""
