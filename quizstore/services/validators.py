"""
Business rules checked before a theme or question is persisted.

Both validators are pure: they only look at the objects passed in and return
``None`` on success or the message of the first rule that fails.
"""
from typing import Iterable, Optional

from quizstore.models.domain import Question, Theme

# ------------------- Theme messages -------------------
THEME_MSG_NO_TITLE = "Bitte einen Titel eingeben!"
THEME_MSG_NO_DESCRIPTION = "Bitte eine Beschreibung eingeben!"
THEME_MSG_DUPLICATE_TITLE = "Es existiert bereits ein Thema mit diesem Namen!"

# ------------------- Question messages -------------------
QUESTION_MSG_NO_THEME = "Bitte wählen Sie ein Thema aus."
QUESTION_MSG_INVALID = "Ungültige Frage oder Thema."
QUESTION_MSG_NO_TITLE = "Bitte geben Sie einen Titel ein."
QUESTION_MSG_NO_TEXT = "Bitte geben Sie den Fragetext ein."
QUESTION_MSG_NO_ANSWER = "Bitte geben Sie mindestens eine Antwort ein."
QUESTION_MSG_NO_CORRECT = "Bitte markieren Sie mindestens eine richtige Antwort."
QUESTION_MSG_DUPLICATE_TITLE = "Es existiert bereits eine andere Frage mit diesem Titel im gewählten Thema."


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def normalize_title(title: str) -> str:
    return title.strip().lower()


def validate_theme(title: Optional[str], text: Optional[str], all_themes: Iterable[Optional[Theme]],
                   exclude: Optional[Theme] = None) -> Optional[str]:
    """
    Check a theme's input before saving.

    ``exclude`` is the theme being edited; it is skipped by identity in the
    duplicate-title check so an update may keep its own title.
    """
    if is_blank(title):
        return THEME_MSG_NO_TITLE
    if is_blank(text):
        return THEME_MSG_NO_DESCRIPTION

    wanted = normalize_title(title)
    for theme in all_themes:
        if theme is None or theme is exclude or theme.title is None:
            continue
        if normalize_title(theme.title) == wanted:
            return THEME_MSG_DUPLICATE_TITLE
    return None


def validate_question(question: Optional[Question], theme: Optional[Theme],
                      exclude: Optional[Question] = None) -> Optional[str]:
    """
    Check a question before saving.

    Rules, in order: a theme is selected; the question exists and references a
    theme; title and text are filled in; at least one answer exists and at
    least one is correct; no other question of ``theme`` has the same title.
    """
    if theme is None:
        return QUESTION_MSG_NO_THEME
    if question is None or question.theme is None:
        return QUESTION_MSG_INVALID
    if is_blank(question.title):
        return QUESTION_MSG_NO_TITLE
    if is_blank(question.text):
        return QUESTION_MSG_NO_TEXT

    answers = question.answers
    if not answers:
        return QUESTION_MSG_NO_ANSWER
    if not any(a.is_correct for a in answers):
        return QUESTION_MSG_NO_CORRECT

    wanted = normalize_title(question.title)
    for existing in theme.questions:
        if existing is exclude or existing is question or existing.title is None:
            continue
        if normalize_title(existing.title) == wanted:
            return QUESTION_MSG_DUPLICATE_TITLE
    return None
