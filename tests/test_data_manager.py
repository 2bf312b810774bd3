import logging
from datetime import datetime, timezone

import pytest

from quizstore.dao.sql import SqlStatisticDAO
from quizstore.models.domain import Answer, QuizStatistic, Theme
from quizstore.models.schemas import AnswerSnapshot, QuestionSnapshot, ThemeSnapshot
from quizstore.models.selection import ALL_QUESTIONS, ALL_THEMES, SpecificQuestion, SpecificTheme
from quizstore.services import data_manager as dmod
from quizstore.services.data_manager import DataManager
from quizstore.services.statistics import calculate_daily_accuracy
from quizstore.services.validators import QUESTION_MSG_DUPLICATE_TITLE, THEME_MSG_DUPLICATE_TITLE

from conftest import make_question


def test_capitals_scenario(dm, capitals):
    theme, question = capitals
    assert theme.id == 1 and question.id > 0

    loaded = dm.get_questions_for(Theme(id=1))
    assert len(loaded) == 1
    assert [(a.text, a.is_correct) for a in loaded[0].answers] == [("Paris", True), ("Lyon", False)]

    when = datetime(2024, 3, 15, 10, 30)
    assert dm.insert_statistic(QuizStatistic(question_id=question.id, correct=True, date=when))
    stats = dm.find_statistics_by_question_id(question.id)
    assert len(stats) == 1
    assert calculate_daily_accuracy(stats) == {"2024-03-15": 100.0}


def test_save_theme_insert_then_update(dm):
    theme = Theme("History", "Dates")
    assert dm.save_theme(theme) is None
    theme.text = "Dates and people"
    assert dm.save_theme(theme) is None
    assert dm.get_theme(theme.id).text == "Dates and people"
    assert dm.find_all_themes() == [theme]


def test_save_theme_reports_failures(dm):
    assert dm.save_theme(Theme(title=None, text="x")) == dmod.MSG_THEME_INSERT_FAILED
    assert dm.save_theme(Theme("ghost", "x", id=50)) == dmod.MSG_THEME_UPDATE_FAILED


def test_save_question_requires_persisted_theme(dm):
    q = make_question(Theme("unsaved", "x"), "Q", "?", [("A", True)])
    assert dm.save_question(q) == dmod.MSG_QUESTION_NO_THEME
    assert dm.save_question(make_question(None, "Q", "?", [("A", True)])) == dmod.MSG_QUESTION_NO_THEME
    assert q.id == -1


def test_save_question_assigns_ids_and_links_answers(dm, capitals):
    theme, question = capitals
    assert all(a.id > 0 and a.question_id == question.id for a in question.answers)
    assert theme.questions == [question]


def test_resync_is_idempotent(dm, capitals):
    _, question = capitals
    assert dm.save_question(question) is None
    assert dm.save_question(question) is None
    reloaded = dm.get_full_question_by_id(question.id)
    assert [(a.text, a.is_correct) for a in reloaded.answers] == [("Paris", True), ("Lyon", False)]


def test_resync_replaces_answers(dm, capitals):
    _, question = capitals
    question.set_answers([Answer("Marseille", False, question), Answer("Paris", True, question)])
    assert dm.save_question(question) is None
    reloaded = dm.get_full_question_by_id(question.id)
    assert [a.text for a in reloaded.answers] == ["Marseille", "Paris"]


def test_failed_resync_keeps_previous_answers(dm, capitals):
    _, question = capitals
    before = [(a.id, a.text) for a in dm.get_full_question_by_id(question.id).answers]
    question.title = "Q1 renamed"
    berlin, broken = Answer("Berlin", False, question), Answer(None, True, question)
    question.set_answers([berlin, broken])

    assert dm.save_question(question) == dmod.MSG_ANSWERS_SAVE_FAILED
    assert berlin.id == -1 and broken.id == -1

    reloaded = dm.get_full_question_by_id(question.id)
    assert reloaded.title == "Q1"
    assert [(a.id, a.text) for a in reloaded.answers] == before


def test_failed_insert_restores_question_id(dm, capitals):
    theme, _ = capitals
    q = make_question(theme, "Q9", "?", [("A", True), (None, False)])
    assert dm.save_question(q) == dmod.MSG_ANSWERS_SAVE_FAILED
    assert q.id == -1
    assert [x.title for x in dm.find_questions_by_theme(theme)] == ["Q1"]


def test_get_full_question_by_id_loads_theme(dm, capitals):
    theme, question = capitals
    full = dm.get_full_question_by_id(question.id)
    assert full.theme.title == "Capitals" and full.theme.text == "European capitals"
    assert all(a.question is full for a in full.answers)
    assert dm.get_full_question_by_id(999) is None


def test_get_questions_for_unpersisted_theme(dm):
    assert dm.get_questions_for(None) == []
    assert dm.get_questions_for(Theme("new", "x")) == []


def test_find_questions_by_theme_skips_answers(dm, capitals):
    theme, _ = capitals
    assert dm.find_questions_by_theme(theme)[0].answers == []


def test_loaded_questions_feed_duplicate_check(dm, capitals):
    from quizstore.services.validators import validate_question
    theme = dm.get_theme(capitals[0].id)
    dm.get_questions_for(theme)
    candidate = make_question(theme, " q1 ", "Again?", [("x", True)])
    assert validate_question(candidate, theme) == QUESTION_MSG_DUPLICATE_TITLE


def test_delete_theme_cascades(dm, capitals):
    theme, question = capitals
    assert dm.delete_theme(theme.id)
    assert dm.get_full_question_by_id(question.id) is None
    assert dm.get_all_themes() == []


def test_delete_question_keeps_statistics_by_default(dm, capitals):
    theme, question = capitals
    dm.insert_statistic(QuizStatistic(question_id=question.id, correct=True))
    assert dm.delete_question(question) is None
    assert theme.questions == []
    assert len(dm.find_statistics_by_question_id(question.id)) == 1
    assert dm.delete_question(question) == dmod.MSG_QUESTION_DELETE_FAILED


def test_delete_question_purges_statistics_when_enabled(db, settings):
    manager = DataManager(db, settings.model_copy(update={"PURGE_ORPHAN_STATISTICS": True}))
    theme = Theme("T", "t")
    manager.save_theme(theme)
    q = make_question(theme, "Q", "?", [("A", True)])
    manager.save_question(q)
    manager.insert_statistic(QuizStatistic(question_id=q.id, correct=False))
    assert manager.delete_question(q) is None
    assert manager.find_statistics_by_question_id(q.id) == []


def test_selections_resolve_to_real_questions(dm, seeded):
    all_questions = dm.questions_for_selection(ALL_THEMES)
    assert sorted(q.id for q in all_questions) == sorted(q.id for q in seeded["questions"])
    rivers = dm.questions_for_selection(SpecificTheme(seeded["rivers"]))
    assert [q.title for q in rivers] == ["R1"]
    with pytest.raises(TypeError):
        dm.questions_for_selection(None)


def test_collect_statistics(dm, seeded):
    q1, q2, q3 = seeded["questions"]
    for q, ok in ((q1, True), (q1, False), (q2, True), (q3, True)):
        dm.insert_statistic(QuizStatistic(question_id=q.id, correct=ok))
    assert len(dm.collect_statistics(ALL_THEMES, ALL_QUESTIONS)) == 4
    assert len(dm.collect_statistics(SpecificTheme(seeded["capitals"]), ALL_QUESTIONS)) == 3
    assert len(dm.collect_statistics(ALL_THEMES, SpecificQuestion(q1))) == 2
    assert len(dm.find_all_statistics()) == 4
    with pytest.raises(TypeError):
        dm.collect_statistics(ALL_THEMES, "all")


def test_export_import_round_trip(dm, seeded):
    exported = dm.export_themes()
    assert [t.title for t in exported] == ["Capitals", "Rivers"]
    snapshot = exported[1].model_copy(update={"title": "Rivers (copy)"})

    assert dm.import_theme(snapshot) is None
    copy = [t for t in dm.get_all_themes() if t.title == "Rivers (copy)"][0]
    assert copy.id != seeded["rivers"].id
    questions = dm.get_questions_for(copy)
    assert [q.title for q in questions] == ["R1"]
    assert questions[0].id != seeded["questions"][2].id
    assert [(a.text, a.is_correct) for a in questions[0].answers] == [("Danube", True), ("Rhine", False)]


def test_import_is_all_or_nothing(dm, capitals):
    snapshot = ThemeSnapshot(title="Mountains", text="Peaks", questions=[
        QuestionSnapshot(title="M1", text="Highest in the Alps?", answers=[AnswerSnapshot(text="Mont Blanc", is_correct=True)]),
        QuestionSnapshot(title="m1", text="Duplicate title", answers=[AnswerSnapshot(text="x", is_correct=True)]),
    ])
    assert dm.import_theme(snapshot) == QUESTION_MSG_DUPLICATE_TITLE
    assert [t.title for t in dm.get_all_themes()] == ["Capitals"]


def test_import_rejects_existing_theme_title(dm, capitals):
    assert dm.import_theme(ThemeSnapshot(title="capitals", text="again")) == THEME_MSG_DUPLICATE_TITLE


def test_open_and_close(settings):
    with DataManager.open(settings) as manager:
        assert manager.get_all_themes() == []
    assert manager.db._closed


class _UnpurgeableStatistics(SqlStatisticDAO):
    def delete_by_question_id(self, question_id):
        return False


def test_failed_purge_is_logged(db, settings, caplog):
    manager = DataManager(db, settings.model_copy(update={"PURGE_ORPHAN_STATISTICS": True}),
                          statistic_dao=_UnpurgeableStatistics(db))
    theme = Theme("T", "t")
    manager.save_theme(theme)
    q = make_question(theme, "Q", "?", [("A", True)])
    manager.save_question(q)
    manager.insert_statistic(QuizStatistic(question_id=q.id, correct=True))
    with caplog.at_level(logging.WARNING, logger="quizstore.services.data_manager"):
        assert manager.delete_question(q) is None
    assert "could not be purged" in caplog.text
    assert len(manager.find_statistics_by_question_id(q.id)) == 1


def test_export_statistics(dm, seeded):
    q1, _, q3 = seeded["questions"]
    when = datetime(2024, 6, 1, 8, tzinfo=timezone.utc)
    dm.insert_statistic(QuizStatistic(question_id=q1.id, correct=True, date=when))
    dm.insert_statistic(QuizStatistic(question_id=q3.id, correct=False, date=when))
    exported = dm.export_statistics()
    assert [(s.question_id, s.correct, s.date) for s in exported] == [(q1.id, True, when), (q3.id, False, when)]
    rivers = dm.export_statistics(SpecificTheme(seeded["rivers"]))
    assert [s.question_id for s in rivers] == [q3.id]
    assert rivers[0].model_dump()["correct"] is False
