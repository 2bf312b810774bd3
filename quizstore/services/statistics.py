"""
Accuracy aggregation over quiz statistics.

Records are bucketed by local calendar day, by calendar week or by theme and
each bucket is reduced to ``100 * correct / total``. Week numbering follows
one scheme per call so that the labels produced here can be parsed back by
``week_day_breakdown``. When no scheme is passed the ``WEEK_SCHEME`` setting
applies:

- ``iso``: ISO 8601 weeks (Monday start, week 1 holds the first Thursday),
  labelled with the ISO week-based year.
- ``us``: Sunday start, week 1 is the week holding January 1st, labelled with
  the calendar year.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from quizstore.core.config import get_settings
from quizstore.exceptions import InvalidWeekLabelError
from quizstore.models.domain import QuizStatistic, Theme
from quizstore.models.selection import AllThemes, SpecificTheme

logger = logging.getLogger(__name__)

ISO = "iso"
US = "us"
WEEK_LABEL = re.compile(r"^(\d{4})-KW(\d{1,2})$")


@dataclass(frozen=True)
class AccuracySummary:
    correct: int
    total: int

    @property
    def wrong(self) -> int:
        return self.total - self.correct

    @property
    def accuracy(self) -> float:
        return accuracy(self.correct, self.total)


@dataclass(frozen=True)
class DayCount:
    day: date
    correct: int = 0
    wrong: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.wrong


def accuracy(correct: int, total: int) -> float:
    return 0.0 if total == 0 else 100.0 * correct / total


def local_date(value: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of a timestamp in ``tz`` (system zone when None); naive values are already local."""
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(tz).date()


def resolve_scheme(scheme: Optional[str] = None) -> str:
    return scheme if scheme is not None else get_settings().WEEK_SCHEME


def _us_week_offset(year: int) -> int:
    # days between the Sunday that opens week 1 and January 1st
    return (date(year, 1, 1).weekday() + 1) % 7


def week_of(day: date, scheme: Optional[str] = None) -> Tuple[int, int]:
    """(year, week) of a day under ``scheme``."""
    scheme = resolve_scheme(scheme)
    if scheme == ISO:
        iso = day.isocalendar()
        return iso[0], iso[1]
    if scheme == US:
        return day.year, (day.timetuple().tm_yday - 1 + _us_week_offset(day.year)) // 7 + 1
    raise ValueError(f"Unknown week scheme: {scheme!r}")


def week_label(year: int, week: int) -> str:
    return f"{year}-KW{week}"


def parse_week_label(label: str) -> Tuple[int, int]:
    match = WEEK_LABEL.match(label.strip()) if label else None
    if not match:
        raise InvalidWeekLabelError(f"Not a week label: {label!r}")
    return int(match.group(1)), int(match.group(2))


def first_day_of_week(year: int, week: int, scheme: Optional[str] = None) -> date:
    scheme = resolve_scheme(scheme)
    if scheme == ISO:
        try:
            return date.fromisocalendar(year, week, 1)
        except ValueError:
            raise InvalidWeekLabelError(f"Year {year} has no ISO week {week}") from None
    if scheme == US:
        if not 1 <= week <= week_of(date(year, 12, 31), US)[1]:
            raise InvalidWeekLabelError(f"Year {year} has no week {week}")
        return date(year, 1, 1) - timedelta(days=_us_week_offset(year)) + timedelta(weeks=week - 1)
    raise ValueError(f"Unknown week scheme: {scheme!r}")


def summarize(stats: Iterable[QuizStatistic]) -> AccuracySummary:
    correct = total = 0
    for stat in stats:
        total += 1
        if stat.correct:
            correct += 1
    return AccuracySummary(correct=correct, total=total)


def _accuracy_by(groups: Dict[str, List[QuizStatistic]]) -> Dict[str, float]:
    return {label: summarize(items).accuracy for label, items in groups.items()}


def group_by_day(stats: Iterable[QuizStatistic], tz: Optional[tzinfo] = None) -> Dict[str, List[QuizStatistic]]:
    grouped: Dict[str, List[QuizStatistic]] = {}
    for stat in stats:
        grouped.setdefault(local_date(stat.date, tz).isoformat(), []).append(stat)
    return grouped


def group_by_week(stats: Iterable[QuizStatistic], scheme: Optional[str] = None,
                  tz: Optional[tzinfo] = None) -> Dict[str, List[QuizStatistic]]:
    scheme = resolve_scheme(scheme)
    grouped: Dict[str, List[QuizStatistic]] = {}
    for stat in stats:
        label = week_label(*week_of(local_date(stat.date, tz), scheme))
        grouped.setdefault(label, []).append(stat)
    return grouped


def calculate_daily_accuracy(stats: Iterable[QuizStatistic], tz: Optional[tzinfo] = None) -> Dict[str, float]:
    """Accuracy per ``YYYY-MM-DD`` day, in first-seen order."""
    return _accuracy_by(group_by_day(stats, tz))


def calculate_weekly_accuracy(stats: Iterable[QuizStatistic], scheme: Optional[str] = None,
                              tz: Optional[tzinfo] = None) -> Dict[str, float]:
    """Accuracy per ``<year>-KW<week>`` bucket, in first-seen order."""
    return _accuracy_by(group_by_week(stats, scheme, tz))


def calculate_theme_accuracy(themes: Union[Sequence[Theme], AllThemes, SpecificTheme], data_manager) -> Dict[str, float]:
    """
    Accuracy per theme title over the statistics of all the theme's questions.

    ``themes`` may also be a selection; ``AllThemes`` expands to every stored
    theme. Themes without statistics report 0.0.
    """
    if isinstance(themes, AllThemes):
        themes = data_manager.get_all_themes()
    elif isinstance(themes, SpecificTheme):
        themes = [themes.theme]

    result: Dict[str, float] = {}
    for theme in themes:
        correct = total = 0
        for question in data_manager.find_questions_by_theme(theme):
            summary = summarize(data_manager.find_statistics_by_question_id(question.id))
            correct += summary.correct
            total += summary.total
        result[theme.title] = accuracy(correct, total)
    logger.debug("Computed accuracy for %d themes", len(result))
    return result


def week_day_breakdown(label: str, stats: Iterable[QuizStatistic], scheme: Optional[str] = None,
                       tz: Optional[tzinfo] = None) -> List[DayCount]:
    """
    Correct and wrong counts for each of the seven days of one week.

    Only records that ``group_by_week`` files under ``label`` are counted. In
    the ``us`` scheme the last week of a year and week 1 of the next share
    days; those days stay empty in the week their records do not belong to.
    """
    scheme = resolve_scheme(scheme)
    wanted = parse_week_label(label)
    start = first_day_of_week(*wanted, scheme=scheme)
    counts = {start + timedelta(days=i): [0, 0] for i in range(7)}
    for stat in stats:
        day = local_date(stat.date, tz)
        if week_of(day, scheme) != wanted:
            continue
        counts[day][0 if stat.correct else 1] += 1
    return [DayCount(day=d, correct=c, wrong=w) for d, (c, w) in counts.items()]
