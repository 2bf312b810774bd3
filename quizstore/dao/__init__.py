from quizstore.dao.base import AnswerDAO, QuestionDAO, StatisticDAO, ThemeDAO
from quizstore.dao.sql import SqlAnswerDAO, SqlQuestionDAO, SqlStatisticDAO, SqlThemeDAO
