from datetime import datetime
from typing import List
from pydantic import BaseModel, Field
from quizstore.models.domain import Answer, Question, QuizStatistic, Theme

class AnswerSnapshot(BaseModel):
    id: int = -1
    text: str
    is_correct: bool = False

    @classmethod
    def from_entity(cls, a: Answer) -> "AnswerSnapshot":
        return cls(id=a.id, text=a.text, is_correct=a.is_correct)

class QuestionSnapshot(BaseModel):
    id: int = -1
    title: str
    text: str = ""
    answers: List[AnswerSnapshot] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, q: Question) -> "QuestionSnapshot":
        return cls(id=q.id, title=q.title, text=q.text or "", answers=[AnswerSnapshot.from_entity(a) for a in q.answers])

class ThemeSnapshot(BaseModel):
    id: int = -1
    title: str
    text: str = ""
    questions: List[QuestionSnapshot] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, t: Theme, questions: List[Question]) -> "ThemeSnapshot":
        return cls(id=t.id, title=t.title, text=t.text or "", questions=[QuestionSnapshot.from_entity(q) for q in questions])

class StatisticSnapshot(BaseModel):
    id: int = -1
    question_id: int
    correct: bool
    date: datetime

    @classmethod
    def from_entity(cls, s: QuizStatistic) -> "StatisticSnapshot":
        return cls(id=s.id, question_id=s.question_id, correct=s.correct, date=s.date)
