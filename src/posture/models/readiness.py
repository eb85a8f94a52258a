"""Regulation readiness questionnaire models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

NOT_ANSWERED = "Not Answered"


class QuestionVerdict(BaseModel):
    question_id: str
    text: str = ""
    compliant: bool
    answer: str
    guidance: Optional[str] = None

    @property
    def answered(self) -> bool:
        return self.answer != NOT_ANSWERED


class ReadinessResult(BaseModel):
    regulation_id: str
    regulation_name: str = ""
    score: int = 0
    answered: int = 0
    total_questions: int = 0
    per_question: list[QuestionVerdict] = []
