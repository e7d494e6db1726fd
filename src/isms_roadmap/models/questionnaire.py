"""Questionnaire data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from .common import Category, RecordModel, Tier, new_id, utc_now


class Answer(str, Enum):
    OUI = "Oui"
    NON = "Non"
    PARTIELLEMENT = "Partiellement"


class QuestionnaireStatus(str, Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class QuestionResponseInput(RecordModel):
    """A raw answer as submitted, before scoring.

    ``weight`` and ``response`` are kept loose here; the scoring engine
    validates them and raises its own errors.
    """

    question_id: str = Field(min_length=1)
    question_text: str = Field(min_length=1)
    category: Category
    clause: str = Field(min_length=1)
    weight: Any = None
    critical: bool = False
    response: Any = None


class QuestionResponse(RecordModel):
    question_id: str
    question_text: str
    category: Category
    clause: str
    weight: float = Field(gt=0)
    critical: bool = False
    response: Optional[Answer] = None
    score: float = Field(ge=0)


class MaturityLevel(RecordModel):
    level: Tier
    color: str
    description: str


class NonConformity(RecordModel):
    question: str
    clause: str
    impact: str


def _empty_category_scores() -> dict[Category, int]:
    return {c: 0 for c in Category}


class ScoredQuestionnaire(RecordModel):
    """Everything the scoring engine derives from one response set."""

    responses: list[QuestionResponse] = []
    overall_score: float = Field(default=0.0, ge=0, le=100)
    category_scores: dict[Category, int] = Field(default_factory=_empty_category_scores)
    maturity_level: MaturityLevel
    major_non_conformities: list[NonConformity] = []
    total_questions: int = 0
    answered_questions: int = 0


class Questionnaire(ScoredQuestionnaire):
    id: str = Field(default_factory=new_id)
    user_id: str
    completion_time: float = Field(default=0, ge=0)
    status: QuestionnaireStatus = QuestionnaireStatus.COMPLETED
    notes: str = Field(default="", max_length=1000)
    tags: list[str] = []
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    revision: int = 0

    @field_validator("tags")
    @classmethod
    def _strip_tags(cls, tags: list[str]) -> list[str]:
        return [t.strip() for t in tags if t and t.strip()]

    @property
    def completion_percentage(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.answered_questions / self.total_questions * 100

    @property
    def has_critical_issues(self) -> bool:
        return len(self.major_non_conformities) > 0
