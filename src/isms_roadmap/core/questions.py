"""Question bank and answers file loading."""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..models.common import Category
from .config import workspace_dir
from .errors import ValidationError

logger = logging.getLogger("isms_roadmap.questions")


class Question(BaseModel):
    id: str
    text: str
    category: Category
    clause: str
    weight: float = Field(gt=0)
    critical: bool = False


class QuestionBank(BaseModel):
    id: str
    name: str = ""
    version: str = ""
    questions: list[Question] = []


class AnswerSheet(BaseModel):
    answers: dict[str, Any] = {}
    completion_time: float = 0
    notes: str = ""
    tags: list[str] = []


def _parse_bank(content: str, source: str) -> QuestionBank:
    try:
        data = yaml.safe_load(content) or {}
        return QuestionBank.model_validate(data)
    except yaml.YAMLError as e:
        raise ValidationError(f"Unreadable question bank {source}", [str(e)]) from None
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, f"question bank {source}") from None


def load_question_bank(project_path: Optional[Path] = None, bank_id: str = "iso27001") -> QuestionBank:
    """Load the question bank.

    Checks the workspace override first, then falls back to bundled data.
    """
    if project_path:
        override = workspace_dir(project_path) / "questions.yaml"
        if override.exists():
            logger.debug("Using workspace question bank %s", override)
            return _parse_bank(override.read_text(encoding="utf-8-sig"), str(override))

    data_pkg = resources.files("isms_roadmap.data")
    bank_file = data_pkg / f"{bank_id}.yaml"
    if not bank_file.is_file():
        raise ValidationError(f"Unknown question bank: {bank_id}")
    return _parse_bank(bank_file.read_text(encoding="utf-8"), bank_id)


def build_responses(bank: QuestionBank, answers: dict[str, Any]) -> list[dict]:
    """Join answers (question id -> Oui/Non/Partiellement) onto the bank.

    Questions without an answer are kept as unanswered.
    """
    known = {q.id for q in bank.questions}
    unknown = sorted(set(answers) - known)
    if unknown:
        raise ValidationError("Answers reference unknown questions", unknown)

    return [
        {
            "question_id": q.id,
            "question_text": q.text,
            "category": q.category,
            "clause": q.clause,
            "weight": q.weight,
            "critical": q.critical,
            "response": answers.get(q.id),
        }
        for q in bank.questions
    ]


def load_answers_file(path: Path) -> AnswerSheet:
    """Read an answers file (YAML or JSON)."""
    content = path.read_text(encoding="utf-8-sig")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError(f"Unreadable answers file {path.name}", [str(e)]) from None

    data = data or {}
    if isinstance(data, dict) and "answers" not in data:
        data = {"answers": data}
    try:
        return AnswerSheet.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, f"answers file {path.name}") from None
