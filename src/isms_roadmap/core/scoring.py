"""Questionnaire scoring engine.

Turns a sequence of raw answers into per-response scores, an overall score,
PDCA category scores, a maturity tier and the list of major
non-conformities. Every derived field is produced in one pass so they can
never disagree with the response set they came from.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from ..models.common import CATEGORIES, Category, utc_now
from ..models.questionnaire import (
    Answer,
    NonConformity,
    QuestionResponse,
    QuestionResponseInput,
    Questionnaire,
    QuestionnaireStatus,
    ScoredQuestionnaire,
)
from .errors import InvalidResponseValue, InvalidWeight, ValidationError
from .maturity import classify

logger = logging.getLogger("isms_roadmap.scoring")

ANSWER_FACTORS: dict[Answer, float] = {
    Answer.OUI: 1.0,
    Answer.PARTIELLEMENT: 0.5,
    Answer.NON: 0.0,
}

ResponseLike = Union[QuestionResponseInput, QuestionResponse, dict]


def _quantize(value: Decimal, digits: int) -> float:
    return float(value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up (2.5 -> 3, 0.05 -> 0.1 at one digit)."""
    return _quantize(Decimal(str(value)), digits)


def percent(part: float, whole: float, digits: int = 0) -> float:
    """part / whole as a percentage, computed in decimal so exact halves round up."""
    if whole <= 0:
        return 0
    return _quantize(Decimal(str(part)) * 100 / Decimal(str(whole)), digits)


def parse_answer(value: Any) -> Optional[Answer]:
    """Parse a raw answer. ``None`` or blank means unanswered."""
    if value is None:
        return None
    if isinstance(value, Answer):
        return value
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return Answer(value.strip())
        except ValueError:
            pass
    raise InvalidResponseValue(
        f"Invalid response {value!r}",
        [f"expected one of: {', '.join(a.value for a in Answer)}"],
    )


def parse_weight(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidWeight(f"Invalid weight {value!r}", ["weight must be a positive number"])
    try:
        weight = float(value)
    except (TypeError, ValueError):
        raise InvalidWeight(f"Invalid weight {value!r}", ["weight must be a positive number"]) from None
    if not math.isfinite(weight) or weight <= 0:
        raise InvalidWeight(f"Invalid weight {value!r}", ["weight must be a positive number"])
    return weight


def score_response(answer: Optional[Answer], weight: float) -> float:
    """Points earned by a single answer."""
    if answer is None:
        return 0.0
    return weight * ANSWER_FACTORS[answer]


def describe_impact(question_text: str, clause: str, category: Category) -> str:
    return (
        f"Critical requirement of clause {clause} is not met ({category.value} phase): "
        f"\"{question_text}\" was answered negatively. This gap blocks ISMS "
        f"certification and must be treated as a priority."
    )


def _coerce_input(raw: ResponseLike, index: int) -> QuestionResponseInput:
    if isinstance(raw, QuestionResponseInput):
        return raw
    if isinstance(raw, QuestionResponse):
        data = raw.model_dump()
        data["response"] = raw.response.value if raw.response else None
        return QuestionResponseInput.model_validate(data)
    try:
        return QuestionResponseInput.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, f"response #{index + 1}") from None


def score_responses(responses: Sequence[ResponseLike]) -> ScoredQuestionnaire:
    """Score a full response set.

    Raises InvalidResponseValue / InvalidWeight / ValidationError before
    building any output.
    """
    scored: list[QuestionResponse] = []
    for index, raw in enumerate(responses):
        item = _coerce_input(raw, index)
        try:
            answer = parse_answer(item.response)
            weight = parse_weight(item.weight)
        except ValidationError as e:
            e.details.insert(0, f"question {item.question_id}")
            raise
        scored.append(QuestionResponse(
            question_id=item.question_id,
            question_text=item.question_text,
            category=item.category,
            clause=item.clause,
            weight=weight,
            critical=item.critical,
            response=answer,
            score=score_response(answer, weight),
        ))

    total_weight = sum(r.weight for r in scored)
    total_score = sum(r.score for r in scored)
    overall = percent(total_score, total_weight, digits=1)

    cat_scores: dict[Category, float] = defaultdict(float)
    cat_weights: dict[Category, float] = defaultdict(float)
    for r in scored:
        cat_scores[r.category] += r.score
        cat_weights[r.category] += r.weight

    category_scores = {
        c: int(percent(cat_scores[c], cat_weights[c])) for c in CATEGORIES
    }

    non_conformities = [
        NonConformity(
            question=r.question_text,
            clause=r.clause,
            impact=describe_impact(r.question_text, r.clause, r.category),
        )
        for r in scored
        if r.critical and r.response == Answer.NON
    ]

    result = ScoredQuestionnaire(
        responses=scored,
        overall_score=overall,
        category_scores=category_scores,
        maturity_level=classify(overall),
        major_non_conformities=non_conformities,
        total_questions=len(scored),
        answered_questions=sum(1 for r in scored if r.response is not None),
    )
    logger.debug(
        "Scored %d responses: overall=%s tier=%s non_conformities=%d",
        result.total_questions,
        result.overall_score,
        result.maturity_level.level.value,
        len(non_conformities),
    )
    return result


def new_questionnaire(
    user_id: str,
    responses: Sequence[ResponseLike],
    completion_time: float = 0,
    notes: str = "",
    tags: Optional[list[str]] = None,
    status: QuestionnaireStatus = QuestionnaireStatus.COMPLETED,
    now: Optional[datetime] = None,
) -> Questionnaire:
    """Score a submission and wrap it in a new Questionnaire record."""
    scored = score_responses(responses)
    now = now or utc_now()
    try:
        return Questionnaire(
            **dict(scored),
            user_id=user_id,
            completion_time=completion_time or 0,
            notes=notes or "",
            tags=tags or [],
            status=status,
            created_at=now,
            updated_at=now,
        )
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "questionnaire") from None


def update_questionnaire(
    questionnaire: Questionnaire,
    responses: Optional[Sequence[ResponseLike]] = None,
    notes: Optional[str] = None,
    tags: Optional[list[str]] = None,
    status: Optional[Union[QuestionnaireStatus, str]] = None,
    now: Optional[datetime] = None,
) -> Questionnaire:
    """Apply an update in place; re-scores everything when responses change.

    All inputs are validated first, so a failure leaves the record as it was.
    """
    scored = score_responses(responses) if responses is not None else None

    changes: dict[str, Any] = {}
    if notes is not None:
        changes["notes"] = notes
    if tags is not None:
        changes["tags"] = tags
    if status is not None:
        changes["status"] = status
    if changes:
        try:
            validated = Questionnaire.model_validate({**questionnaire.model_dump(), **changes})
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "questionnaire update") from None
        for field in changes:
            setattr(questionnaire, field, getattr(validated, field))

    if scored is not None:
        for field in ScoredQuestionnaire.model_fields:
            setattr(questionnaire, field, getattr(scored, field))

    questionnaire.updated_at = now or utc_now()
    return questionnaire
