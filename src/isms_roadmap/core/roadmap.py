"""Initial roadmap generation from a scored questionnaire."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..models.common import CATEGORIES, Category, utc_now
from ..models.questionnaire import NonConformity, Questionnaire, ScoredQuestionnaire
from ..models.roadmap import (
    ComplianceRequirement,
    CostLevel,
    Effort,
    Milestone,
    MilestoneStatus,
    Priority,
    PriorityArea,
    RiskEntry,
    RiskLevel,
    Roadmap,
    RoadmapParams,
    Task,
)
from .errors import ValidationError
from .progress import refresh

logger = logging.getLogger("isms_roadmap.roadmap")

TARGET_IMPROVEMENT = 20
LOW_SCORE_THRESHOLD = 60
HIGH_PRIORITY_THRESHOLD = 40

STANDARD_RISKS: list[dict] = [
    {
        "risk": "Resource constraints affecting implementation timeline",
        "probability": RiskLevel.MEDIUM,
        "impact": RiskLevel.HIGH,
        "mitigation": "Secure necessary resources and budget approval early in the process",
    },
    {
        "risk": "Staff resistance to new security processes",
        "probability": RiskLevel.MEDIUM,
        "impact": RiskLevel.MEDIUM,
        "mitigation": "Provide comprehensive training and change management support",
    },
    {
        "risk": "External dependencies delaying progress",
        "probability": RiskLevel.LOW,
        "impact": RiskLevel.MEDIUM,
        "mitigation": "Establish clear timelines and regular communication with external parties",
    },
]

# (days from generation, requirement, notes)
STANDARD_REQUIREMENTS: list[tuple[int, str, str]] = [
    (180, "Implement basic security controls", "Focus on essential controls first"),
    (270, "Establish monitoring and review processes", "Implement regular review cycles"),
    (365, "Achieve target maturity level", "Final milestone for initial implementation"),
]


def build_priority_areas(category_scores: dict[Category, int]) -> list[PriorityArea]:
    areas = []
    for category in CATEGORIES:
        current = int(category_scores.get(category, 0))
        target = min(100, current + TARGET_IMPROVEMENT)
        areas.append(PriorityArea(
            category=category,
            current_score=current,
            target_score=target,
            improvement_needed=target - current,
        ))
    return areas


def _non_conformity_category(nc: NonConformity, questionnaire: ScoredQuestionnaire) -> Category:
    match = next(
        (r for r in questionnaire.responses if r.question_text == nc.question and r.clause == nc.clause),
        None,
    ) or next((r for r in questionnaire.responses if r.clause == nc.clause), None)
    return match.category if match else Category.PLAN


def build_initial_tasks(questionnaire: ScoredQuestionnaire) -> list[Task]:
    tasks: list[Task] = []

    for nc in questionnaire.major_non_conformities:
        tasks.append(Task(
            title=f"Resolve: {nc.question}"[:200],
            description=f"Address the non-conformity identified in {nc.clause}. {nc.impact}"[:1000],
            category=_non_conformity_category(nc, questionnaire),
            priority=Priority.CRITICAL,
            estimated_effort=Effort.WEEKS_1_2,
            cost=CostLevel.MEDIUM,
        ))

    for category in CATEGORIES:
        score = int(questionnaire.category_scores.get(category, 0))
        if score >= LOW_SCORE_THRESHOLD:
            continue
        tasks.append(Task(
            title=f"Improve {category.value} Category Score",
            description=(
                f"Current score: {score}%. Focus on implementing controls and "
                f"processes to improve this category."
            ),
            category=category,
            priority=Priority.HIGH if score < HIGH_PRIORITY_THRESHOLD else Priority.MEDIUM,
            estimated_effort=Effort.WEEKS_2_4,
            cost=CostLevel.MEDIUM,
        ))

    return tasks


def build_initial_milestones(target_level: str, now: datetime) -> list[Milestone]:
    return [
        Milestone(
            title="Initial Assessment Complete",
            description="Questionnaire completed and initial roadmap created",
            target_date=now + timedelta(days=30),
            status=MilestoneStatus.COMPLETED,
        ),
        Milestone(
            title="Critical Issues Resolved",
            description="All major non-conformities addressed",
            target_date=now + timedelta(days=90),
        ),
        Milestone(
            title="Target Maturity Level Achieved",
            description=f"Reach {target_level} maturity level",
            target_date=now + timedelta(days=365),
        ),
    ]


def build_compliance_requirements(now: datetime) -> list[ComplianceRequirement]:
    return [
        ComplianceRequirement(requirement=req, deadline=now + timedelta(days=days), notes=notes)
        for days, req, notes in STANDARD_REQUIREMENTS
    ]


def parse_params(params: Union[RoadmapParams, dict]) -> RoadmapParams:
    if isinstance(params, RoadmapParams):
        return params
    try:
        return RoadmapParams.model_validate(params)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "roadmap parameters") from None


def generate_roadmap(
    questionnaire: ScoredQuestionnaire,
    params: Union[RoadmapParams, dict],
    now: Optional[datetime] = None,
    user_id: Optional[str] = None,
    questionnaire_id: Optional[str] = None,
) -> Roadmap:
    """Build the roadmap skeleton for a scored questionnaire.

    Ownership is checked by the caller. When ``questionnaire`` is a stored
    Questionnaire, the owner and id default to its own.
    """
    params = parse_params(params)
    now = now or utc_now()

    if isinstance(questionnaire, Questionnaire):
        user_id = user_id or questionnaire.user_id
        questionnaire_id = questionnaire_id or questionnaire.id
    if not user_id or not questionnaire_id:
        raise ValidationError("A roadmap needs an owner and a source questionnaire")

    target = params.target_maturity_level.value
    roadmap = Roadmap(
        user_id=user_id,
        questionnaire_id=questionnaire_id,
        title=params.title,
        description=params.description or f"Personalized roadmap to achieve {target} maturity level",
        current_maturity_level=questionnaire.maturity_level.level,
        target_maturity_level=params.target_maturity_level,
        estimated_timeline=params.estimated_timeline,
        total_estimated_cost=params.total_estimated_cost,
        priority_areas=build_priority_areas(questionnaire.category_scores),
        tasks=build_initial_tasks(questionnaire),
        milestones=build_initial_milestones(target, now),
        risk_assessment=[RiskEntry(**risk) for risk in STANDARD_RISKS],
        compliance_requirements=build_compliance_requirements(now),
        last_updated=now,
        created_at=now,
        updated_at=now,
    )
    refresh(roadmap)

    logger.info(
        "Generated roadmap %s: %d tasks, %d milestones (%s -> %s)",
        roadmap.id,
        len(roadmap.tasks),
        len(roadmap.milestones),
        roadmap.current_maturity_level.value,
        target,
    )
    return roadmap
