"""Roadmap data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from .common import CATEGORIES, Category, RecordModel, Tier, new_id, utc_now


class TargetTier(str, Enum):
    BASIQUE = "Basique"
    INTERMEDIAIRE = "Intermédiaire"
    AVANCE = "Avancé"
    EXCELLENCE = "Excellence"


class Timeline(str, Enum):
    SHORT = "3-6 months"
    MEDIUM = "6-12 months"
    LONG = "1-2 years"
    EXTENDED = "2+ years"


class CostLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


class Priority(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Effort(str, Enum):
    DAYS_1_2 = "1-2 days"
    DAYS_3_5 = "3-5 days"
    WEEKS_1_2 = "1-2 weeks"
    WEEKS_2_4 = "2-4 weeks"
    MONTHS_1_3 = "1-3 months"


class TaskStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class MilestoneStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    DELAYED = "Delayed"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RequirementStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    AT_RISK = "At Risk"


class RoadmapStatus(str, Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    ARCHIVED = "Archived"


class Attachment(RecordModel):
    filename: str
    url: str
    uploaded_at: datetime = Field(default_factory=utc_now)


class Task(RecordModel):
    id: str = Field(default_factory=new_id)
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=1000)
    category: Category
    priority: Priority
    estimated_effort: Effort
    dependencies: list[str] = []
    resources: list[str] = []
    cost: CostLevel
    status: TaskStatus = TaskStatus.NOT_STARTED
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    notes: str = Field(default="", max_length=500)
    attachments: list[Attachment] = []

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class TaskInput(RecordModel):
    """Client-supplied task fields; stricter than a stored Task."""

    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=1000)
    category: Category
    priority: Priority
    estimated_effort: Effort
    cost: CostLevel
    dependencies: list[str] = []
    resources: list[str] = []
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    notes: str = Field(default="", max_length=500)
    attachments: list[Attachment] = []

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class Milestone(RecordModel):
    id: str = Field(default_factory=new_id)
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=500)
    target_date: datetime
    status: MilestoneStatus = MilestoneStatus.PENDING
    task_ids: list[str] = []
    completion_percentage: int = Field(default=0, ge=0, le=100)


class PriorityArea(RecordModel):
    category: Category
    current_score: int = Field(ge=0, le=100)
    target_score: int = Field(ge=0, le=100)
    improvement_needed: int = Field(ge=0, le=100)


class RiskEntry(RecordModel):
    risk: str
    probability: RiskLevel
    impact: RiskLevel
    mitigation: str


class ComplianceRequirement(RecordModel):
    requirement: str
    deadline: Optional[datetime] = None
    status: RequirementStatus = RequirementStatus.NOT_STARTED
    notes: str = ""


def _zero_by_category() -> dict[Category, int]:
    return {c: 0 for c in CATEGORIES}


class Progress(RecordModel):
    overall: int = Field(default=0, ge=0, le=100)
    by_category: dict[Category, int] = Field(default_factory=_zero_by_category)


class RoadmapParams(RecordModel):
    """Caller-chosen settings for a generated roadmap."""

    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    target_maturity_level: TargetTier
    estimated_timeline: Timeline
    total_estimated_cost: CostLevel

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return value.strip()


class Roadmap(RecordModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    questionnaire_id: str
    title: str = Field(max_length=200)
    description: str = Field(max_length=1000)
    current_maturity_level: Tier
    target_maturity_level: TargetTier
    estimated_timeline: Timeline
    total_estimated_cost: CostLevel
    milestones: list[Milestone] = []
    tasks: list[Task] = []
    priority_areas: list[PriorityArea] = []
    risk_assessment: list[RiskEntry] = []
    compliance_requirements: list[ComplianceRequirement] = []
    progress: Progress = Field(default_factory=Progress)
    status: RoadmapStatus = RoadmapStatus.DRAFT
    tags: list[str] = []
    version: str = "1.0.0"
    last_updated: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    revision: int = 0

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)


class ProgressReport(RecordModel):
    """Status breakdown of a roadmap."""

    overall: int
    by_category: dict[Category, int]
    task_progress: dict[str, int]
    milestone_progress: dict[str, int]
    priority_areas: list[PriorityArea] = []
