"""Task, milestone and metadata mutations on a roadmap.

Each operation validates its input, applies the change and then runs the
progress recompute explicitly. Nothing is touched when validation fails.
Persisting the roadmap is the caller's job.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..models.common import utc_now
from ..models.roadmap import (
    CostLevel,
    Milestone,
    Roadmap,
    RoadmapStatus,
    Task,
    TaskInput,
    TaskStatus,
    Timeline,
)
from .errors import TaskNotFound, ValidationError
from .progress import refresh

logger = logging.getLogger("isms_roadmap.mutations")

UPDATABLE_FIELDS = ("title", "description", "status", "estimated_timeline", "total_estimated_cost")


def _touch(roadmap: Roadmap, now: datetime) -> None:
    roadmap.last_updated = now
    roadmap.updated_at = now


def _check_task_refs(roadmap: Roadmap, task_ids: list[str]) -> None:
    known = {t.id for t in roadmap.tasks}
    for task_id in task_ids:
        if task_id not in known:
            raise TaskNotFound(task_id)


def add_task(
    roadmap: Roadmap,
    task_data: Union[TaskInput, dict],
    now: Optional[datetime] = None,
) -> Task:
    """Append a new task built from client input."""
    try:
        data = task_data if isinstance(task_data, TaskInput) else TaskInput.model_validate(task_data)
        task = Task.model_validate(data.model_dump())
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "task") from None
    _check_task_refs(roadmap, task.dependencies)

    roadmap.tasks.append(task)
    refresh(roadmap)
    _touch(roadmap, now or utc_now())
    logger.info("Added task %s to roadmap %s", task.id, roadmap.id)
    return task


def update_task_status(
    roadmap: Roadmap,
    task_id: str,
    status: Union[TaskStatus, str],
    now: Optional[datetime] = None,
) -> None:
    """Change a task's status; completing it stamps completed_date."""
    try:
        new_status = TaskStatus(status)
    except ValueError:
        raise ValidationError(
            f"Invalid task status {status!r}",
            [f"expected one of: {', '.join(s.value for s in TaskStatus)}"],
        ) from None

    task = roadmap.find_task(task_id)
    if task is None:
        raise TaskNotFound(task_id)

    now = now or utc_now()
    task.status = new_status
    if new_status == TaskStatus.COMPLETED:
        task.completed_date = now
    refresh(roadmap)
    _touch(roadmap, now)
    logger.info("Task %s on roadmap %s -> %s", task_id, roadmap.id, new_status.value)


def remove_task(roadmap: Roadmap, task_id: str, now: Optional[datetime] = None) -> Task:
    """Drop a task and every reference to it within the roadmap."""
    task = roadmap.find_task(task_id)
    if task is None:
        raise TaskNotFound(task_id)

    roadmap.tasks = [t for t in roadmap.tasks if t.id != task_id]
    for other in roadmap.tasks:
        if task_id in other.dependencies:
            other.dependencies = [d for d in other.dependencies if d != task_id]
    for milestone in roadmap.milestones:
        if task_id in milestone.task_ids:
            milestone.task_ids = [t for t in milestone.task_ids if t != task_id]
    refresh(roadmap)
    _touch(roadmap, now or utc_now())
    logger.info("Removed task %s from roadmap %s", task_id, roadmap.id)
    return task


def add_milestone(
    roadmap: Roadmap,
    milestone_data: Union[Milestone, dict],
    now: Optional[datetime] = None,
) -> Milestone:
    """Append a milestone; linked task ids must belong to this roadmap."""
    try:
        milestone = Milestone.model_validate(
            milestone_data.model_dump() if isinstance(milestone_data, Milestone) else milestone_data
        )
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, "milestone") from None
    _check_task_refs(roadmap, milestone.task_ids)

    roadmap.milestones.append(milestone)
    refresh(roadmap)
    _touch(roadmap, now or utc_now())
    logger.info("Added milestone %s to roadmap %s", milestone.id, roadmap.id)
    return milestone


def update_roadmap(
    roadmap: Roadmap,
    changes: dict[str, Any],
    now: Optional[datetime] = None,
) -> Roadmap:
    """Update roadmap metadata. Progress is never client-settable."""
    unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError("Fields cannot be updated", [f"{name}: not updatable" for name in unknown])

    converters = {
        "status": RoadmapStatus,
        "estimated_timeline": Timeline,
        "total_estimated_cost": CostLevel,
    }
    values: dict[str, Any] = {}
    errors: list[str] = []
    for name, value in changes.items():
        if value is None:
            continue
        if name in converters:
            try:
                values[name] = converters[name](value)
            except ValueError:
                errors.append(f"{name}: invalid value {value!r}")
            continue
        text = str(value).strip()
        limit = 200 if name == "title" else 1000
        if name == "title" and len(text) < 3:
            errors.append("title: must be between 3 and 200 characters")
        elif len(text) > limit:
            errors.append(f"{name}: cannot exceed {limit} characters")
        else:
            values[name] = text
    if errors:
        raise ValidationError("Invalid roadmap update", errors)

    for name, value in values.items():
        setattr(roadmap, name, value)
    if values:
        roadmap.updated_at = now or utc_now()
    return roadmap
