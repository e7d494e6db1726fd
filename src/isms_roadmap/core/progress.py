"""Roadmap progress derived from its tasks."""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from ..models.common import CATEGORIES
from ..models.roadmap import (
    MilestoneStatus,
    Progress,
    ProgressReport,
    Roadmap,
    Task,
    TaskStatus,
)
from .scoring import percent


def recompute_progress(tasks: Sequence[Task]) -> Progress:
    """Completed-task percentages, overall and per PDCA category."""
    done = [t for t in tasks if t.status == TaskStatus.COMPLETED]
    by_category = {}
    for category in CATEGORIES:
        total = sum(1 for t in tasks if t.category == category)
        completed = sum(1 for t in done if t.category == category)
        by_category[category] = int(percent(completed, total))
    return Progress(
        overall=int(percent(len(done), len(tasks))),
        by_category=by_category,
    )


def recompute_milestones(roadmap: Roadmap) -> None:
    """Derive completion_percentage for milestones that link tasks.

    Milestones without linked tasks keep their manually set value.
    """
    status_by_id = {t.id: t.status for t in roadmap.tasks}
    for milestone in roadmap.milestones:
        linked = [status_by_id[tid] for tid in milestone.task_ids if tid in status_by_id]
        if not linked:
            continue
        completed = sum(1 for s in linked if s == TaskStatus.COMPLETED)
        milestone.completion_percentage = int(percent(completed, len(linked)))


def refresh(roadmap: Roadmap) -> None:
    """Overwrite every task-derived field on the roadmap."""
    roadmap.progress = recompute_progress(roadmap.tasks)
    recompute_milestones(roadmap)


def progress_report(roadmap: Roadmap) -> ProgressReport:
    """Status breakdown for display: task and milestone counts per status."""
    task_counts = Counter(t.status for t in roadmap.tasks)
    milestone_counts = Counter(m.status for m in roadmap.milestones)
    progress = recompute_progress(roadmap.tasks)
    return ProgressReport(
        overall=progress.overall,
        by_category=progress.by_category,
        task_progress={
            "total": len(roadmap.tasks),
            "completed": task_counts[TaskStatus.COMPLETED],
            "inProgress": task_counts[TaskStatus.IN_PROGRESS],
            "notStarted": task_counts[TaskStatus.NOT_STARTED],
            "onHold": task_counts[TaskStatus.ON_HOLD],
        },
        milestone_progress={
            "total": len(roadmap.milestones),
            "completed": milestone_counts[MilestoneStatus.COMPLETED],
            "inProgress": milestone_counts[MilestoneStatus.IN_PROGRESS],
            "pending": milestone_counts[MilestoneStatus.PENDING],
            "delayed": milestone_counts[MilestoneStatus.DELAYED],
        },
        priority_areas=list(roadmap.priority_areas),
    )
