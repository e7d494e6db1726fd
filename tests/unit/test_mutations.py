"""Tests for core/mutations.py."""

from __future__ import annotations

from datetime import timedelta

import pytest

from isms_roadmap.core.errors import TaskNotFound, ValidationError
from isms_roadmap.core.mutations import (
    add_milestone,
    add_task,
    remove_task,
    update_roadmap,
    update_task_status,
)
from isms_roadmap.models.roadmap import RoadmapStatus, TaskStatus, Timeline


@pytest.fixture
def task_data() -> dict:
    return {
        "title": "Write access control policy",
        "description": "Draft and approve the access control policy (A.5.15).",
        "category": "Do",
        "priority": "High",
        "estimated_effort": "1-2 weeks",
        "cost": "Low",
    }


class TestAddTask:
    def test_appends_and_recomputes(self, roadmap, task_data, now):
        later = now + timedelta(days=1)
        task = add_task(roadmap, task_data, now=later)
        assert roadmap.tasks[-1] is task
        assert task.status == TaskStatus.NOT_STARTED
        assert len(roadmap.tasks) == 6
        assert roadmap.progress.overall == 0
        assert roadmap.last_updated == later

    def test_progress_scenario(self, roadmap, task_data):
        roadmap.tasks = roadmap.tasks[:3]
        update_task_status(roadmap, roadmap.tasks[0].id, "Completed")
        assert roadmap.progress.overall == 33

        task = add_task(roadmap, task_data)
        assert roadmap.progress.overall == 25

        update_task_status(roadmap, task.id, TaskStatus.COMPLETED)
        assert roadmap.progress.overall == 50

    def test_short_title_rejected(self, roadmap, task_data):
        task_data["title"] = "ab"
        with pytest.raises(ValidationError):
            add_task(roadmap, task_data)
        assert len(roadmap.tasks) == 5

    def test_short_description_rejected(self, roadmap, task_data):
        task_data["description"] = "too short"
        with pytest.raises(ValidationError):
            add_task(roadmap, task_data)

    def test_unknown_dependency(self, roadmap, task_data):
        task_data["dependencies"] = ["missing"]
        with pytest.raises(TaskNotFound):
            add_task(roadmap, task_data)
        assert len(roadmap.tasks) == 5

    def test_known_dependency(self, roadmap, task_data):
        task_data["dependencies"] = [roadmap.tasks[0].id]
        task = add_task(roadmap, task_data)
        assert task.dependencies == [roadmap.tasks[0].id]


class TestUpdateTaskStatus:
    def test_completed_stamps_date(self, roadmap, now):
        task = roadmap.tasks[0]
        update_task_status(roadmap, task.id, "Completed", now=now)
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_date == now
        assert roadmap.progress.overall == 20

    def test_recompleting_refreshes_date(self, roadmap, now):
        task = roadmap.tasks[0]
        later = now + timedelta(days=3)
        update_task_status(roadmap, task.id, "Completed", now=now)
        update_task_status(roadmap, task.id, "Completed", now=later)
        assert task.completed_date == later
        assert roadmap.last_updated == later

    def test_unknown_task_leaves_roadmap_untouched(self, roadmap):
        before = roadmap.model_dump()
        with pytest.raises(TaskNotFound) as exc:
            update_task_status(roadmap, "nope", "Completed")
        assert exc.value.task_id == "nope"
        assert roadmap.model_dump() == before

    def test_invalid_status(self, roadmap):
        with pytest.raises(ValidationError):
            update_task_status(roadmap, roadmap.tasks[0].id, "Done")
        assert roadmap.tasks[0].status == TaskStatus.NOT_STARTED

    def test_reopening_recomputes(self, roadmap):
        task = roadmap.tasks[0]
        update_task_status(roadmap, task.id, "Completed")
        update_task_status(roadmap, task.id, "In Progress")
        assert roadmap.progress.overall == 0


class TestRemoveTask:
    def test_strips_references(self, roadmap, task_data, now):
        target = roadmap.tasks[0]
        task_data["dependencies"] = [target.id]
        dependent = add_task(roadmap, task_data)
        add_milestone(roadmap, {
            "title": "Critical fixed",
            "description": "All critical tasks done",
            "target_date": now,
            "task_ids": [target.id, roadmap.tasks[1].id],
        })

        removed = remove_task(roadmap, target.id)
        assert removed is target
        assert roadmap.find_task(target.id) is None
        assert dependent.dependencies == []
        assert roadmap.milestones[-1].task_ids == [roadmap.tasks[0].id]

    def test_unknown(self, roadmap):
        with pytest.raises(TaskNotFound):
            remove_task(roadmap, "missing")


class TestAddMilestone:
    def test_linked_progress(self, roadmap, now):
        first = roadmap.tasks[0]
        update_task_status(roadmap, first.id, "Completed")
        milestone = add_milestone(roadmap, {
            "title": "First fix",
            "description": "One task",
            "target_date": now + timedelta(days=10),
            "task_ids": [first.id],
        })
        assert milestone.completion_percentage == 100
        assert len(roadmap.milestones) == 4

    def test_unknown_task_id(self, roadmap, now):
        with pytest.raises(TaskNotFound):
            add_milestone(roadmap, {
                "title": "Bad link",
                "description": "Links nothing real",
                "target_date": now,
                "task_ids": ["ghost"],
            })
        assert len(roadmap.milestones) == 3

    def test_missing_target_date(self, roadmap):
        with pytest.raises(ValidationError):
            add_milestone(roadmap, {"title": "No date", "description": "Missing date"})


class TestUpdateRoadmap:
    def test_metadata(self, roadmap, now):
        update_roadmap(roadmap, {"title": "  New title  ", "status": "Active", "estimated_timeline": "1-2 years"}, now=now)
        assert roadmap.title == "New title"
        assert roadmap.status == RoadmapStatus.ACTIVE
        assert roadmap.estimated_timeline == Timeline.LONG

    def test_progress_not_settable(self, roadmap):
        with pytest.raises(ValidationError):
            update_roadmap(roadmap, {"progress": {"overall": 100}})
        assert roadmap.progress.overall == 0

    def test_invalid_values_apply_nothing(self, roadmap):
        title = roadmap.title
        with pytest.raises(ValidationError) as exc:
            update_roadmap(roadmap, {"title": "ok title", "status": "Paused", "description": "x" * 1001})
        assert len(exc.value.details) == 2
        assert roadmap.title == title

    def test_none_values_ignored(self, roadmap):
        description = roadmap.description
        update_roadmap(roadmap, {"description": None})
        assert roadmap.description == description
