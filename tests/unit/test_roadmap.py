"""Tests for core/roadmap.py."""

from __future__ import annotations

from datetime import timedelta

import pytest

from isms_roadmap.core.errors import ValidationError
from isms_roadmap.core.roadmap import (
    build_initial_tasks,
    build_priority_areas,
    generate_roadmap,
)
from isms_roadmap.core.scoring import score_responses
from isms_roadmap.models.common import Category, Tier
from isms_roadmap.models.roadmap import (
    MilestoneStatus,
    Priority,
    RequirementStatus,
    RoadmapStatus,
    TaskStatus,
)


class TestPriorityAreas:
    def test_one_area_per_category(self, questionnaire):
        areas = build_priority_areas(questionnaire.category_scores)
        assert [a.category for a in areas] == [Category.PLAN, Category.DO, Category.CHECK, Category.ACT]
        assert [(a.current_score, a.target_score) for a in areas] == [(50, 70), (75, 95), (25, 45), (25, 45)]
        assert all(a.improvement_needed == 20 for a in areas)

    def test_target_capped_at_100(self):
        areas = build_priority_areas({Category.PLAN: 90, Category.DO: 100})
        plan, do = areas[0], areas[1]
        assert plan.target_score == 100
        assert plan.improvement_needed == 10
        assert do.target_score == 100
        assert do.improvement_needed == 0

    def test_missing_category_defaults_to_zero(self):
        areas = build_priority_areas({})
        assert all(a.current_score == 0 and a.target_score == 20 for a in areas)


class TestInitialTasks:
    def test_sample_tasks(self, questionnaire):
        tasks = build_initial_tasks(questionnaire)
        assert len(tasks) == 5
        assert [t.priority for t in tasks] == [
            Priority.CRITICAL,
            Priority.CRITICAL,
            Priority.MEDIUM,
            Priority.HIGH,
            Priority.HIGH,
        ]
        assert tasks[0].title == "Resolve: Question 1?"
        assert tasks[0].category == Category.PLAN
        assert tasks[1].category == Category.ACT
        assert [t.title for t in tasks[2:]] == [
            "Improve Plan Category Score",
            "Improve Check Category Score",
            "Improve Act Category Score",
        ]
        assert all(t.status == TaskStatus.NOT_STARTED for t in tasks)

    def test_no_tasks_for_healthy_assessment(self, make_resp):
        scored = score_responses([make_resp(str(i), c, 5, "Oui") for i, c in enumerate(["Plan", "Do", "Check", "Act"])])
        assert build_initial_tasks(scored) == []

    def test_boundary_scores(self, make_resp):
        scored = score_responses([
            make_resp("1", "Plan", 10, "Oui"),
            make_resp("2", "Plan", 10, "Partiellement"),
            make_resp("3", "Plan", 10, "Partiellement"),
            make_resp("4", "Plan", 10, "Non"),
            make_resp("5", "Plan", 10, "Oui"),
            make_resp("6", "Do", 3, "Oui"),
            make_resp("7", "Do", 2, "Non"),
            make_resp("8", "Check", 1, "Oui"),
            make_resp("9", "Act", 1, "Oui"),
        ])
        # Plan 60 is not low, Do 60 is not low either
        assert scored.category_scores[Category.PLAN] == 60
        assert scored.category_scores[Category.DO] == 60
        assert build_initial_tasks(scored) == []

    def test_score_of_40_is_medium(self, make_resp):
        scored = score_responses([
            make_resp("1", "Check", 2, "Oui"),
            make_resp("2", "Check", 3, "Non"),
            make_resp("3", "Plan", 1, "Oui"),
            make_resp("4", "Do", 1, "Oui"),
            make_resp("5", "Act", 1, "Oui"),
        ])
        (task,) = build_initial_tasks(scored)
        assert task.category == Category.CHECK
        assert task.priority == Priority.MEDIUM


class TestGenerateRoadmap:
    def test_defaults_from_questionnaire(self, roadmap, questionnaire):
        assert roadmap.user_id == questionnaire.user_id
        assert roadmap.questionnaire_id == questionnaire.id
        assert roadmap.current_maturity_level == Tier.BASIQUE
        assert roadmap.status == RoadmapStatus.DRAFT
        assert roadmap.description == "Personalized roadmap to achieve Avancé maturity level"

    def test_milestones(self, roadmap, now):
        titles = [m.title for m in roadmap.milestones]
        assert titles == [
            "Initial Assessment Complete",
            "Critical Issues Resolved",
            "Target Maturity Level Achieved",
        ]
        assert [m.target_date - now for m in roadmap.milestones] == [
            timedelta(days=30),
            timedelta(days=90),
            timedelta(days=365),
        ]
        assert roadmap.milestones[0].status == MilestoneStatus.COMPLETED
        assert roadmap.milestones[2].description == "Reach Avancé maturity level"

    def test_risks_and_compliance(self, roadmap, now):
        assert len(roadmap.risk_assessment) == 3
        deadlines = [r.deadline - now for r in roadmap.compliance_requirements]
        assert deadlines == [timedelta(days=180), timedelta(days=270), timedelta(days=365)]
        assert all(r.status == RequirementStatus.NOT_STARTED for r in roadmap.compliance_requirements)

    def test_initial_progress_is_zero(self, roadmap):
        assert roadmap.progress.overall == 0
        assert set(roadmap.progress.by_category.values()) == {0}

    def test_timestamps_use_clock(self, roadmap, now):
        assert roadmap.created_at == now
        assert roadmap.last_updated == now

    def test_custom_description(self, questionnaire, roadmap_params, now):
        roadmap_params["description"] = "Board mandate for 2025"
        roadmap = generate_roadmap(questionnaire, roadmap_params, now=now)
        assert roadmap.description == "Board mandate for 2025"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("title", "ab"),
            ("title", "x" * 201),
            ("target_maturity_level", "Critique"),
            ("estimated_timeline", "next week"),
            ("total_estimated_cost", "Free"),
        ],
    )
    def test_invalid_params(self, questionnaire, roadmap_params, field, value):
        roadmap_params[field] = value
        with pytest.raises(ValidationError):
            generate_roadmap(questionnaire, roadmap_params)

    def test_scored_only_input_needs_owner(self, sample_responses, roadmap_params):
        scored = score_responses(sample_responses)
        with pytest.raises(ValidationError):
            generate_roadmap(scored, roadmap_params)
        roadmap = generate_roadmap(scored, roadmap_params, user_id="u", questionnaire_id="q")
        assert roadmap.user_id == "u"
