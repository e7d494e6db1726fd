"""Markdown reports for assessments and roadmaps."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .. import __version__
from ..models.common import CATEGORIES
from ..models.questionnaire import Questionnaire
from ..models.roadmap import Priority, Roadmap
from .progress import progress_report


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def generate_assessment_report(questionnaire: Questionnaire, organization: str = "") -> str:
    """Render the ISMS maturity assessment for one questionnaire."""
    level = questionnaire.maturity_level
    lines: list[str] = []
    lines.append("# ISMS Maturity Assessment")
    lines.append("")
    if organization:
        lines.append(f"**Organization:** {organization}")
    lines.append(f"**Questionnaire:** {questionnaire.id}")
    lines.append(f"**Date:** {_fmt_date(questionnaire.created_at)}")
    lines.append(f"**Overall score:** {questionnaire.overall_score}/100")
    lines.append(f"**Maturity level:** {level.level.value} ({level.description})")
    lines.append(
        f"**Answered:** {questionnaire.answered_questions}/{questionnaire.total_questions} "
        f"({round(questionnaire.completion_percentage)}%)"
    )
    lines.append("")

    lines.append("## Category Scores")
    lines.append("")
    lines.append("| Category | Score |")
    lines.append("|----------|-------|")
    for category in CATEGORIES:
        lines.append(f"| {category.value} | {questionnaire.category_scores.get(category, 0)} |")
    lines.append("")

    if questionnaire.has_critical_issues:
        lines.append("## Major Non-Conformities")
        lines.append("")
        for nc in questionnaire.major_non_conformities:
            lines.append(f"### Clause {nc.clause}: {nc.question}")
            lines.append(f"\n{nc.impact}")
            lines.append("")

    lines.append("---")
    lines.append(f"*Generated by isms-roadmap v{__version__}*")
    return "\n".join(lines)


def generate_roadmap_report(roadmap: Roadmap) -> str:
    """Render a roadmap with its progress, tasks, milestones and risks."""
    report = progress_report(roadmap)
    lines: list[str] = []
    lines.append(f"# {roadmap.title}")
    lines.append("")
    lines.append(roadmap.description)
    lines.append("")
    lines.append(
        f"**Maturity:** {roadmap.current_maturity_level.value} -> {roadmap.target_maturity_level.value}"
    )
    lines.append(f"**Timeline:** {roadmap.estimated_timeline.value}")
    lines.append(f"**Estimated cost:** {roadmap.total_estimated_cost.value}")
    lines.append(f"**Status:** {roadmap.status.value}")
    lines.append(f"**Progress:** {report.overall}%")
    lines.append("")

    lines.append("## Priority Areas")
    lines.append("")
    lines.append("| Category | Current | Target | Improvement | Progress |")
    lines.append("|----------|---------|--------|-------------|----------|")
    for area in roadmap.priority_areas:
        lines.append(
            f"| {area.category.value} | {area.current_score} | {area.target_score} "
            f"| +{area.improvement_needed} | {report.by_category.get(area.category, 0)}% |"
        )
    lines.append("")

    priority_order = {p: i for i, p in enumerate(Priority)}
    tasks = sorted(roadmap.tasks, key=lambda t: priority_order[t.priority])
    if tasks:
        lines.append("## Tasks")
        lines.append("")
        for task in tasks:
            lines.append(f"### {task.title} [{task.priority.value}]")
            lines.append(
                f"**Id:** `{task.id}` | **Category:** {task.category.value} | "
                f"**Status:** {task.status.value} | **Effort:** {task.estimated_effort.value}"
            )
            if task.due_date:
                lines.append(f"**Due:** {_fmt_date(task.due_date)}")
            if task.assigned_to:
                lines.append(f"**Assigned to:** {task.assigned_to}")
            lines.append(f"\n{task.description}")
            lines.append("")

    lines.append("## Milestones")
    lines.append("")
    lines.append("| Milestone | Target date | Status | Completion |")
    lines.append("|-----------|-------------|--------|------------|")
    for m in roadmap.milestones:
        lines.append(f"| {m.title} | {_fmt_date(m.target_date)} | {m.status.value} | {m.completion_percentage}% |")
    lines.append("")

    lines.append("## Risks")
    lines.append("")
    lines.append("| Risk | Probability | Impact | Mitigation |")
    lines.append("|------|-------------|--------|------------|")
    for r in roadmap.risk_assessment:
        lines.append(f"| {r.risk} | {r.probability.value} | {r.impact.value} | {r.mitigation} |")
    lines.append("")

    lines.append("## Compliance Requirements")
    lines.append("")
    for req in roadmap.compliance_requirements:
        lines.append(f"- **{req.requirement}** (due {_fmt_date(req.deadline)}, {req.status.value})")
    lines.append("")

    lines.append("---")
    lines.append(f"*Generated by isms-roadmap v{__version__} at {_fmt_date(roadmap.last_updated)}*")
    return "\n".join(lines)
