"""isms - ISMS maturity assessment and remediation roadmap CLI."""

from __future__ import annotations

import functools
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .. import __version__
from ..core.errors import EngineError, ValidationError
from ..models.common import CATEGORIES, Category
from ..models.roadmap import (
    CostLevel,
    Effort,
    MilestoneStatus,
    Priority,
    RoadmapStatus,
    TargetTier,
    TaskStatus,
    Timeline,
)

console = Console()

TIER_STYLES = {
    "success": "green",
    "info": "cyan",
    "warning": "yellow",
    "secondary": "white",
    "danger": "red",
}


def _choices(enum_cls) -> click.Choice:
    return click.Choice([e.value for e in enum_cls])


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def handle_errors(func):
    """Report engine errors on stderr and exit with their code."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except EngineError as e:
            click.echo(f"Error: {e}", err=True)
            click.get_current_context().exit(e.exit_code)

    return wrapper


def _store(ctx: click.Context):
    from ..core.config import get_storage_path
    from ..core.store import RecordStore

    return RecordStore(get_storage_path(ctx.obj["config"]))


def _owner(ctx: click.Context, owner: Optional[str]) -> str:
    resolved = owner or ctx.obj["config"].get("organization", {}).get("owner") or ""
    if not resolved:
        raise ValidationError("No owner given", ["pass --owner, set ISMS_OWNER or organization.owner in config"])
    return resolved


def _echo_json(record) -> None:
    data = record.to_record() if hasattr(record, "to_record") else record
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _print_questionnaire(questionnaire) -> None:
    level = questionnaire.maturity_level
    style = TIER_STYLES.get(level.color, "white")
    console.print(f"  Questionnaire: [white]{questionnaire.id}[/white]")
    console.print(f"  Score:         [bold]{questionnaire.overall_score}[/bold]/100")
    console.print(f"  Maturity:      [{style}]{level.level.value}[/{style}] - {level.description}")
    console.print(
        "  Categories:    "
        + "  ".join(f"{c.value} {questionnaire.category_scores.get(c, 0)}" for c in CATEGORIES)
    )
    if questionnaire.major_non_conformities:
        console.print(f"  [red]Non-conformities: {len(questionnaire.major_non_conformities)}[/red]")
        for nc in questionnaire.major_non_conformities:
            console.print(f"    - {nc.clause}: {nc.question}")


def _print_roadmap(roadmap) -> None:
    console.print(f"  Roadmap:  [white]{roadmap.id}[/white]  {roadmap.title}")
    console.print(
        f"  Maturity: {roadmap.current_maturity_level.value} -> {roadmap.target_maturity_level.value}"
        f"  ({roadmap.estimated_timeline.value}, cost {roadmap.total_estimated_cost.value})"
    )
    console.print(
        f"  Progress: [bold]{roadmap.progress.overall}%[/bold]  "
        + "  ".join(f"{c.value} {roadmap.progress.by_category.get(c, 0)}%" for c in CATEGORIES)
    )
    table = Table(show_header=True, header_style="bold")
    table.add_column("Task id", no_wrap=True)
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Status")
    for task in roadmap.tasks:
        table.add_row(task.id, task.title, task.category.value, task.priority.value, task.status.value)
    console.print(table)


@click.group()
@click.version_option(__version__, prog_name="isms")
@click.option("--project", "-p", type=click.Path(file_okay=False), default=".", help="Workspace path")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.pass_context
def isms_cli(ctx: click.Context, project: str, log_level: Optional[str]) -> None:
    """ISMS maturity assessment and remediation roadmap."""
    from ..core.config import get_effective_config

    config = get_effective_config(Path(project))
    configure_logging(log_level or config.get("logging", {}).get("level", "WARNING"))
    ctx.obj = {"config": config, "project": Path(project)}


@isms_cli.command()
@click.option("--organization", type=str, help="Organization name")
@click.pass_context
def init(ctx: click.Context, organization: Optional[str]) -> None:
    """Initialize an ISMS roadmap workspace."""
    from ..core.config import initialize_workspace

    ws = initialize_workspace(ctx.obj["project"], organization or "")
    console.print(f"  [green]Initialized[/green] {ws}")


@isms_cli.command()
@click.argument("score", type=float)
def classify(score: float) -> None:
    """Show the maturity tier for an overall SCORE (0-100)."""
    from ..core.maturity import classify as classify_score

    level = classify_score(score)
    click.echo(f"{level.level.value} ({level.color}): {level.description}")


@isms_cli.command()
@click.option("--answers", "-a", "answers_path", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option("--owner", type=str, help="Owner id")
@click.option("--json", "as_json", is_flag=True, help="Print the stored record as JSON")
@click.pass_context
@handle_errors
def assess(ctx: click.Context, answers_path: str, owner: Optional[str], as_json: bool) -> None:
    """Score an answers file and store the questionnaire."""
    from ..core.questions import build_responses, load_answers_file, load_question_bank
    from ..core.workflow import submit_questionnaire

    config = ctx.obj["config"]
    owner_id = _owner(ctx, owner)
    bank = load_question_bank(ctx.obj["project"], config.get("questionnaire", {}).get("bank", "iso27001"))
    sheet = load_answers_file(Path(answers_path))
    questionnaire = submit_questionnaire(
        _store(ctx),
        owner_id,
        build_responses(bank, sheet.answers),
        completion_time=sheet.completion_time,
        notes=sheet.notes,
        tags=sheet.tags,
    )
    if as_json:
        _echo_json(questionnaire)
    else:
        _print_questionnaire(questionnaire)


# ---------------------------------------------------------------------------
# questionnaire
# ---------------------------------------------------------------------------


@isms_cli.group()
def questionnaire() -> None:
    """Stored questionnaires."""


@questionnaire.command("list")
@click.option("--owner", type=str)
@click.pass_context
@handle_errors
def questionnaire_list(ctx: click.Context, owner: Optional[str]) -> None:
    for q in _store(ctx).list_questionnaires(_owner(ctx, owner)):
        click.echo(f"{q.id}  {q.overall_score:>5}  {q.maturity_level.level.value}  {q.status.value}")


@questionnaire.command("show")
@click.argument("questionnaire_id")
@click.option("--owner", type=str)
@click.option("--json", "as_json", is_flag=True)
@click.option("--report", is_flag=True, help="Print the markdown assessment report")
@click.pass_context
@handle_errors
def questionnaire_show(ctx: click.Context, questionnaire_id: str, owner: Optional[str], as_json: bool, report: bool) -> None:
    from ..core.report import generate_assessment_report
    from ..core.workflow import load_owned_questionnaire

    q = load_owned_questionnaire(_store(ctx), questionnaire_id, _owner(ctx, owner))
    if as_json:
        _echo_json(q)
    elif report:
        click.echo(generate_assessment_report(q, ctx.obj["config"].get("organization", {}).get("name", "")))
    else:
        _print_questionnaire(q)


@questionnaire.command("update")
@click.argument("questionnaire_id")
@click.option("--owner", type=str)
@click.option("--answers", "-a", "answers_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--notes", type=str)
@click.option("--tag", "tags", multiple=True)
@click.option("--status", type=click.Choice(["draft", "completed", "archived"]))
@click.pass_context
@handle_errors
def questionnaire_update(
    ctx: click.Context,
    questionnaire_id: str,
    owner: Optional[str],
    answers_path: Optional[str],
    notes: Optional[str],
    tags: tuple[str, ...],
    status: Optional[str],
) -> None:
    """Update answers (re-scores everything), notes, tags or status."""
    from ..core.questions import build_responses, load_answers_file, load_question_bank
    from ..core.workflow import revise_questionnaire

    responses = None
    if answers_path:
        bank = load_question_bank(ctx.obj["project"], ctx.obj["config"].get("questionnaire", {}).get("bank", "iso27001"))
        responses = build_responses(bank, load_answers_file(Path(answers_path)).answers)
    q = revise_questionnaire(
        _store(ctx),
        questionnaire_id,
        _owner(ctx, owner),
        responses=responses,
        notes=notes,
        tags=list(tags) if tags else None,
        status=status,
    )
    _print_questionnaire(q)


@questionnaire.command("delete")
@click.argument("questionnaire_id")
@click.option("--owner", type=str)
@click.pass_context
@handle_errors
def questionnaire_delete(ctx: click.Context, questionnaire_id: str, owner: Optional[str]) -> None:
    from ..core.workflow import load_owned_questionnaire

    store = _store(ctx)
    load_owned_questionnaire(store, questionnaire_id, _owner(ctx, owner))
    store.delete_questionnaire(questionnaire_id)
    click.echo(f"Deleted questionnaire {questionnaire_id}")


# ---------------------------------------------------------------------------
# roadmap
# ---------------------------------------------------------------------------


@isms_cli.group()
def roadmap() -> None:
    """Remediation roadmaps."""


@roadmap.command("create")
@click.argument("questionnaire_id")
@click.option("--owner", type=str)
@click.option("--title", "-t", required=True)
@click.option("--description", "-d", type=str)
@click.option("--target", type=_choices(TargetTier), help="Target maturity level")
@click.option("--timeline", type=_choices(Timeline))
@click.option("--cost", type=_choices(CostLevel))
@click.option("--json", "as_json", is_flag=True)
@click.pass_context
@handle_errors
def roadmap_create(
    ctx: click.Context,
    questionnaire_id: str,
    owner: Optional[str],
    title: str,
    description: Optional[str],
    target: Optional[str],
    timeline: Optional[str],
    cost: Optional[str],
    as_json: bool,
) -> None:
    """Generate a roadmap from a scored questionnaire."""
    from ..core.workflow import create_roadmap

    defaults = ctx.obj["config"].get("roadmap", {})
    rm = create_roadmap(
        _store(ctx),
        questionnaire_id,
        _owner(ctx, owner),
        {
            "title": title,
            "description": description,
            "target_maturity_level": target or defaults.get("target_maturity_level"),
            "estimated_timeline": timeline or defaults.get("estimated_timeline"),
            "total_estimated_cost": cost or defaults.get("total_estimated_cost"),
        },
    )
    if as_json:
        _echo_json(rm)
    else:
        _print_roadmap(rm)


@roadmap.command("list")
@click.option("--owner", type=str)
@click.option("--status", type=_choices(RoadmapStatus))
@click.pass_context
@handle_errors
def roadmap_list(ctx: click.Context, owner: Optional[str], status: Optional[str]) -> None:
    for rm in _store(ctx).list_roadmaps(_owner(ctx, owner)):
        if status and rm.status.value != status:
            continue
        click.echo(f"{rm.id}  {rm.progress.overall:>3}%  {rm.status.value}  {rm.title}")


@roadmap.command("show")
@click.argument("roadmap_id")
@click.option("--owner", type=str)
@click.option("--json", "as_json", is_flag=True)
@click.pass_context
@handle_errors
def roadmap_show(ctx: click.Context, roadmap_id: str, owner: Optional[str], as_json: bool) -> None:
    from ..core.workflow import load_owned_roadmap

    rm = load_owned_roadmap(_store(ctx), roadmap_id, _owner(ctx, owner))
    if as_json:
        _echo_json(rm)
    else:
        _print_roadmap(rm)


@roadmap.command("update")
@click.argument("roadmap_id")
@click.option("--owner", type=str)
@click.option("--title", type=str)
@click.option("--description", type=str)
@click.option("--status", type=_choices(RoadmapStatus))
@click.option("--timeline", type=_choices(Timeline))
@click.option("--cost", type=_choices(CostLevel))
@click.pass_context
@handle_errors
def roadmap_update(
    ctx: click.Context,
    roadmap_id: str,
    owner: Optional[str],
    title: Optional[str],
    description: Optional[str],
    status: Optional[str],
    timeline: Optional[str],
    cost: Optional[str],
) -> None:
    from ..core.mutations import update_roadmap
    from ..core.workflow import load_owned_roadmap

    store = _store(ctx)
    rm = load_owned_roadmap(store, roadmap_id, _owner(ctx, owner))
    update_roadmap(rm, {
        "title": title,
        "description": description,
        "status": status,
        "estimated_timeline": timeline,
        "total_estimated_cost": cost,
    })
    store.save_roadmap(rm)
    _print_roadmap(rm)


@roadmap.command("delete")
@click.argument("roadmap_id")
@click.option("--owner", type=str)
@click.pass_context
@handle_errors
def roadmap_delete(ctx: click.Context, roadmap_id: str, owner: Optional[str]) -> None:
    from ..core.workflow import load_owned_roadmap

    store = _store(ctx)
    load_owned_roadmap(store, roadmap_id, _owner(ctx, owner))
    store.delete_roadmap(roadmap_id)
    click.echo(f"Deleted roadmap {roadmap_id}")


@roadmap.command("progress")
@click.argument("roadmap_id")
@click.option("--owner", type=str)
@click.pass_context
@handle_errors
def roadmap_progress(ctx: click.Context, roadmap_id: str, owner: Optional[str]) -> None:
    """Print the task and milestone status breakdown as JSON."""
    from ..core.progress import progress_report
    from ..core.workflow import load_owned_roadmap

    rm = load_owned_roadmap(_store(ctx), roadmap_id, _owner(ctx, owner))
    _echo_json(progress_report(rm))


@roadmap.command("report")
@click.argument("roadmap_id")
@click.option("--owner", type=str)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
@click.pass_context
@handle_errors
def roadmap_report(ctx: click.Context, roadmap_id: str, owner: Optional[str], output: Optional[str]) -> None:
    from ..core.report import generate_roadmap_report
    from ..core.workflow import load_owned_roadmap

    rm = load_owned_roadmap(_store(ctx), roadmap_id, _owner(ctx, owner))
    text = generate_roadmap_report(rm)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Report written to {output}")
    else:
        click.echo(text)


# ---------------------------------------------------------------------------
# tasks and milestones
# ---------------------------------------------------------------------------


@isms_cli.group()
def task() -> None:
    """Roadmap tasks."""


@task.command("add")
@click.argument("roadmap_id")
@click.option("--owner", type=str)
@click.option("--title", "-t", required=True)
@click.option("--description", "-d", required=True)
@click.option("--category", "-c", type=_choices(Category), required=True)
@click.option("--priority", type=_choices(Priority), required=True)
@click.option("--effort", type=_choices(Effort), required=True)
@click.option("--cost", type=_choices(CostLevel), required=True)
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option("--assignee", type=str)
@click.option("--depends-on", "dependencies", multiple=True)
@click.pass_context
@handle_errors
def task_add(
    ctx: click.Context,
    roadmap_id: str,
    owner: Optional[str],
    title: str,
    description: str,
    category: str,
    priority: str,
    effort: str,
    cost: str,
    due: Optional[datetime],
    assignee: Optional[str],
    dependencies: tuple[str, ...],
) -> None:
    from ..core.mutations import add_task
    from ..core.workflow import load_owned_roadmap

    store = _store(ctx)
    rm = load_owned_roadmap(store, roadmap_id, _owner(ctx, owner))
    new_task = add_task(rm, {
        "title": title,
        "description": description,
        "category": category,
        "priority": priority,
        "estimated_effort": effort,
        "cost": cost,
        "due_date": due,
        "assigned_to": assignee,
        "dependencies": list(dependencies),
    })
    store.save_roadmap(rm)
    click.echo(f"Added task {new_task.id} (progress {rm.progress.overall}%)")


@task.command("status")
@click.argument("roadmap_id")
@click.argument("task_id")
@click.argument("status", type=_choices(TaskStatus))
@click.option("--owner", type=str)
@click.pass_context
@handle_errors
def task_status(ctx: click.Context, roadmap_id: str, task_id: str, status: str, owner: Optional[str]) -> None:
    from ..core.mutations import update_task_status
    from ..core.workflow import load_owned_roadmap

    store = _store(ctx)
    rm = load_owned_roadmap(store, roadmap_id, _owner(ctx, owner))
    update_task_status(rm, task_id, status)
    store.save_roadmap(rm)
    click.echo(f"Task {task_id} -> {status} (progress {rm.progress.overall}%)")


@task.command("remove")
@click.argument("roadmap_id")
@click.argument("task_id")
@click.option("--owner", type=str)
@click.pass_context
@handle_errors
def task_remove(ctx: click.Context, roadmap_id: str, task_id: str, owner: Optional[str]) -> None:
    from ..core.mutations import remove_task
    from ..core.workflow import load_owned_roadmap

    store = _store(ctx)
    rm = load_owned_roadmap(store, roadmap_id, _owner(ctx, owner))
    remove_task(rm, task_id)
    store.save_roadmap(rm)
    click.echo(f"Removed task {task_id} (progress {rm.progress.overall}%)")


@isms_cli.group()
def milestone() -> None:
    """Roadmap milestones."""


@milestone.command("add")
@click.argument("roadmap_id")
@click.option("--owner", type=str)
@click.option("--title", "-t", required=True)
@click.option("--description", "-d", required=True)
@click.option("--target-date", type=click.DateTime(formats=["%Y-%m-%d"]), required=True)
@click.option("--status", type=_choices(MilestoneStatus), default=MilestoneStatus.PENDING.value)
@click.option("--task", "task_ids", multiple=True, help="Linked task id (repeatable)")
@click.pass_context
@handle_errors
def milestone_add(
    ctx: click.Context,
    roadmap_id: str,
    owner: Optional[str],
    title: str,
    description: str,
    target_date: datetime,
    status: str,
    task_ids: tuple[str, ...],
) -> None:
    from ..core.mutations import add_milestone
    from ..core.workflow import load_owned_roadmap

    store = _store(ctx)
    rm = load_owned_roadmap(store, roadmap_id, _owner(ctx, owner))
    m = add_milestone(rm, {
        "title": title,
        "description": description,
        "target_date": target_date,
        "status": status,
        "task_ids": list(task_ids),
    })
    store.save_roadmap(rm)
    click.echo(f"Added milestone {m.id} ({m.completion_percentage}%)")


def main() -> None:
    isms_cli()


if __name__ == "__main__":
    main()
