"""Shared fixtures for isms-roadmap tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from isms_roadmap.core.roadmap import generate_roadmap
from isms_roadmap.core.scoring import new_questionnaire
from isms_roadmap.core.store import RecordStore
from isms_roadmap.models.questionnaire import Questionnaire
from isms_roadmap.models.roadmap import Roadmap

FIXED_NOW = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


def make_response(
    qid: str,
    category: str = "Plan",
    weight: float = 10,
    response: str | None = "Oui",
    critical: bool = False,
    clause: str | None = None,
) -> dict:
    return {
        "question_id": qid,
        "question_text": f"Question {qid}?",
        "category": category,
        "clause": clause or f"4.{qid}",
        "weight": weight,
        "critical": critical,
        "response": response,
    }


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def sample_responses() -> list[dict]:
    """Mixed answers across all four PDCA categories."""
    return [
        make_response("1", "Plan", 3, "Non", critical=True, clause="4.3"),
        make_response("2", "Plan", 3, "Oui", clause="5.2"),
        make_response("3", "Do", 2, "Partiellement", clause="7.3"),
        make_response("4", "Do", 2, "Oui", clause="8.3"),
        make_response("5", "Check", 2, "Non", clause="9.2"),
        make_response("6", "Check", 2, "Partiellement", clause="9.3"),
        make_response("7", "Act", 3, "Non", critical=True, clause="10.2"),
        make_response("8", "Act", 1, "Oui", clause="10.1"),
    ]


@pytest.fixture
def questionnaire(sample_responses: list[dict], now: datetime) -> Questionnaire:
    return new_questionnaire("user-1", sample_responses, completion_time=420, now=now)


@pytest.fixture
def roadmap_params() -> dict:
    return {
        "title": "ISO 27001 remediation",
        "target_maturity_level": "Avancé",
        "estimated_timeline": "6-12 months",
        "total_estimated_cost": "Medium",
    }


@pytest.fixture
def roadmap(questionnaire: Questionnaire, roadmap_params: dict, now: datetime) -> Roadmap:
    return generate_roadmap(questionnaire, roadmap_params, now=now)


@pytest.fixture
def store(tmp_path: Path) -> RecordStore:
    return RecordStore(tmp_path / "records")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A directory with an initialized .isms-roadmap workspace."""
    project = tmp_path / "org"
    project.mkdir()
    ws = project / ".isms-roadmap"
    ws.mkdir()
    (ws / "config.yaml").write_text(
        'organization:\n  name: "Acme"\n  owner: "user-1"\n',
        encoding="utf-8",
    )
    return project


@pytest.fixture
def make_resp():
    """Factory for raw response dicts."""
    return make_response
