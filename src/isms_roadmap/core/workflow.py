"""Record-level operations: load, check ownership, apply the engine, save."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence, Union

from ..models.questionnaire import Questionnaire
from ..models.roadmap import Roadmap, RoadmapParams
from .errors import OwnershipMismatch
from .roadmap import generate_roadmap
from .scoring import ResponseLike, new_questionnaire, update_questionnaire
from .store import RecordStore

logger = logging.getLogger("isms_roadmap.workflow")


def ensure_owner(record: Union[Questionnaire, Roadmap], owner_id: str, action: str = "access") -> None:
    if record.user_id != owner_id:
        kind = type(record).__name__.lower()
        raise OwnershipMismatch(f"You can only {action} your own {kind}s", [f"{kind} {record.id}"])


def load_owned_questionnaire(store: RecordStore, questionnaire_id: str, owner_id: str) -> Questionnaire:
    questionnaire = store.load_questionnaire(questionnaire_id)
    ensure_owner(questionnaire, owner_id)
    return questionnaire


def load_owned_roadmap(store: RecordStore, roadmap_id: str, owner_id: str) -> Roadmap:
    roadmap = store.load_roadmap(roadmap_id)
    ensure_owner(roadmap, owner_id)
    return roadmap


def submit_questionnaire(
    store: RecordStore,
    owner_id: str,
    responses: Sequence[ResponseLike],
    completion_time: float = 0,
    notes: str = "",
    tags: Optional[list[str]] = None,
    now: Optional[datetime] = None,
) -> Questionnaire:
    questionnaire = new_questionnaire(
        owner_id, responses, completion_time=completion_time, notes=notes, tags=tags, now=now
    )
    store.save_questionnaire(questionnaire)
    logger.info(
        "Submitted questionnaire %s: %s (%s)",
        questionnaire.id,
        questionnaire.overall_score,
        questionnaire.maturity_level.level.value,
    )
    return questionnaire


def revise_questionnaire(
    store: RecordStore,
    questionnaire_id: str,
    owner_id: str,
    responses: Optional[Sequence[ResponseLike]] = None,
    notes: Optional[str] = None,
    tags: Optional[list[str]] = None,
    status: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Questionnaire:
    questionnaire = load_owned_questionnaire(store, questionnaire_id, owner_id)
    update_questionnaire(questionnaire, responses=responses, notes=notes, tags=tags, status=status, now=now)
    return store.save_questionnaire(questionnaire)


def create_roadmap(
    store: RecordStore,
    questionnaire_id: str,
    owner_id: str,
    params: Union[RoadmapParams, dict],
    now: Optional[datetime] = None,
) -> Roadmap:
    """Generate and save a roadmap from one of the owner's questionnaires."""
    questionnaire = store.load_questionnaire(questionnaire_id)
    if questionnaire.user_id != owner_id:
        raise OwnershipMismatch(
            "You can only create roadmaps from your own questionnaires",
            [f"questionnaire {questionnaire_id}"],
        )
    roadmap = generate_roadmap(questionnaire, params, now=now)
    return store.save_roadmap(roadmap)
