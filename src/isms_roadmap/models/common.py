"""Shared model base and enumerations."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    PLAN = "Plan"
    DO = "Do"
    CHECK = "Check"
    ACT = "Act"


CATEGORIES: list[Category] = list(Category)


class Tier(str, Enum):
    CRITIQUE = "Critique"
    BASIQUE = "Basique"
    INTERMEDIAIRE = "Intermédiaire"
    AVANCE = "Avancé"
    EXCELLENCE = "Excellence"


class RecordModel(BaseModel):
    """Base for stored records: snake_case in Python, camelCase on disk."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
