"""JSON file record store for questionnaires and roadmaps.

One UTF-8 JSON file per record. Each record carries a ``revision``; saving
checks it against the file on disk so two writers working from the same
snapshot cannot silently overwrite each other.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from ..models.common import RecordModel
from ..models.questionnaire import Questionnaire
from ..models.roadmap import Roadmap
from .errors import ConcurrentModification, RecordNotFound, ValidationError

logger = logging.getLogger("isms_roadmap.store")

R = TypeVar("R", bound=RecordModel)


class RecordStore:
    """Directory of JSON records: ``questionnaires/<id>.json``, ``roadmaps/<id>.json``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    # -- generic ---------------------------------------------------------

    def _path(self, kind: str, record_id: str) -> Path:
        if not record_id or "/" in record_id or "\\" in record_id or record_id.startswith("."):
            raise RecordNotFound(kind.capitalize(), record_id)
        return self.root / f"{kind}s" / f"{record_id}.json"

    def _read(self, kind: str, record_id: str, model: type[R]) -> R:
        path = self._path(kind, record_id)
        if not path.exists():
            raise RecordNotFound(kind.capitalize(), record_id)
        try:
            return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise ValidationError(f"Corrupt {kind} record {record_id}", [str(e)]) from None

    def _write(self, kind: str, record) -> None:
        path = self._path(kind, record.id)
        if path.exists():
            stored = json.loads(path.read_text(encoding="utf-8")).get("revision", 0)
            if stored != record.revision:
                raise ConcurrentModification(
                    f"{kind.capitalize()} {record.id} was modified concurrently",
                    [f"expected revision {record.revision}, found {stored}"],
                )
        revision = record.revision + 1
        data = record.to_record()
        data["revision"] = revision
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
        # only bump once the file is in place
        record.revision = revision
        logger.debug("Saved %s %s (revision %d)", kind, record.id, record.revision)

    def _delete(self, kind: str, record_id: str) -> None:
        path = self._path(kind, record_id)
        if not path.exists():
            raise RecordNotFound(kind.capitalize(), record_id)
        path.unlink()
        logger.info("Deleted %s %s", kind, record_id)

    def _list(self, kind: str, model: type[R], owner: Optional[str]) -> list[R]:
        directory = self.root / f"{kind}s"
        if not directory.exists():
            return []
        records = [self._read(kind, p.stem, model) for p in directory.glob("*.json")]
        if owner is not None:
            records = [r for r in records if r.user_id == owner]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    # -- questionnaires --------------------------------------------------

    def save_questionnaire(self, questionnaire: Questionnaire) -> Questionnaire:
        self._write("questionnaire", questionnaire)
        return questionnaire

    def load_questionnaire(self, questionnaire_id: str) -> Questionnaire:
        return self._read("questionnaire", questionnaire_id, Questionnaire)

    def delete_questionnaire(self, questionnaire_id: str) -> None:
        self._delete("questionnaire", questionnaire_id)

    def list_questionnaires(self, owner: Optional[str] = None) -> list[Questionnaire]:
        return self._list("questionnaire", Questionnaire, owner)

    # -- roadmaps --------------------------------------------------------

    def save_roadmap(self, roadmap: Roadmap) -> Roadmap:
        self._write("roadmap", roadmap)
        return roadmap

    def load_roadmap(self, roadmap_id: str) -> Roadmap:
        return self._read("roadmap", roadmap_id, Roadmap)

    def delete_roadmap(self, roadmap_id: str) -> None:
        """Delete a roadmap; its tasks and milestones go with the file."""
        self._delete("roadmap", roadmap_id)

    def list_roadmaps(self, owner: Optional[str] = None) -> list[Roadmap]:
        return self._list("roadmap", Roadmap, owner)
