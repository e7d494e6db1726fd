"""Engine error taxonomy.

Every operation validates before it mutates, so any of these leaves the
record it was given untouched. ``exit_code`` is what the CLI returns.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError


class EngineError(Exception):
    exit_code = 1

    def __init__(self, message: str, details: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message}: " + "; ".join(self.details)


class ValidationError(EngineError):
    exit_code = 11

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, what: str) -> "ValidationError":
        details = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()))
            details.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
        return cls(f"Invalid {what}", details)


class InvalidResponseValue(ValidationError):
    pass


class InvalidWeight(ValidationError):
    pass


class NotFoundError(EngineError):
    exit_code = 12


class TaskNotFound(NotFoundError):
    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class RecordNotFound(NotFoundError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class OwnershipMismatch(EngineError):
    exit_code = 13


class ConcurrentModification(EngineError):
    exit_code = 14
