"""Typed results returned by the scheduling core.

Rules, the config validator and the generator return one of these variants
instead of raising, so callers can branch on the outcome. HTTP callers turn a
failure into its ``AppError`` with ``to_error()``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from app.core.exceptions import (
    AppError,
    ConfigurationInvalidError,
    InfeasibleScheduleError,
    InvalidSlotError,
    ResourceNotFoundError,
    SlotConflictError,
)

ConflictResource = Literal["teacher", "room", "section"]


@dataclass(frozen=True)
class Ok:
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ConfigInvalid:
    violations: tuple[FieldViolation, ...]

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> AppError:
        return ConfigurationInvalidError([violation.as_dict() for violation in self.violations])


@dataclass(frozen=True)
class NotFound:
    code: str
    resource: str
    resource_id: str

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> AppError:
        return ResourceNotFoundError(self.resource, self.resource_id, code=self.code)


@dataclass(frozen=True)
class InvalidRange:
    code: str
    field: str
    message: str

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> AppError:
        return InvalidSlotError(self.code, self.message, self.field)


@dataclass(frozen=True)
class Conflict:
    resource: ConflictResource
    day: str
    period: int
    message: str
    conflicting_section_id: str | None = None
    code: str = "SlotConflict"

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> AppError:
        return SlotConflictError(
            self.message,
            resource=self.resource,
            day=self.day,
            period=self.period,
            conflicting_section_id=self.conflicting_section_id,
        )


@dataclass(frozen=True)
class Infeasible:
    subject_id: str
    teacher_id: str
    required: int
    placed: int
    message: str
    backtracks: int = 0
    subject_name: str | None = None
    last_rejection: str | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> AppError:
        return InfeasibleScheduleError(
            self.message,
            details={
                "subject_id": self.subject_id,
                "subject_name": self.subject_name,
                "teacher_id": self.teacher_id,
                "required": self.required,
                "placed": self.placed,
                "backtracks": self.backtracks,
                "last_rejection": self.last_rejection,
            },
        )


Failure = Union[ConfigInvalid, NotFound, InvalidRange, Conflict, Infeasible]
Outcome = Union[Ok, Failure]


def raise_for_outcome(outcome: Outcome) -> Any:
    """Return the value of an ``Ok`` or raise the error a failure maps to."""
    if isinstance(outcome, Ok):
        return outcome.value
    raise outcome.to_error()
