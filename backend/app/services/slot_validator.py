from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from app.models.timetable import DayOfWeek
from app.services.conflict_index import ConflictIndex, Slot
from app.services.outcomes import Conflict, InvalidRange, NotFound, Ok, Outcome

ABSOLUTE_MAX_PERIODS = 10
MAX_ROOM_NUMBER_LENGTH = 20

ExistsLookup = Callable[[str], bool]


@dataclass(frozen=True)
class SlotRequest:
    section_id: str
    teacher_id: str
    room_number: str
    day_of_week: str | DayOfWeek
    period_number: int
    # Configured periods per day of the section, when known.
    periods_per_day: int | None = None

    @property
    def day(self) -> DayOfWeek | None:
        return DayOfWeek.parse(self.day_of_week)

    @property
    def slot(self) -> Slot:
        return Slot(self.day, self.period_number)


class SlotRule(Protocol):
    name: str

    def check(self, request: SlotRequest) -> Outcome | None: ...


class SectionExistsRule:
    name = "section_exists"

    def __init__(self, section_exists: ExistsLookup) -> None:
        self._section_exists = section_exists

    def check(self, request: SlotRequest) -> Outcome | None:
        if not request.section_id or not self._section_exists(request.section_id):
            return NotFound(code="InvalidSection", resource="Section", resource_id=request.section_id)
        return None


class TeacherExistsRule:
    name = "teacher_exists"

    def __init__(self, teacher_exists: ExistsLookup) -> None:
        self._teacher_exists = teacher_exists

    def check(self, request: SlotRequest) -> Outcome | None:
        if not request.teacher_id or not self._teacher_exists(request.teacher_id):
            return NotFound(code="TeacherNotFound", resource="Teacher", resource_id=request.teacher_id)
        return None


class DayOfWeekRule:
    name = "day_of_week"

    def check(self, request: SlotRequest) -> Outcome | None:
        day = request.day
        if day is None:
            return InvalidRange(code="InvalidDayOfWeek", field="day_of_week", message="Invalid day of week")
        if day is DayOfWeek.sunday:
            return InvalidRange(
                code="InvalidDayOfWeek", field="day_of_week", message="Cannot schedule classes on Sunday"
            )
        return None


class PeriodNumberRule:
    name = "period_number"

    def __init__(self, absolute_max: int = ABSOLUTE_MAX_PERIODS) -> None:
        self._absolute_max = absolute_max

    def check(self, request: SlotRequest) -> Outcome | None:
        period = request.period_number
        if not 1 <= period <= self._absolute_max:
            return InvalidRange(
                code="InvalidPeriodNumber",
                field="period_number",
                message=f"Period number must be between 1 and {self._absolute_max}",
            )
        configured = request.periods_per_day
        if configured is not None and period > configured:
            return InvalidRange(
                code="InvalidPeriodNumber",
                field="period_number",
                message=f"Period number must be between 1 and {configured} for this section",
            )
        return None


class RoomNumberRule:
    name = "room_number"

    def check(self, request: SlotRequest) -> Outcome | None:
        room = (request.room_number or "").strip()
        if not room:
            return InvalidRange(code="InvalidRoomNumber", field="room_number", message="Room number is required")
        if len(room) > MAX_ROOM_NUMBER_LENGTH:
            return InvalidRange(
                code="InvalidRoomNumber",
                field="room_number",
                message=f"Room number cannot exceed {MAX_ROOM_NUMBER_LENGTH} characters",
            )
        return None


class ConflictRule:
    name = "conflict"

    def __init__(self, index: ConflictIndex) -> None:
        self.index = index

    def check(self, request: SlotRequest) -> Outcome | None:
        slot = request.slot
        day = slot.day.value

        occupant = self.index.section_occupant(request.section_id, slot)
        if occupant is not None:
            return Conflict(
                resource="section",
                day=day,
                period=slot.period,
                message=f"Section already has a class at {slot.label()}",
                conflicting_section_id=occupant.section_id,
            )
        occupant = self.index.teacher_occupant(request.teacher_id, slot)
        if occupant is not None:
            return Conflict(
                resource="teacher",
                day=day,
                period=slot.period,
                message=f"Teacher is already assigned to Section {occupant.section_id} at {slot.label()}",
                conflicting_section_id=occupant.section_id,
            )
        occupant = self.index.room_occupant(request.room_number, slot)
        if occupant is not None:
            return Conflict(
                resource="room",
                day=day,
                period=slot.period,
                message=(
                    f"Room {request.room_number.strip()} is already booked for Section "
                    f"{occupant.section_id} at {slot.label()}"
                ),
                conflicting_section_id=occupant.section_id,
            )
        return None


class SlotAvailabilityValidator:
    """Runs its rules in order and stops at the first failure."""

    def __init__(self, rules: Sequence[SlotRule]) -> None:
        self.rules: tuple[SlotRule, ...] = tuple(rules)

    def validate(self, request: SlotRequest) -> Outcome:
        for rule in self.rules:
            failure = rule.check(request)
            if failure is not None:
                return failure
        return Ok()


def standard_rules(
    *,
    section_exists: ExistsLookup,
    teacher_exists: ExistsLookup,
    index: ConflictIndex,
    absolute_max_periods: int = ABSOLUTE_MAX_PERIODS,
) -> list[SlotRule]:
    return [
        SectionExistsRule(section_exists),
        TeacherExistsRule(teacher_exists),
        DayOfWeekRule(),
        PeriodNumberRule(absolute_max_periods),
        RoomNumberRule(),
        ConflictRule(index),
    ]


def build_slot_validator(
    *,
    section_exists: ExistsLookup,
    teacher_exists: ExistsLookup,
    index: ConflictIndex,
    absolute_max_periods: int = ABSOLUTE_MAX_PERIODS,
) -> SlotAvailabilityValidator:
    return SlotAvailabilityValidator(
        standard_rules(
            section_exists=section_exists,
            teacher_exists=teacher_exists,
            index=index,
            absolute_max_periods=absolute_max_periods,
        )
    )
