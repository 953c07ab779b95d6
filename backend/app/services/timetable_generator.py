from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from app.models.timetable import DayOfWeek
from app.services.academic_config import AcademicConfig
from app.services.conflict_index import ConflictIndex, Slot
from app.services.outcomes import Infeasible, InvalidRange, Outcome
from app.services.slot_validator import ExistsLookup, SlotRequest, build_slot_validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Requirement:
    subject_id: str
    teacher_id: str
    weekly_periods: int
    subject_name: str | None = None
    room_number: str | None = None

    @property
    def label(self) -> str:
        return self.subject_name or self.subject_id


@dataclass(frozen=True)
class PlannedEntry:
    section_id: str
    subject_id: str
    teacher_id: str
    day_of_week: DayOfWeek
    period_number: int
    start_time: str
    end_time: str
    room_number: str

    @property
    def slot(self) -> Slot:
        return Slot(self.day_of_week, self.period_number)


@dataclass
class GenerationResult:
    entries: list[PlannedEntry]
    slots_available: int
    backtracks: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass
class _Frame:
    requirement: Requirement
    candidates: list[Slot]
    cursor: int = 0
    placement: PlannedEntry | None = None
    last_rejection: Outcome | None = None

    @property
    def has_alternatives(self) -> bool:
        return self.cursor < len(self.candidates)


class TimetableGenerator:
    """Greedy placement over the section's slot universe with bounded backtracking.

    Committed placements live on an explicit stack. When a task finds no slot,
    the stack is unwound to the most recent placement of a different subject
    that still has untried candidates, and that placement moves on to its
    next candidate. The number of backtracks never exceeds the size of the
    slot universe.
    """

    def __init__(self, config: AcademicConfig, *, max_backtracks: int | None = None) -> None:
        self.config = config
        self.max_backtracks = max_backtracks

    def slot_universe(self) -> list[Slot]:
        return [Slot(day, period) for day in self.config.working_days for period in self.config.teaching_periods()]

    def generate(
        self,
        section_id: str,
        requirements: Sequence[Requirement],
        existing_entries: Iterable[Any] = (),
        *,
        default_room: str,
        section_exists: ExistsLookup | None = None,
        teacher_exists: ExistsLookup | None = None,
    ) -> GenerationResult | Infeasible | InvalidRange:
        for requirement in requirements:
            if not _resolve_room(requirement, default_room):
                return InvalidRange(
                    code="InvalidRoomNumber",
                    field="room_number",
                    message="Section must have a room number assigned",
                )
        universe = self.slot_universe()
        index = ConflictIndex.build(entry for entry in existing_entries if entry.section_id != section_id)
        known_teachers = {requirement.teacher_id for requirement in requirements}
        validator = build_slot_validator(
            section_exists=section_exists or (lambda candidate: candidate == section_id),
            teacher_exists=teacher_exists or known_teachers.__contains__,
            index=index,
        )
        tasks = self._expand(requirements)
        budget = len(universe) if self.max_backtracks is None else self.max_backtracks

        frames: list[_Frame] = []
        resume: _Frame | None = None
        backtracks = 0
        while len(frames) < len(tasks):
            requirement = tasks[len(frames)]
            frame = resume or _Frame(requirement, self._ordered_candidates(requirement, frames, universe))
            resume = None
            if self._place(frame, section_id, default_room, validator, index):
                frames.append(frame)
                continue

            target = self._unwind_target(frames, requirement) if backtracks < budget else None
            if target is None:
                return self._infeasible(requirement, frame, frames, backtracks)
            backtracks += 1
            while len(frames) > target:
                undone = frames.pop()
                index.release(undone.placement)
                undone.placement = None
                resume = undone
            logger.debug(
                "TIMETABLE BACKTRACK | section_id=%s | blocked_subject=%s | retry_subject=%s | count=%s",
                section_id,
                requirement.subject_id,
                resume.requirement.subject_id,
                backtracks,
            )

        entries = [frame.placement for frame in frames]
        return GenerationResult(
            entries=entries,
            slots_available=len(universe),
            backtracks=backtracks,
            warnings=self._warnings(entries, universe),
        )

    def _expand(self, requirements: Sequence[Requirement]) -> list[Requirement]:
        for requirement in requirements:
            if requirement.weekly_periods < 1:
                raise ValueError(f"weekly_periods must be positive for subject {requirement.subject_id}")
        ordered = sorted(enumerate(requirements), key=lambda item: (-item[1].weekly_periods, item[0]))
        return [requirement for _, requirement in ordered for _ in range(requirement.weekly_periods)]

    def _ordered_candidates(self, requirement: Requirement, frames: list[_Frame], universe: list[Slot]) -> list[Slot]:
        # Spread a subject over the week before doubling up on a day; canonical order breaks ties.
        per_day = Counter(
            frame.placement.day_of_week for frame in frames if frame.requirement.subject_id == requirement.subject_id
        )
        return [slot for _, slot in sorted(enumerate(universe), key=lambda item: (per_day[item[1].day], item[0]))]

    def _place(self, frame: _Frame, section_id: str, default_room: str, validator, index: ConflictIndex) -> bool:
        requirement = frame.requirement
        room = _resolve_room(requirement, default_room)
        while frame.has_alternatives:
            slot = frame.candidates[frame.cursor]
            frame.cursor += 1
            outcome = validator.validate(
                SlotRequest(
                    section_id=section_id,
                    teacher_id=requirement.teacher_id,
                    room_number=room,
                    day_of_week=slot.day,
                    period_number=slot.period,
                    periods_per_day=self.config.periods_per_day,
                )
            )
            if not outcome.ok:
                frame.last_rejection = outcome
                continue
            start_time, end_time = self.config.period_times(slot.period)
            frame.placement = PlannedEntry(
                section_id=section_id,
                subject_id=requirement.subject_id,
                teacher_id=requirement.teacher_id,
                day_of_week=slot.day,
                period_number=slot.period,
                start_time=start_time,
                end_time=end_time,
                room_number=room,
            )
            index.record(frame.placement)
            return True
        return False

    @staticmethod
    def _unwind_target(frames: list[_Frame], blocked: Requirement) -> int | None:
        for position in range(len(frames) - 1, -1, -1):
            frame = frames[position]
            if frame.requirement.subject_id != blocked.subject_id and frame.has_alternatives:
                return position
        return None

    @staticmethod
    def _infeasible(requirement: Requirement, frame: _Frame, frames: list[_Frame], backtracks: int) -> Infeasible:
        placed = sum(1 for committed in frames if committed.requirement == requirement)
        rejection = getattr(frame.last_rejection, "message", None)
        message = (
            f"Unable to place {requirement.label} (teacher {requirement.teacher_id}): "
            f"{placed} of {requirement.weekly_periods} weekly periods scheduled"
        )
        return Infeasible(
            subject_id=requirement.subject_id,
            teacher_id=requirement.teacher_id,
            required=requirement.weekly_periods,
            placed=placed,
            message=message,
            backtracks=backtracks,
            subject_name=requirement.subject_name,
            last_rejection=rejection,
        )

    @staticmethod
    def _warnings(entries: list[PlannedEntry], universe: list[Slot]) -> list[str]:
        warnings: list[str] = []
        free = len(universe) - len(entries)
        if free > 0:
            warnings.append(f"{free} of {len(universe)} teaching slots left free")
        return warnings


def _resolve_room(requirement: Requirement, default_room: str | None) -> str:
    return (requirement.room_number or default_room or "").strip()
