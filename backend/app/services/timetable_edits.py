from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError
from app.db.repository import (
    SectionsRepository,
    SubjectsRepository,
    TeachersRepository,
    TimeTableRepository,
)
from app.models.timetable import SCHOOL_WEEK, DayOfWeek, TimeTableEntry
from app.schemas.timetable import (
    TeacherScheduleStatistics,
    TeacherTimetableEntryOut,
    TeacherTimetableOut,
    TimetableEntryOut,
    TimetableEntryCreate,
    TimetableEntryUpdate,
    parse_time_to_minutes,
)
from app.services.conflict_index import ConflictIndex
from app.services.outcomes import InvalidRange, Ok, Outcome, raise_for_outcome
from app.services.slot_validator import (
    ABSOLUTE_MAX_PERIODS,
    SlotAvailabilityValidator,
    SlotRequest,
    build_slot_validator,
)

logger = logging.getLogger(__name__)

MIN_ENTRY_MINUTES = 30
END_OF_DAY_MINUTES = 24 * 60


def validate_time_range(start_time: str, end_time: str) -> Outcome:
    start = parse_time_to_minutes(start_time)
    end = parse_time_to_minutes(end_time)
    if end > END_OF_DAY_MINUTES:
        return InvalidRange(code="InvalidTimeRange", field="end_time", message="End time must be between 00:00 and 24:00")
    if start >= end:
        return InvalidRange(code="InvalidTimeRange", field="start_time", message="Start time must be before end time")
    if end - start < MIN_ENTRY_MINUTES:
        return InvalidRange(
            code="InvalidTimeRange", field="end_time", message="Period duration must be at least 30 minutes"
        )
    return Ok()


class TimetableEditService:
    """Single-entry operations on persisted timetables.

    Every write re-runs the slot rule chain against a conflict index rebuilt
    from the live rows touching the section, teacher and room involved.
    """

    def __init__(self, db: Session, *, absolute_max_periods: int = ABSOLUTE_MAX_PERIODS) -> None:
        self.sections = SectionsRepository(db)
        self.teachers = TeachersRepository(db)
        self.subjects = SubjectsRepository(db)
        self.timetable = TimeTableRepository(db)
        self.absolute_max_periods = absolute_max_periods

    def _index_for(
        self, *, section_id: str, teacher_id: str, room_number: str, exclude_entry_id: str | None = None
    ) -> ConflictIndex:
        entries = self.timetable.conflict_snapshot(
            section_id=section_id, teacher_ids=[teacher_id], room_numbers=[room_number]
        )
        return ConflictIndex.build(entries, exclude_entry_id=exclude_entry_id)

    def _validator(self, index: ConflictIndex) -> SlotAvailabilityValidator:
        return build_slot_validator(
            section_exists=self.sections.exists,
            teacher_exists=self.teachers.exists,
            index=index,
            absolute_max_periods=self.absolute_max_periods,
        )

    def _configured_periods(self, section_id: str) -> int | None:
        section = self.sections.get_by_id(section_id)
        return section.periods_per_day if section is not None else None

    def check_slot_availability(
        self,
        *,
        section_id: str,
        teacher_id: str,
        room_number: str,
        day_of_week: str | DayOfWeek,
        period_number: int,
        exclude_entry_id: str | None = None,
    ) -> Outcome:
        request = SlotRequest(
            section_id=section_id,
            teacher_id=teacher_id,
            room_number=room_number,
            day_of_week=day_of_week,
            period_number=period_number,
            periods_per_day=self._configured_periods(section_id),
        )
        index = self._index_for(
            section_id=section_id,
            teacher_id=teacher_id,
            room_number=room_number,
            exclude_entry_id=exclude_entry_id,
        )
        outcome = self._validator(index).validate(request)
        if not outcome.ok:
            logger.info(
                "SLOT REJECTED | section_id=%s | teacher_id=%s | day=%s | period=%s | reason=%s",
                section_id,
                teacher_id,
                day_of_week,
                period_number,
                getattr(outcome, "code", type(outcome).__name__),
            )
        return outcome

    def create_entry(self, payload: TimetableEntryCreate) -> TimeTableEntry:
        if self.subjects.get_by_id(payload.subject_id) is None:
            raise ResourceNotFoundError("Subject", payload.subject_id, code="SubjectNotFound")
        room_number = payload.room_number
        if not room_number:
            section = self.sections.get_by_id(payload.section_id)
            room_number = section.room_number if section is not None else ""
        raise_for_outcome(
            self.check_slot_availability(
                section_id=payload.section_id,
                teacher_id=payload.teacher_id,
                room_number=room_number,
                day_of_week=payload.day_of_week,
                period_number=payload.period_number,
            )
        )
        raise_for_outcome(validate_time_range(payload.start_time, payload.end_time))

        entry = self.timetable.add_entry(
            section_id=payload.section_id,
            subject_id=payload.subject_id,
            teacher_id=payload.teacher_id,
            day_of_week=DayOfWeek.parse(payload.day_of_week),
            period_number=payload.period_number,
            start_time=payload.start_time,
            end_time=payload.end_time,
            room_number=room_number.strip(),
        )
        logger.info(
            "TIMETABLE ENTRY CREATED | entry_id=%s | section_id=%s | day=%s | period=%s",
            entry.id,
            entry.section_id,
            entry.day_of_week.value,
            entry.period_number,
        )
        return entry

    def update_entry(self, entry_id: str, payload: TimetableEntryUpdate) -> TimeTableEntry:
        entry = self.timetable.get_by_id(entry_id)
        if entry is None:
            raise ResourceNotFoundError("TimeTableEntry", entry_id, code="EntryNotFound")
        if self.subjects.get_by_id(payload.subject_id) is None:
            raise ResourceNotFoundError("Subject", payload.subject_id, code="SubjectNotFound")

        # The slot stays fixed; the index leaves this entry out so it cannot clash with itself.
        raise_for_outcome(
            self.check_slot_availability(
                section_id=entry.section_id,
                teacher_id=payload.teacher_id,
                room_number=payload.room_number,
                day_of_week=entry.day_of_week,
                period_number=entry.period_number,
                exclude_entry_id=entry.id,
            )
        )
        raise_for_outcome(validate_time_range(payload.start_time, payload.end_time))

        updated = self.timetable.update_entry(
            entry,
            subject_id=payload.subject_id,
            teacher_id=payload.teacher_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            room_number=payload.room_number.strip(),
        )
        logger.info("TIMETABLE ENTRY UPDATED | entry_id=%s | teacher_id=%s", updated.id, updated.teacher_id)
        return updated

    def delete_entry(self, entry_id: str) -> None:
        entry = self.timetable.get_by_id(entry_id)
        if entry is None:
            raise ResourceNotFoundError("TimeTableEntry", entry_id, code="EntryNotFound")
        self.timetable.soft_delete(entry)
        logger.info("TIMETABLE ENTRY DELETED | entry_id=%s | section_id=%s", entry.id, entry.section_id)

    def section_timetable(self, section_id: str):
        section = self.sections.get_by_id(section_id)
        if section is None:
            raise ResourceNotFoundError("Section", section_id, code="InvalidSection")
        return section, self.timetable.get_entries_for_section(section_id)

    def teacher_timetable(self, teacher_id: str) -> TeacherTimetableOut:
        teacher = self.teachers.get_by_id(teacher_id)
        if teacher is None:
            raise ResourceNotFoundError("Teacher", teacher_id, code="TeacherNotFound")
        entries = self.timetable.get_by_teacher(teacher_id)
        subjects = self.subjects.get_many(entry.subject_id for entry in entries)

        schedule: dict[str, list[TeacherTimetableEntryOut]] = {day.value: [] for day in SCHOOL_WEEK}
        for entry in entries:
            day = DayOfWeek.parse(entry.day_of_week)
            if day.value not in schedule:
                continue
            subject = subjects.get(entry.subject_id)
            schedule[day.value].append(
                TeacherTimetableEntryOut(
                    **TimetableEntryOut.model_validate(entry).model_dump(),
                    section_name=entry.section.name if entry.section else "Unknown",
                    class_name=entry.section.class_name if entry.section else "Unknown",
                    subject_name=subject.name if subject else "Unknown",
                    duration_minutes=parse_time_to_minutes(entry.end_time) - parse_time_to_minutes(entry.start_time),
                )
            )

        return TeacherTimetableOut(
            teacher_id=teacher.id,
            teacher_name=teacher.full_name,
            email=teacher.email,
            schedule=schedule,
            statistics=schedule_statistics(entries),
            total_periods_per_week=len(entries),
            last_updated=_last_updated(entries),
        )


def schedule_statistics(entries: list[TimeTableEntry]) -> TeacherScheduleStatistics:
    if not entries:
        return TeacherScheduleStatistics()
    per_day = Counter(DayOfWeek.parse(entry.day_of_week).value for entry in entries)
    busiest_day, _ = max(per_day.items(), key=lambda item: (item[1], -DayOfWeek(item[0]).position))
    return TeacherScheduleStatistics(
        total_periods_per_week=len(entries),
        periods_per_day={day.value: per_day.get(day.value, 0) for day in SCHOOL_WEEK},
        total_sections=len({entry.section_id for entry in entries}),
        total_subjects=len({entry.subject_id for entry in entries}),
        busiest_day=busiest_day,
        average_periods_per_day=round(len(entries) / len(SCHOOL_WEEK), 2),
    )


def _last_updated(entries: list[TimeTableEntry]) -> datetime | None:
    stamps = [entry.updated_at or entry.created_at for entry in entries if (entry.updated_at or entry.created_at)]
    return max(stamps) if stamps else None
