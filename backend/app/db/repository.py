from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConcurrentScheduleConflictError
from app.models.section import Section
from app.models.section_subject import SectionSubject
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.models.timetable import DayOfWeek, TimeTableEntry
from app.services.conflict_index import normalize_room

logger = logging.getLogger(__name__)


class SectionsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, section_id: str) -> Section | None:
        return self.db.get(Section, section_id)

    def exists(self, section_id: str) -> bool:
        return self.get_by_id(section_id) is not None


class TeachersRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, teacher_id: str) -> Teacher | None:
        return self.db.get(Teacher, teacher_id)

    def exists(self, teacher_id: str) -> bool:
        return self.get_by_id(teacher_id) is not None


class SubjectsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, subject_id: str) -> Subject | None:
        return self.db.get(Subject, subject_id)

    def get_many(self, subject_ids: Iterable[str]) -> dict[str, Subject]:
        ids = set(subject_ids)
        if not ids:
            return {}
        rows = self.db.execute(select(Subject).where(Subject.id.in_(ids))).scalars()
        return {subject.id: subject for subject in rows}


class SectionSubjectsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_section(self, section_id: str) -> list[SectionSubject]:
        query = (
            select(SectionSubject)
            .where(SectionSubject.section_id == section_id)
            .order_by(SectionSubject.created_at, SectionSubject.id)
        )
        return list(self.db.execute(query).scalars())

    def get_mapping(self, section_id: str, subject_id: str) -> SectionSubject | None:
        query = select(SectionSubject).where(
            SectionSubject.section_id == section_id,
            SectionSubject.subject_id == subject_id,
        )
        return self.db.execute(query).scalar_one_or_none()


class TimeTableRepository:
    """Reads only ever see live (not soft-deleted) entries."""

    def __init__(self, db: Session):
        self.db = db

    def _live(self):
        return select(TimeTableEntry).where(TimeTableEntry.is_deleted.is_(False))

    def get_by_id(self, entry_id: str) -> TimeTableEntry | None:
        return self.db.execute(self._live().where(TimeTableEntry.id == entry_id)).scalar_one_or_none()

    def get_entries_for_section(self, section_id: str) -> list[TimeTableEntry]:
        rows = self.db.execute(self._live().where(TimeTableEntry.section_id == section_id)).scalars()
        return sort_entries(rows)

    def get_by_teacher(self, teacher_id: str) -> list[TimeTableEntry]:
        rows = self.db.execute(self._live().where(TimeTableEntry.teacher_id == teacher_id)).scalars()
        return sort_entries(rows)

    def get_entries_for_teachers_across_sections(
        self, teacher_ids: Iterable[str], *, exclude_section_id: str | None = None
    ) -> list[TimeTableEntry]:
        ids = set(teacher_ids)
        if not ids:
            return []
        query = self._live().where(TimeTableEntry.teacher_id.in_(ids))
        if exclude_section_id is not None:
            query = query.where(TimeTableEntry.section_id != exclude_section_id)
        return list(self.db.execute(query).scalars())

    def get_entries_for_rooms(
        self, room_numbers: Iterable[str], *, exclude_section_id: str | None = None
    ) -> list[TimeTableEntry]:
        rooms = {normalize_room(room) for room in room_numbers if normalize_room(room)}
        if not rooms:
            return []
        query = self._live().where(func.upper(func.trim(TimeTableEntry.room_number)).in_(rooms))
        if exclude_section_id is not None:
            query = query.where(TimeTableEntry.section_id != exclude_section_id)
        return list(self.db.execute(query).scalars())

    def conflict_snapshot(
        self, *, section_id: str, teacher_ids: Iterable[str], room_numbers: Iterable[str]
    ) -> list[TimeTableEntry]:
        """Every live entry that could clash with the given section, teachers or rooms."""
        rooms = {normalize_room(room) for room in room_numbers if normalize_room(room)}
        clauses = [TimeTableEntry.section_id == section_id]
        teacher_set = set(teacher_ids)
        if teacher_set:
            clauses.append(TimeTableEntry.teacher_id.in_(teacher_set))
        if rooms:
            clauses.append(func.upper(func.trim(TimeTableEntry.room_number)).in_(rooms))
        return list(self.db.execute(self._live().where(or_(*clauses))).scalars())

    def save_entries(self, section_id: str, planned: Iterable, *, replace_existing: bool = False) -> tuple[list[TimeTableEntry], int]:
        replaced = 0
        if replace_existing:
            for entry in self.get_entries_for_section(section_id):
                self._mark_deleted(entry)
                replaced += 1
            # Retire old rows before inserting so the live-slot indexes never see both.
            self.db.flush()
        created = []
        for item in planned:
            entry = TimeTableEntry(
                section_id=item.section_id,
                subject_id=item.subject_id,
                teacher_id=item.teacher_id,
                day_of_week=item.day_of_week,
                period_number=item.period_number,
                start_time=item.start_time,
                end_time=item.end_time,
                room_number=item.room_number,
            )
            self.db.add(entry)
            created.append(entry)
        self.commit(context=f"save_entries section_id={section_id}")
        for entry in created:
            self.db.refresh(entry)
        return created, replaced

    def add_entry(self, **values) -> TimeTableEntry:
        entry = TimeTableEntry(**values)
        self.db.add(entry)
        self.commit(context=f"add_entry section_id={values.get('section_id')}")
        self.db.refresh(entry)
        return entry

    def update_entry(self, entry: TimeTableEntry, **changes) -> TimeTableEntry:
        for key, value in changes.items():
            setattr(entry, key, value)
        self.commit(context=f"update_entry id={entry.id}")
        self.db.refresh(entry)
        return entry

    def soft_delete(self, entry: TimeTableEntry) -> None:
        self._mark_deleted(entry)
        self.commit(context=f"soft_delete id={entry.id}")

    @staticmethod
    def _mark_deleted(entry: TimeTableEntry) -> None:
        entry.is_deleted = True
        entry.deleted_at = datetime.now(timezone.utc)

    def commit(self, *, context: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("TIMETABLE PERSIST CONFLICT | %s | error=%s", context, exc.orig)
            raise ConcurrentScheduleConflictError() from exc


def sort_entries(entries: Iterable[TimeTableEntry]) -> list[TimeTableEntry]:
    return sorted(entries, key=lambda entry: (DayOfWeek.parse(entry.day_of_week).position, entry.period_number))
