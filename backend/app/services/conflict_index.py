from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, NamedTuple

from app.models.timetable import DayOfWeek


class Slot(NamedTuple):
    day: DayOfWeek
    period: int

    def label(self) -> str:
        return f"{self.day.value} Period {self.period}"


def normalize_room(room_number: str | None) -> str:
    return (room_number or "").strip().upper()


def slot_of(entry: Any) -> Slot:
    return Slot(DayOfWeek.parse(entry.day_of_week), int(entry.period_number))


class ConflictIndex:
    """Occupancy of teachers, sections and rooms for one operation.

    Built from a snapshot of live entries and thrown away afterwards. Entries
    are any objects exposing ``section_id``, ``teacher_id``, ``room_number``,
    ``day_of_week`` and ``period_number``.
    """

    def __init__(self) -> None:
        self._teachers: dict[str, dict[Slot, Any]] = defaultdict(dict)
        self._sections: dict[str, dict[Slot, Any]] = defaultdict(dict)
        self._rooms: dict[str, dict[Slot, Any]] = defaultdict(dict)

    @classmethod
    def build(cls, entries: Iterable[Any], *, exclude_entry_id: str | None = None) -> "ConflictIndex":
        index = cls()
        for entry in entries:
            if getattr(entry, "is_deleted", False):
                continue
            if exclude_entry_id is not None and getattr(entry, "id", None) == exclude_entry_id:
                continue
            index.record(entry)
        return index

    def record(self, entry: Any) -> None:
        slot = slot_of(entry)
        self._teachers[entry.teacher_id][slot] = entry
        self._sections[entry.section_id][slot] = entry
        room = normalize_room(entry.room_number)
        if room:
            self._rooms[room][slot] = entry

    def release(self, entry: Any) -> None:
        slot = slot_of(entry)
        for bucket, key in (
            (self._teachers, entry.teacher_id),
            (self._sections, entry.section_id),
            (self._rooms, normalize_room(entry.room_number)),
        ):
            slots = bucket.get(key)
            if slots is not None and slots.get(slot) is entry:
                del slots[slot]

    def teacher_occupant(self, teacher_id: str, slot: Slot) -> Any | None:
        slots = self._teachers.get(teacher_id)
        return slots.get(slot) if slots else None

    def section_occupant(self, section_id: str, slot: Slot) -> Any | None:
        slots = self._sections.get(section_id)
        return slots.get(slot) if slots else None

    def room_occupant(self, room_number: str, slot: Slot) -> Any | None:
        slots = self._rooms.get(normalize_room(room_number))
        return slots.get(slot) if slots else None

    def is_teacher_busy(self, teacher_id: str, slot: Slot) -> bool:
        return self.teacher_occupant(teacher_id, slot) is not None

    def is_section_slot_taken(self, section_id: str, slot: Slot) -> bool:
        return self.section_occupant(section_id, slot) is not None

    def is_room_busy(self, room_number: str, slot: Slot) -> bool:
        return self.room_occupant(room_number, slot) is not None

    def teacher_slots(self, teacher_id: str) -> set[Slot]:
        return set(self._teachers.get(teacher_id, {}))

    def section_slots(self, section_id: str) -> set[Slot]:
        return set(self._sections.get(section_id, {}))
