from types import SimpleNamespace

from app.models.timetable import DayOfWeek
from app.services.conflict_index import ConflictIndex, Slot


def make_entry(entry_id="e1", section="S1", teacher="T1", room="101", day=DayOfWeek.monday, period=1, **extra):
    return SimpleNamespace(
        id=entry_id,
        section_id=section,
        teacher_id=teacher,
        room_number=room,
        day_of_week=day,
        period_number=period,
        is_deleted=extra.get("is_deleted", False),
    )


MON_1 = Slot(DayOfWeek.monday, 1)
MON_2 = Slot(DayOfWeek.monday, 2)


def test_build_indexes_teacher_section_and_room():
    index = ConflictIndex.build([make_entry()])

    assert index.is_teacher_busy("T1", MON_1)
    assert index.is_section_slot_taken("S1", MON_1)
    assert index.is_room_busy("101", MON_1)
    assert not index.is_teacher_busy("T1", MON_2)
    assert not index.is_teacher_busy("T2", MON_1)


def test_room_lookup_ignores_case_and_whitespace():
    index = ConflictIndex.build([make_entry(room=" lab-a ")])
    assert index.is_room_busy("LAB-A", MON_1)


def test_soft_deleted_and_excluded_entries_are_skipped():
    entries = [
        make_entry("gone", is_deleted=True),
        make_entry("self", teacher="T2", period=2),
    ]
    index = ConflictIndex.build(entries, exclude_entry_id="self")

    assert not index.is_teacher_busy("T1", MON_1)
    assert not index.is_teacher_busy("T2", MON_2)
    assert not index.is_section_slot_taken("S1", MON_2)


def test_string_days_are_normalised():
    index = ConflictIndex.build([make_entry(day="Tuesday", period=3)])
    assert index.is_teacher_busy("T1", Slot(DayOfWeek.tuesday, 3))


def test_record_and_release():
    index = ConflictIndex()
    entry = make_entry()
    index.record(entry)
    assert index.teacher_occupant("T1", MON_1) is entry

    index.release(entry)
    assert not index.is_teacher_busy("T1", MON_1)
    assert not index.is_section_slot_taken("S1", MON_1)
    assert not index.is_room_busy("101", MON_1)


def test_release_leaves_a_different_occupant_in_place():
    index = ConflictIndex()
    first = make_entry("a")
    second = make_entry("b", section="S2")
    index.record(first)
    index.record(second)

    index.release(first)
    # the teacher and room slots now belong to the second entry
    assert index.teacher_occupant("T1", MON_1) is second
    assert index.room_occupant("101", MON_1) is second
    assert not index.is_section_slot_taken("S1", MON_1)


def test_slot_sets():
    index = ConflictIndex.build([make_entry(), make_entry("e2", period=2)])
    assert index.teacher_slots("T1") == {MON_1, MON_2}
    assert index.section_slots("S1") == {MON_1, MON_2}
    assert index.teacher_slots("nobody") == set()
    assert MON_1.label() == "Monday Period 1"
