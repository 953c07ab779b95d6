from app.db.repository import TimeTableRepository
from app.models.section import Section

WEEK_CONFIG = {
    "periods_per_day": 6,
    "period_duration_minutes": 45,
    "break_after_period": 3,
    "break_duration_minutes": 30,
    "school_start_time": "08:00",
    "working_days": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
}


def create_section(client, name="6-A", room="101"):
    response = client.post("/api/sections/", json={"name": name, "class_name": "Grade 6", "room_number": room})
    assert response.status_code == 201
    return response.json()


def create_teacher(client, name="Asha Rao", email="asha@example.com"):
    response = client.post("/api/teachers/", json={"full_name": name, "email": email})
    assert response.status_code == 201
    return response.json()


def create_subject(client, name="Mathematics", code="MATH"):
    response = client.post("/api/subjects/", json={"name": name, "code": code})
    assert response.status_code == 201
    return response.json()


def map_subject(client, section_id, subject_id, teacher_id, weekly_periods=5):
    response = client.post(
        f"/api/sections/{section_id}/subjects",
        json={"subject_id": subject_id, "teacher_id": teacher_id, "weekly_periods": weekly_periods},
    )
    assert response.status_code == 201
    return response.json()


def generate(client, section_id, **extra):
    return client.post("/api/timetable/generate", json={"section_id": section_id, **WEEK_CONFIG, **extra})


def seeded_section(client, name="6-A", room="101", teacher=None, subject=None, weekly_periods=5):
    section = create_section(client, name=name, room=room)
    teacher = teacher or create_teacher(client)
    subject = subject or create_subject(client)
    map_subject(client, section["id"], subject["id"], teacher["id"], weekly_periods)
    return section, teacher, subject


def test_generate_persists_a_full_timetable(client):
    section, teacher, _ = seeded_section(client)

    response = generate(client, section["id"])
    assert response.status_code == 200
    payload = response.json()
    assert payload["entries_created"] == 5
    assert payload["persisted"] is True
    assert payload["slots_available"] == 25
    assert {entry["day_of_week"] for entry in payload["entries"]} == set(WEEK_CONFIG["working_days"])
    assert all(entry["period_number"] == 1 for entry in payload["entries"])

    timetable = client.get(f"/api/timetable/sections/{section['id']}")
    assert timetable.status_code == 200
    body = timetable.json()
    assert body["total_entries"] == 5
    assert [entry["day_of_week"] for entry in body["entries"]] == WEEK_CONFIG["working_days"]
    assert body["entries"][0]["start_time"] == "08:00"
    assert body["entries"][0]["teacher_id"] == teacher["id"]

    stored = client.get(f"/api/sections/{section['id']}").json()
    assert stored["periods_per_day"] == 6


def test_preview_does_not_persist(client):
    section, _, _ = seeded_section(client)

    response = generate(client, section["id"], persist=False)
    assert response.status_code == 200
    assert response.json()["entries_created"] == 5
    assert all(entry["id"] is None for entry in response.json()["entries"])
    assert client.get(f"/api/timetable/sections/{section['id']}").json()["total_entries"] == 0


def test_regeneration_requires_overwrite(client):
    section, _, _ = seeded_section(client)
    assert generate(client, section["id"]).status_code == 200

    blocked = generate(client, section["id"])
    assert blocked.status_code == 409
    assert blocked.json()["details"]["code"] == "TimetableExists"

    replaced = generate(client, section["id"], overwrite_existing=True)
    assert replaced.status_code == 200
    assert replaced.json()["replaced_entries"] == 5
    assert client.get(f"/api/timetable/sections/{section['id']}").json()["total_entries"] == 5


def test_generate_error_responses(client):
    missing = generate(client, "no-such-section")
    assert missing.status_code == 404
    assert missing.json()["details"]["code"] == "InvalidSection"

    section = create_section(client)
    unmapped = generate(client, section["id"])
    assert unmapped.status_code == 400
    assert unmapped.json()["details"]["code"] == "NoSubjectsMapped"

    invalid = client.post(
        "/api/timetable/generate",
        json={"section_id": section["id"], "periods_per_day": 12, "working_days": ["Sunday"]},
    )
    assert invalid.status_code == 422
    details = invalid.json()["details"]
    assert details["code"] == "ConfigInvalid"
    fields = {violation["field"] for violation in details["violations"]}
    assert {"periods_per_day", "working_days"} <= fields


def test_infeasible_generation_persists_nothing(client):
    section, _, _ = seeded_section(client, weekly_periods=5)

    response = client.post(
        "/api/timetable/generate",
        json={
            "section_id": section["id"],
            "periods_per_day": 4,
            "break_after_period": 4,
            "working_days": ["Monday"],
        },
    )
    assert response.status_code == 422
    details = response.json()["details"]
    assert details["code"] == "Infeasible"
    assert details["required"] == 5
    assert details["placed"] == 3
    assert "Mathematics" in response.json()["message"]
    assert details["last_rejection"].startswith("Section already has a class")
    assert client.get(f"/api/timetable/sections/{section['id']}").json()["total_entries"] == 0


def test_second_section_avoids_shared_teacher(client):
    first, teacher, subject = seeded_section(client)
    assert generate(client, first["id"]).status_code == 200

    second, _, _ = seeded_section(client, name="6-B", room="102", teacher=teacher, subject=subject)
    response = generate(client, second["id"])
    assert response.status_code == 200
    assert all(entry["period_number"] == 2 for entry in response.json()["entries"])


def test_slot_check_reports_teacher_conflict(client):
    first, teacher, _ = seeded_section(client)
    assert generate(client, first["id"]).status_code == 200
    second = create_section(client, name="6-B", room="102")

    busy = client.post(
        "/api/timetable/slots/check",
        json={
            "section_id": second["id"],
            "teacher_id": teacher["id"],
            "room_number": "102",
            "day_of_week": "Monday",
            "period_number": 1,
        },
    )
    assert busy.status_code == 409
    details = busy.json()["details"]
    assert details["code"] == "SlotConflict"
    assert details["resource"] == "teacher"
    assert details["conflicting_section_id"] == first["id"]

    free = client.post(
        "/api/timetable/slots/check",
        json={
            "section_id": second["id"],
            "teacher_id": teacher["id"],
            "room_number": "102",
            "day_of_week": "Monday",
            "period_number": 2,
        },
    )
    assert free.status_code == 200
    assert free.json()["available"] is True


def test_slot_check_rule_errors(client):
    section = create_section(client)
    teacher = create_teacher(client)
    base = {
        "section_id": section["id"],
        "teacher_id": teacher["id"],
        "room_number": "101",
        "day_of_week": "Monday",
        "period_number": 1,
    }

    sunday = client.post("/api/timetable/slots/check", json={**base, "day_of_week": "Sunday"})
    assert sunday.status_code == 422
    assert sunday.json()["details"]["code"] == "InvalidDayOfWeek"

    period = client.post("/api/timetable/slots/check", json={**base, "period_number": 0})
    assert period.json()["details"]["code"] == "InvalidPeriodNumber"

    unknown = client.post("/api/timetable/slots/check", json={**base, "teacher_id": "ghost"})
    assert unknown.status_code == 404
    assert unknown.json()["details"]["code"] == "TeacherNotFound"


def _create_entry(client, section, teacher, subject, **overrides):
    payload = {
        "section_id": section["id"],
        "subject_id": subject["id"],
        "teacher_id": teacher["id"],
        "day_of_week": "Tuesday",
        "period_number": 2,
        "start_time": "08:45",
        "end_time": "09:30",
    }
    payload.update(overrides)
    return client.post("/api/timetable/entries", json=payload)


def test_manual_entry_lifecycle(client):
    section = create_section(client)
    teacher = create_teacher(client)
    subject = create_subject(client)

    created = _create_entry(client, section, teacher, subject)
    assert created.status_code == 201
    entry = created.json()
    assert entry["room_number"] == "101"

    clash = _create_entry(client, section, teacher, subject)
    assert clash.status_code == 409
    assert clash.json()["details"]["resource"] == "section"

    # editing an entry in place must not clash with itself
    updated = client.put(
        f"/api/timetable/entries/{entry['id']}",
        json={
            "subject_id": subject["id"],
            "teacher_id": teacher["id"],
            "room_number": "Lab-2",
            "start_time": "08:45",
            "end_time": "09:30",
        },
    )
    assert updated.status_code == 200
    assert updated.json()["room_number"] == "Lab-2"
    assert updated.json()["day_of_week"] == "Tuesday"

    deleted = client.delete(f"/api/timetable/entries/{entry['id']}")
    assert deleted.status_code == 204
    again = client.delete(f"/api/timetable/entries/{entry['id']}")
    assert again.status_code == 404

    # the slot is free again once the entry is soft-deleted
    assert _create_entry(client, section, teacher, subject).status_code == 201


def test_update_rejects_bad_time_ranges_and_busy_teachers(client):
    section = create_section(client)
    other = create_section(client, name="6-B", room="102")
    teacher = create_teacher(client)
    colleague = create_teacher(client, name="Ben Ode", email="ben@example.com")
    subject = create_subject(client)

    entry = _create_entry(client, section, teacher, subject).json()
    assert _create_entry(client, other, colleague, subject).status_code == 201

    body = {
        "subject_id": subject["id"],
        "teacher_id": teacher["id"],
        "room_number": "101",
        "start_time": "09:00",
        "end_time": "09:20",
    }
    short = client.put(f"/api/timetable/entries/{entry['id']}", json=body)
    assert short.status_code == 422
    assert short.json()["details"]["code"] == "InvalidTimeRange"

    reversed_range = client.put(
        f"/api/timetable/entries/{entry['id']}", json={**body, "start_time": "10:00", "end_time": "09:00"}
    )
    assert reversed_range.json()["details"]["code"] == "InvalidTimeRange"

    end_of_day = client.put(
        f"/api/timetable/entries/{entry['id']}", json={**body, "start_time": "23:00", "end_time": "24:00"}
    )
    assert end_of_day.status_code == 200

    busy = client.put(
        f"/api/timetable/entries/{entry['id']}",
        json={**body, "teacher_id": colleague["id"], "start_time": "08:45", "end_time": "09:30"},
    )
    assert busy.status_code == 409
    assert busy.json()["details"]["resource"] == "teacher"

    missing = client.put("/api/timetable/entries/does-not-exist", json=body)
    assert missing.status_code == 404


def test_manual_entry_respects_configured_periods(client):
    section, teacher, subject = seeded_section(client)
    assert generate(client, section["id"]).status_code == 200

    response = _create_entry(client, section, teacher, subject, period_number=7)
    assert response.status_code == 422
    assert response.json()["details"]["code"] == "InvalidPeriodNumber"


def test_teacher_timetable_projection(client):
    section, teacher, _ = seeded_section(client)
    assert generate(client, section["id"]).status_code == 200

    response = client.get(f"/api/timetable/teachers/{teacher['id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["teacher_name"] == "Asha Rao"
    assert body["total_periods_per_week"] == 5
    assert body["schedule"]["Saturday"] == []
    monday = body["schedule"]["Monday"][0]
    assert monday["section_name"] == "6-A"
    assert monday["subject_name"] == "Mathematics"
    assert monday["duration_minutes"] == 45
    stats = body["statistics"]
    assert stats["total_sections"] == 1
    assert stats["total_subjects"] == 1
    assert stats["busiest_day"] == "Monday"
    assert stats["average_periods_per_day"] == 0.83


def test_teacher_timetable_empty_and_missing(client):
    teacher = create_teacher(client)
    empty = client.get(f"/api/timetable/teachers/{teacher['id']}")
    assert empty.status_code == 200
    assert empty.json()["total_periods_per_week"] == 0
    assert empty.json()["statistics"]["busiest_day"] is None

    missing = client.get("/api/timetable/teachers/ghost")
    assert missing.status_code == 404


def test_persist_time_uniqueness_violation_is_a_conflict(client, monkeypatch):
    first, teacher, subject = seeded_section(client)
    assert generate(client, first["id"]).status_code == 200
    second, _, _ = seeded_section(client, name="6-B", room="102", teacher=teacher, subject=subject)

    # Simulate a stale snapshot: the other section's bookings are not seen before saving.
    monkeypatch.setattr(
        TimeTableRepository,
        "get_entries_for_teachers_across_sections",
        lambda self, teacher_ids, exclude_section_id=None: [],
    )
    response = generate(client, second["id"])

    assert response.status_code == 409
    assert response.json()["details"]["code"] == "ConcurrentScheduleConflict"
    assert client.get(f"/api/timetable/sections/{second['id']}").json()["total_entries"] == 0


def test_section_update_rejects_blank_room_and_nulls(client):
    section = create_section(client)

    blank = client.put(f"/api/sections/{section['id']}", json={"room_number": "   "})
    assert blank.status_code == 422
    null_name = client.put(f"/api/sections/{section['id']}", json={"name": None})
    assert null_name.status_code == 422

    stored = client.get(f"/api/sections/{section['id']}").json()
    assert stored["room_number"] == "101"
    assert stored["name"] == "6-A"

    renamed = client.put(f"/api/sections/{section['id']}", json={"room_number": " 204 "})
    assert renamed.status_code == 200
    assert renamed.json()["room_number"] == "204"


def test_subject_mapping_rejects_blank_room_override(client):
    section, _, subject = seeded_section(client)

    blank = client.put(f"/api/sections/{section['id']}/subjects/{subject['id']}", json={"room_number": " "})
    assert blank.status_code == 422
    null_periods = client.put(f"/api/sections/{section['id']}/subjects/{subject['id']}", json={"weekly_periods": None})
    assert null_periods.status_code == 422

    cleared = client.put(f"/api/sections/{section['id']}/subjects/{subject['id']}", json={"room_number": None})
    assert cleared.status_code == 200
    assert cleared.json()["room_number"] is None


def test_generate_rejects_section_without_room(client, session_factory):
    section, _, _ = seeded_section(client)
    db = session_factory()
    try:
        db.get(Section, section["id"]).room_number = ""
        db.commit()
    finally:
        db.close()

    response = generate(client, section["id"])
    assert response.status_code == 422
    details = response.json()["details"]
    assert details["code"] == "InvalidRoomNumber"
    assert details["field"] == "room_number"
    assert client.get(f"/api/timetable/sections/{section['id']}").json()["total_entries"] == 0
