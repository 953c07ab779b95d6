"""Seed a small school with teachers, subjects and section mappings.

Run:
  PYTHONPATH=backend python scripts/seed_school_data.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from app.db.bootstrap import ensure_runtime_schema
from app.db.session import SessionLocal
from app.models.section import Section
from app.models.section_subject import SectionSubject
from app.models.subject import Subject
from app.models.teacher import Teacher

MOCK_EMAIL_DOMAIN = os.getenv("SEED_MOCK_EMAIL_DOMAIN", "school.edu").strip().lower() or "school.edu"

TEACHERS = [
    ("T-001", "Asha Rao"),
    ("T-002", "Ben Ode"),
    ("T-003", "Chitra Menon"),
    ("T-004", "Daniel Kim"),
    ("T-005", "Esther Njeri"),
]

SUBJECTS = [
    ("MATH", "Mathematics"),
    ("ENG", "English"),
    ("SCI", "Science"),
    ("SOC", "Social Studies"),
    ("ART", "Art"),
]

# section name -> (class, room, [(subject code, teacher code, weekly periods)])
SECTIONS = {
    "6-A": ("Grade 6", "101", [("MATH", "T-001", 6), ("ENG", "T-002", 5), ("SCI", "T-003", 5), ("ART", "T-005", 2)]),
    "6-B": ("Grade 6", "102", [("MATH", "T-001", 6), ("ENG", "T-002", 5), ("SOC", "T-004", 4), ("ART", "T-005", 2)]),
    "7-A": ("Grade 7", "201", [("MATH", "T-004", 6), ("SCI", "T-003", 5), ("SOC", "T-004", 4), ("ENG", "T-002", 4)]),
}


def mock_email(name: str) -> str:
    local = ".".join(part.lower() for part in name.split())
    return f"{local}@{MOCK_EMAIL_DOMAIN}"


def upsert_teachers(session) -> dict[str, Teacher]:
    teachers: dict[str, Teacher] = {}
    for code, name in TEACHERS:
        teacher = session.execute(select(Teacher).where(Teacher.employee_code == code)).scalar_one_or_none()
        if teacher is None:
            teacher = Teacher(employee_code=code, full_name=name, email=mock_email(name))
            session.add(teacher)
        else:
            teacher.full_name = name
            teacher.is_active = True
        teachers[code] = teacher
    session.flush()
    return teachers


def upsert_subjects(session) -> dict[str, Subject]:
    subjects: dict[str, Subject] = {}
    for code, name in SUBJECTS:
        subject = session.execute(select(Subject).where(Subject.code == code)).scalar_one_or_none()
        if subject is None:
            subject = Subject(code=code, name=name)
            session.add(subject)
        else:
            subject.name = name
        subjects[code] = subject
    session.flush()
    return subjects


def upsert_sections(session, teachers: dict[str, Teacher], subjects: dict[str, Subject]) -> None:
    for name, (class_name, room, requirements) in SECTIONS.items():
        section = session.execute(select(Section).where(Section.name == name)).scalar_one_or_none()
        if section is None:
            section = Section(name=name, class_name=class_name, room_number=room)
            session.add(section)
            session.flush()
        else:
            section.class_name = class_name
            section.room_number = room

        for subject_code, teacher_code, weekly_periods in requirements:
            subject = subjects[subject_code]
            mapping = session.execute(
                select(SectionSubject).where(
                    SectionSubject.section_id == section.id,
                    SectionSubject.subject_id == subject.id,
                )
            ).scalar_one_or_none()
            if mapping is None:
                mapping = SectionSubject(section_id=section.id, subject_id=subject.id)
                session.add(mapping)
            mapping.teacher_id = teachers[teacher_code].id
            mapping.weekly_periods = weekly_periods
    session.flush()


def seed(session) -> dict[str, int]:
    teachers = upsert_teachers(session)
    subjects = upsert_subjects(session)
    upsert_sections(session, teachers, subjects)
    session.commit()
    return {
        "teachers": session.execute(select(func.count(Teacher.id))).scalar_one(),
        "subjects": session.execute(select(func.count(Subject.id))).scalar_one(),
        "sections": session.execute(select(func.count(Section.id))).scalar_one(),
        "section_subjects": session.execute(select(func.count(SectionSubject.id))).scalar_one(),
    }


def main() -> None:
    ensure_runtime_schema()
    with SessionLocal() as session:
        counts = seed(session)

    print("School data seeded successfully.")
    print("")
    for label, count in counts.items():
        print(f"{label}: {count}")
    print("")
    print("Generate a timetable with POST /api/timetable/generate and a section id from GET /api/sections/.")


if __name__ == "__main__":
    main()
