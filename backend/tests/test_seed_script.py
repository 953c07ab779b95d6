import importlib.util
from pathlib import Path

from app.db.repository import SectionSubjectsRepository
from app.models.section import Section
from app.services.academic_config import AcademicConfig, validate_academic_config
from app.services.timetable_generator import GenerationResult, Requirement, TimetableGenerator

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "seed_school_data.py"


def load_seed_module():
    spec = importlib.util.spec_from_file_location("seed_school_data", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_seed_is_idempotent(db_session):
    seed = load_seed_module().seed

    first = seed(db_session)
    second = seed(db_session)

    assert first == second == {"teachers": 5, "subjects": 5, "sections": 3, "section_subjects": 12}


def test_seeded_sections_fit_the_default_week(db_session):
    load_seed_module().seed(db_session)
    config = validate_academic_config(
        periods_per_day=8,
        period_duration_minutes=45,
        break_after_period=4,
        break_duration_minutes=30,
        school_start_time="08:00",
        working_days=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
    )
    assert isinstance(config, AcademicConfig)

    section = db_session.query(Section).filter(Section.name == "6-A").one()
    requirements = [
        Requirement(mapping.subject_id, mapping.teacher_id, mapping.weekly_periods)
        for mapping in SectionSubjectsRepository(db_session).get_by_section(section.id)
    ]
    result = TimetableGenerator(config).generate(section.id, requirements, default_room=section.room_number)

    assert isinstance(result, GenerationResult)
    assert len(result.entries) == 18
