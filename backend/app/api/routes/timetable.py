import logging
from time import perf_counter

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import Settings, get_settings
from app.core.exceptions import AppError, ResourceNotFoundError, SchedulerError, TimetableExistsError
from app.db.repository import (
    SectionSubjectsRepository,
    SectionsRepository,
    TeachersRepository,
    TimeTableRepository,
)
from app.models.section import Section
from app.schemas.timetable import (
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    SectionTimetableOut,
    SlotAvailabilityRequest,
    SlotAvailabilityResponse,
    TeacherTimetableOut,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableEntryUpdate,
)
from app.services.academic_config import AcademicConfig, validate_academic_config
from app.services.outcomes import ConfigInvalid, Infeasible, InvalidRange, raise_for_outcome
from app.services.timetable_edits import TimetableEditService
from app.services.timetable_generator import Requirement, TimetableGenerator

router = APIRouter()
logger = logging.getLogger(__name__)


def _edit_service(db: Session) -> TimetableEditService:
    return TimetableEditService(db, absolute_max_periods=get_settings().max_periods_per_day)


def _resolve_config(payload: GenerateTimetableRequest, settings: Settings) -> AcademicConfig:
    def pick(value, default):
        return default if value is None else value

    outcome = validate_academic_config(
        periods_per_day=pick(payload.periods_per_day, settings.default_periods_per_day),
        period_duration_minutes=pick(payload.period_duration_minutes, settings.default_period_duration_minutes),
        break_after_period=pick(payload.break_after_period, settings.default_break_after_period),
        break_duration_minutes=pick(payload.break_duration_minutes, settings.default_break_duration_minutes),
        school_start_time=pick(payload.school_start_time, settings.default_school_start_time),
        working_days=pick(payload.working_days, settings.default_working_days),
    )
    if isinstance(outcome, ConfigInvalid):
        raise outcome.to_error()
    return outcome


def _load_requirements(db: Session, section: Section) -> list[Requirement]:
    mappings = SectionSubjectsRepository(db).get_by_section(section.id)
    if not mappings:
        raise SchedulerError("No subjects mapped to this section", details={"code": "NoSubjectsMapped"})
    return [
        Requirement(
            subject_id=mapping.subject_id,
            teacher_id=mapping.teacher_id,
            weekly_periods=mapping.weekly_periods,
            subject_name=mapping.subject.name if mapping.subject else None,
            room_number=mapping.room_number,
        )
        for mapping in mappings
    ]


@router.post("/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    db: Session = Depends(get_db),
) -> GenerateTimetableResponse:
    started = perf_counter()
    logger.info(
        "TIMETABLE GENERATION START | section_id=%s | persist=%s | overwrite=%s",
        payload.section_id,
        payload.persist,
        payload.overwrite_existing,
    )
    try:
        section = SectionsRepository(db).get_by_id(payload.section_id)
        if section is None:
            raise ResourceNotFoundError("Section", payload.section_id, code="InvalidSection")
        config = _resolve_config(payload, get_settings())
        requirements = _load_requirements(db, section)

        timetable = TimeTableRepository(db)
        current = timetable.get_entries_for_section(section.id)
        if current and payload.persist and not payload.overwrite_existing:
            raise TimetableExistsError(section.id, len(current))

        rooms = {section.room_number, *(item.room_number for item in requirements if item.room_number)}
        existing = timetable.get_entries_for_teachers_across_sections(
            (item.teacher_id for item in requirements), exclude_section_id=section.id
        ) + timetable.get_entries_for_rooms(rooms, exclude_section_id=section.id)

        teachers = TeachersRepository(db)
        result = TimetableGenerator(config).generate(
            section.id,
            requirements,
            existing,
            default_room=section.room_number,
            section_exists=lambda candidate: candidate == section.id,
            teacher_exists=teachers.exists,
        )
        if isinstance(result, Infeasible):
            logger.warning(
                "TIMETABLE GENERATION INFEASIBLE | section_id=%s | subject_id=%s | placed=%s | required=%s | backtracks=%s | last_rejection=%s",
                section.id,
                result.subject_id,
                result.placed,
                result.required,
                result.backtracks,
                result.last_rejection,
            )
            raise result.to_error()
        if isinstance(result, InvalidRange):
            raise result.to_error()

        entries = result.entries
        replaced = 0
        if payload.persist:
            section.periods_per_day = config.periods_per_day
            entries, replaced = timetable.save_entries(
                section.id, result.entries, replace_existing=payload.overwrite_existing
            )

        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.info(
            "TIMETABLE GENERATION COMPLETE | section_id=%s | entries=%s | slots=%s | backtracks=%s | replaced=%s | wall_ms=%s",
            section.id,
            len(entries),
            result.slots_available,
            result.backtracks,
            replaced,
            elapsed_ms,
        )
        return GenerateTimetableResponse(
            section_id=section.id,
            entries_created=len(entries),
            slots_available=result.slots_available,
            backtracks=result.backtracks,
            persisted=payload.persist,
            replaced_entries=replaced,
            warnings=result.warnings,
            entries=[TimetableEntryOut.model_validate(entry) for entry in entries],
        )
    except AppError as exc:
        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.info(
            "TIMETABLE GENERATION REJECTED | section_id=%s | status=%s | code=%s | wall_ms=%s",
            payload.section_id,
            exc.status_code,
            exc.details.get("code"),
            elapsed_ms,
        )
        raise
    except Exception:
        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.exception(
            "TIMETABLE GENERATION FAILED | section_id=%s | wall_ms=%s",
            payload.section_id,
            elapsed_ms,
        )
        raise


@router.post("/slots/check", response_model=SlotAvailabilityResponse)
def check_slot_availability(
    payload: SlotAvailabilityRequest,
    db: Session = Depends(get_db),
) -> SlotAvailabilityResponse:
    outcome = _edit_service(db).check_slot_availability(
        section_id=payload.section_id,
        teacher_id=payload.teacher_id,
        room_number=payload.room_number,
        day_of_week=payload.day_of_week,
        period_number=payload.period_number,
    )
    raise_for_outcome(outcome)
    return SlotAvailabilityResponse(available=True, message="Slot is available")


@router.post("/entries", response_model=TimetableEntryOut, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: TimetableEntryCreate,
    db: Session = Depends(get_db),
) -> TimetableEntryOut:
    return _edit_service(db).create_entry(payload)


@router.put("/entries/{entry_id}", response_model=TimetableEntryOut)
def update_entry(
    entry_id: str,
    payload: TimetableEntryUpdate,
    db: Session = Depends(get_db),
) -> TimetableEntryOut:
    return _edit_service(db).update_entry(entry_id, payload)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(entry_id: str, db: Session = Depends(get_db)) -> None:
    _edit_service(db).delete_entry(entry_id)


@router.get("/sections/{section_id}", response_model=SectionTimetableOut)
def get_section_timetable(section_id: str, db: Session = Depends(get_db)) -> SectionTimetableOut:
    section, entries = _edit_service(db).section_timetable(section_id)
    return SectionTimetableOut(
        section_id=section.id,
        section_name=section.name,
        total_entries=len(entries),
        entries=[TimetableEntryOut.model_validate(entry) for entry in entries],
    )


@router.get("/teachers/{teacher_id}", response_model=TeacherTimetableOut)
def get_teacher_timetable(teacher_id: str, db: Session = Depends(get_db)) -> TeacherTimetableOut:
    return _edit_service(db).teacher_timetable(teacher_id)
