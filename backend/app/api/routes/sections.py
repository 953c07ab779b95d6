from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.db.repository import SectionSubjectsRepository
from app.models.section import Section
from app.models.section_subject import SectionSubject
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.schemas.section import (
    SectionCreate,
    SectionOut,
    SectionSubjectCreate,
    SectionSubjectOut,
    SectionSubjectUpdate,
    SectionUpdate,
)

router = APIRouter()


def _get_section(db: Session, section_id: str) -> Section:
    section = db.get(Section, section_id)
    if section is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")
    return section


def _get_mapping(db: Session, section_id: str, subject_id: str) -> SectionSubject:
    mapping = SectionSubjectsRepository(db).get_mapping(section_id, subject_id)
    if mapping is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject is not mapped to this section")
    return mapping


def _ensure_teacher(db: Session, teacher_id: str) -> None:
    if db.get(Teacher, teacher_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")


@router.get("/", response_model=list[SectionOut])
def list_sections(db: Session = Depends(get_db)) -> list[SectionOut]:
    return list(db.execute(select(Section).order_by(Section.name)).scalars())


@router.post("/", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
def create_section(payload: SectionCreate, db: Session = Depends(get_db)) -> SectionOut:
    section = Section(**payload.model_dump())
    db.add(section)
    db.commit()
    db.refresh(section)
    return section


@router.get("/{section_id}", response_model=SectionOut)
def get_section(section_id: str, db: Session = Depends(get_db)) -> SectionOut:
    return _get_section(db, section_id)


@router.put("/{section_id}", response_model=SectionOut)
def update_section(section_id: str, payload: SectionUpdate, db: Session = Depends(get_db)) -> SectionOut:
    section = _get_section(db, section_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(section, key, value)
    db.commit()
    db.refresh(section)
    return section


@router.delete("/{section_id}")
def delete_section(section_id: str, db: Session = Depends(get_db)) -> dict:
    # Timetable entries and subject mappings go with the section.
    section = _get_section(db, section_id)
    db.delete(section)
    db.commit()
    return {"success": True}


@router.get("/{section_id}/subjects", response_model=list[SectionSubjectOut])
def list_section_subjects(section_id: str, db: Session = Depends(get_db)) -> list[SectionSubjectOut]:
    _get_section(db, section_id)
    return SectionSubjectsRepository(db).get_by_section(section_id)


@router.post("/{section_id}/subjects", response_model=SectionSubjectOut, status_code=status.HTTP_201_CREATED)
def map_subject(section_id: str, payload: SectionSubjectCreate, db: Session = Depends(get_db)) -> SectionSubjectOut:
    _get_section(db, section_id)
    if db.get(Subject, payload.subject_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    _ensure_teacher(db, payload.teacher_id)
    if SectionSubjectsRepository(db).get_mapping(section_id, payload.subject_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject is already mapped to this section")

    mapping = SectionSubject(section_id=section_id, **payload.model_dump())
    db.add(mapping)
    db.commit()
    db.refresh(mapping)
    return mapping


@router.put("/{section_id}/subjects/{subject_id}", response_model=SectionSubjectOut)
def update_subject_mapping(
    section_id: str,
    subject_id: str,
    payload: SectionSubjectUpdate,
    db: Session = Depends(get_db),
) -> SectionSubjectOut:
    mapping = _get_mapping(db, section_id, subject_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("teacher_id"):
        _ensure_teacher(db, data["teacher_id"])
    for key, value in data.items():
        setattr(mapping, key, value)
    db.commit()
    db.refresh(mapping)
    return mapping


@router.delete("/{section_id}/subjects/{subject_id}")
def unmap_subject(section_id: str, subject_id: str, db: Session = Depends(get_db)) -> dict:
    mapping = _get_mapping(db, section_id, subject_id)
    db.delete(mapping)
    db.commit()
    return {"success": True}
