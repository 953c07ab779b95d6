from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.models.subject import Subject
from app.schemas.subject import SubjectCreate, SubjectOut

router = APIRouter()


@router.get("/", response_model=list[SubjectOut])
def list_subjects(db: Session = Depends(get_db)) -> list[SubjectOut]:
    return list(db.execute(select(Subject).order_by(Subject.code)).scalars())


@router.post("/", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)) -> SubjectOut:
    code = payload.code.strip().upper()
    existing = db.execute(select(Subject).where(Subject.code == code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject code already exists")
    subject = Subject(name=payload.name.strip(), code=code)
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject
