import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Section(Base):
    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    class_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    # Set when a generated timetable is saved; manual edits check periods against it.
    periods_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    section_subjects = relationship(
        "SectionSubject",
        back_populates="section",
        cascade="all, delete-orphan",
    )
    timetable_entries = relationship(
        "TimeTableEntry",
        back_populates="section",
        cascade="all, delete-orphan",
    )
