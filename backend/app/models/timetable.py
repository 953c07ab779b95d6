import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base


class DayOfWeek(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @classmethod
    def parse(cls, value) -> "DayOfWeek | None":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        cleaned = value.strip().lower()
        if not cleaned:
            return None
        for day in cls:
            if cleaned == day.name or (len(cleaned) == 3 and day.name.startswith(cleaned)):
                return day
        return None

    @property
    def position(self) -> int:
        return list(DayOfWeek).index(self)


SCHOOL_WEEK: tuple[DayOfWeek, ...] = (
    DayOfWeek.monday,
    DayOfWeek.tuesday,
    DayOfWeek.wednesday,
    DayOfWeek.thursday,
    DayOfWeek.friday,
    DayOfWeek.saturday,
)


class TimeTableEntry(Base):
    __tablename__ = "timetable_entries"
    __table_args__ = (
        CheckConstraint("period_number >= 1 AND period_number <= 10", name="ck_timetable_entries_period_number"),
        CheckConstraint("start_time < end_time", name="ck_timetable_entries_time_order"),
        # Only live rows take part in the slot uniqueness guarantees.
        Index(
            "uq_timetable_entries_teacher_slot",
            "teacher_id",
            "day_of_week",
            "period_number",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted IS FALSE"),
        ),
        Index(
            "uq_timetable_entries_section_slot",
            "section_id",
            "day_of_week",
            "period_number",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted IS FALSE"),
        ),
        Index("ix_timetable_entries_room_slot", "room_number", "day_of_week", "period_number"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sections.id", ondelete="CASCADE"), index=True, nullable=False
    )
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id"), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("teachers.id"), index=True, nullable=False)
    day_of_week: Mapped[DayOfWeek] = mapped_column(SAEnum(DayOfWeek, name="day_of_week"), nullable=False)
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    section = relationship("Section", back_populates="timetable_entries")
