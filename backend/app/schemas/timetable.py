from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
END_TIME_PATTERN = re.compile(r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$")


def parse_time_to_minutes(value: str) -> int:
    if not END_TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    hours, minutes = divmod(total, 60)
    return f"{hours:02d}:{minutes:02d}"


class GenerateTimetableRequest(BaseModel):
    section_id: str = Field(min_length=1, max_length=36)
    # Range checks happen in the academic config validator so every violation is reported together.
    periods_per_day: int | None = None
    period_duration_minutes: int | None = None
    break_after_period: int | None = None
    break_duration_minutes: int | None = None
    school_start_time: str | None = None
    working_days: list[str] | None = None
    overwrite_existing: bool = False
    persist: bool = True


class TimetableEntryOut(BaseModel):
    id: str | None = None
    section_id: str
    subject_id: str
    teacher_id: str
    day_of_week: str
    period_number: int
    start_time: str
    end_time: str
    room_number: str

    model_config = {"from_attributes": True}

    @field_validator("day_of_week", mode="before")
    @classmethod
    def day_value(cls, value) -> str:
        return getattr(value, "value", value)


class GenerateTimetableResponse(BaseModel):
    section_id: str
    entries_created: int
    slots_available: int
    backtracks: int
    persisted: bool
    replaced_entries: int = 0
    warnings: list[str] = Field(default_factory=list)
    entries: list[TimetableEntryOut] = Field(default_factory=list)


class SlotAvailabilityRequest(BaseModel):
    section_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    room_number: str = ""
    # Validated by the rule chain so unknown days and Sunday surface as InvalidDayOfWeek.
    day_of_week: str
    period_number: int


class SlotAvailabilityResponse(BaseModel):
    available: bool
    message: str


class _TimeRangeFields(BaseModel):
    start_time: str
    end_time: str

    @field_validator("start_time")
    @classmethod
    def validate_start_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Start time must be between 00:00 and 23:59")
        return value

    @field_validator("end_time")
    @classmethod
    def validate_end_format(cls, value: str) -> str:
        if not END_TIME_PATTERN.match(value):
            raise ValueError("End time must be between 00:00 and 24:00")
        return value


class TimetableEntryCreate(_TimeRangeFields):
    section_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    day_of_week: str
    period_number: int
    room_number: str | None = None


class TimetableEntryUpdate(_TimeRangeFields):
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    room_number: str


class SectionTimetableOut(BaseModel):
    section_id: str
    section_name: str
    total_entries: int
    entries: list[TimetableEntryOut] = Field(default_factory=list)


class TeacherTimetableEntryOut(TimetableEntryOut):
    section_name: str = "Unknown"
    class_name: str = "Unknown"
    subject_name: str = "Unknown"
    duration_minutes: int


class TeacherScheduleStatistics(BaseModel):
    total_periods_per_week: int = 0
    periods_per_day: dict[str, int] = Field(default_factory=dict)
    total_sections: int = 0
    total_subjects: int = 0
    busiest_day: str | None = None
    average_periods_per_day: float = 0.0


class TeacherTimetableOut(BaseModel):
    teacher_id: str
    teacher_name: str
    email: str
    schedule: dict[str, list[TeacherTimetableEntryOut]]
    statistics: TeacherScheduleStatistics
    total_periods_per_week: int
    last_updated: datetime | None = None
