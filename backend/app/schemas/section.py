from pydantic import BaseModel, Field, field_validator


def _normalize_room(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Room number is required")
    return trimmed


def _reject_null(value):
    if value is None:
        raise ValueError("Field cannot be null")
    return value


class SectionBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    class_name: str = Field(default="", max_length=100)
    room_number: str = Field(min_length=1, max_length=20)
    is_active: bool = True

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str) -> str:
        return _normalize_room(value)


class SectionCreate(SectionBase):
    pass


class SectionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    class_name: str | None = Field(default=None, max_length=100)
    room_number: str | None = Field(default=None, min_length=1, max_length=20)
    is_active: bool | None = None

    # Omitted fields keep their value; an explicit null would clear a required column.
    @field_validator("name", "class_name", "room_number", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str | None) -> str | None:
        return _normalize_room(value)


class SectionOut(SectionBase):
    id: str
    periods_per_day: int | None = None

    model_config = {"from_attributes": True}


class SectionSubjectCreate(BaseModel):
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    weekly_periods: int = Field(ge=1, le=20)
    is_mandatory: bool = True
    room_number: str | None = Field(default=None, min_length=1, max_length=20)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str | None) -> str | None:
        return _normalize_room(value)


class SectionSubjectUpdate(BaseModel):
    teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    weekly_periods: int | None = Field(default=None, ge=1, le=20)
    is_mandatory: bool | None = None
    room_number: str | None = Field(default=None, min_length=1, max_length=20)

    # A null room_number clears the override and falls back to the section's room.
    @field_validator("teacher_id", "weekly_periods", "is_mandatory", mode="before")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str | None) -> str | None:
        return _normalize_room(value)


class SectionSubjectOut(BaseModel):
    id: str
    section_id: str
    subject_id: str
    teacher_id: str
    weekly_periods: int
    is_mandatory: bool
    room_number: str | None = None

    model_config = {"from_attributes": True}
