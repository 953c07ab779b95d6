from pydantic import BaseModel, EmailStr, Field


class TeacherBase(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    employee_code: str | None = Field(default=None, min_length=1, max_length=50)
    is_active: bool = True


class TeacherCreate(TeacherBase):
    pass


class TeacherOut(TeacherBase):
    id: str

    model_config = {"from_attributes": True}
