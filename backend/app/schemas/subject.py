from pydantic import BaseModel, Field


class SubjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=50)


class SubjectOut(SubjectCreate):
    id: str

    model_config = {"from_attributes": True}
