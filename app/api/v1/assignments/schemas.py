from pydantic import BaseModel, Field


class TeacherAssignmentCreate(BaseModel):
    teacher_id: int
    batch_id: str = Field(..., min_length=1)


class TeacherAssignmentResponse(BaseModel):
    teacher_id: int
    batch_id: str

    class Config:
        from_attributes = True
