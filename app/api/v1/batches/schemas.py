from pydantic import BaseModel, Field


class BatchUpsert(BaseModel):
    batch_id: str = Field(..., min_length=1, max_length=100)
    batch_name: str = Field(..., min_length=1, max_length=255)


class BatchResponse(BaseModel):
    batch_id: str
    batch_name: str

    class Config:
        from_attributes = True


class BatchWithCount(BatchResponse):
    student_count: int = 0
