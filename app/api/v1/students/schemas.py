from typing import List, Optional, Set

from pydantic import BaseModel, Field


class StudentUpsert(BaseModel):
    prn: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    mobile: Optional[str] = None
    parent_mobile: Optional[str] = None
    batch_id: Optional[str] = None


class StudentResponse(BaseModel):
    prn: str
    name: str
    email: Optional[str] = None
    mobile: Optional[str] = None
    parent_mobile: Optional[str] = None
    batch_id: Optional[str] = None

    class Config:
        from_attributes = True


class ImportRowError(BaseModel):
    row: int = Field(..., description="1-based position of the row in the uploaded file")
    reason: str


class ImportReport(BaseModel):
    """Outcome of a bulk import. Rows are independent: good rows are kept even when others fail."""

    success_count: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)
    batches: Set[str] = Field(default_factory=set)
