from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
import datetime
from enum import Enum

class ProgressCategory(str, Enum):
    MEMORIZATION = "memorization"
    REVISION = "revision"
    CONSOLIDATION = "consolidation"

class QualityRating(str, Enum):
    EXCELLENT = "excellent"
    VERY_GOOD = "very_good"
    GOOD = "good"
    ACCEPTABLE = "acceptable"

class ProgressCreate(BaseModel):
    student_id: int
    halaqa_id: int
    teacher_id: Optional[int] = None
    date: datetime.date
    category: ProgressCategory
    chapter_name: str
    from_verse: int = Field(ge=1)
    to_verse: int = Field(ge=1)
    quality: QualityRating = QualityRating.GOOD
    notes: Optional[str] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.to_verse < self.from_verse:
            raise ValueError("to_verse must be greater than or equal to from_verse")
        return self

class ProgressEntry(ProgressCreate):
    id: int
    chapter_number: int
    number_lines: float
    created_at: str

    class Config:
        from_attributes = True

class StudentProgressSummary(BaseModel):
    student_id: int
    student_name: str
    total_memorization: int
    total_revision: int
    total_consolidation: int
    total_lines: float
    last_progress_date: Optional[datetime.date] = None
    recent_progress: List[ProgressEntry] = []
