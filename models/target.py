from pydantic import BaseModel, Field
from typing import List, Optional
import datetime

class TargetSet(BaseModel):
    memorization_lines: Optional[int] = Field(default=None, ge=1)
    revision_pages: Optional[int] = Field(default=None, ge=1)
    consolidation_pages: Optional[int] = Field(default=None, ge=1)

class BulkTargetSet(TargetSet):
    student_ids: Optional[List[int]] = None
    teacher_id: Optional[int] = None
    halaqa_id: Optional[int] = None

class DailyTarget(TargetSet):
    student_id: int
    current_streak: int = 0
    longest_streak: int = 0
    last_streak_date: Optional[datetime.date] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True
