from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from utils.calendar import parse_active_days
from utils.curriculum import Direction

class StudentBase(BaseModel):
    name: str
    direction: Direction = Direction.FORWARD

class StudentCreate(StudentBase):
    current_chapter: Optional[int] = Field(default=None, ge=1, le=114)

class CurriculumPosition(BaseModel):
    direction: Direction
    current_chapter: int
    current_verse: int
    juz_memorized: float = 0.0

class Student(StudentBase):
    id: int
    position: CurriculumPosition

    class Config:
        from_attributes = True

class HalaqaCreate(BaseModel):
    name: str
    active_days: Optional[List[int]] = None

    @field_validator('active_days')
    @classmethod
    def validate_active_days(cls, v):
        if v is None:
            return v
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Active days must be weekday indexes 0 (Sunday) to 6 (Saturday)")
        return sorted(set(v))

class Halaqa(BaseModel):
    id: int
    name: str
    active_days: Optional[List[int]] = None

    @field_validator('active_days', mode='before')
    @classmethod
    def parse_stored_days(cls, v):
        if isinstance(v, str) or v is None:
            days = parse_active_days(v)
            return sorted(days) if days is not None else None
        return v

class TeacherCreate(BaseModel):
    name: str

class EnrollmentCreate(BaseModel):
    halaqa_id: int
    teacher_id: Optional[int] = None
