from pydantic import BaseModel
from typing import List, Optional
import datetime

from models.target import TargetSet

class DailyAchievement(BaseModel):
    date: datetime.date
    is_active_day: bool
    memorization_lines: float = 0.0
    revision_pages: float = 0.0
    consolidation_pages: float = 0.0
    target_met: bool = False

class AchievementHistory(BaseModel):
    student_id: int
    from_date: datetime.date
    to_date: datetime.date
    target: Optional[TargetSet] = None
    daily_achievements: List[DailyAchievement] = []
    current_streak: int = 0
    longest_streak: int = 0
    last_met_date: Optional[datetime.date] = None

class StudentStreak(BaseModel):
    rank: int
    student_id: int
    student_name: str
    halaqa_id: Optional[int] = None
    halaqa_name: str = ""
    current_streak: int
    longest_streak: int
    is_streak_active: bool
    last_streak_date: Optional[datetime.date] = None

class StreakLeaderboard(BaseModel):
    students: List[StudentStreak] = []
    total_students_in_scope: int = 0
    students_with_active_streaks: int = 0
    filtered_by_halaqa: Optional[str] = None

class HalaqaCoverage(BaseModel):
    halaqat_with_targets: int = 0
    total_halaqat: int = 0

class TeacherCoverage(BaseModel):
    teachers_with_targets: int = 0
    total_teachers: int = 0

class HalaqaTargetStats(BaseModel):
    halaqa_id: int
    halaqa_name: str
    students_with_targets: int
    total_students: int
    coverage_percentage: float

class TargetAdoptionOverview(BaseModel):
    coverage_percentage: float = 0.0
    students_with_targets: int = 0
    total_students: int = 0
    weekly_change_percentage: float = 0.0
    halaqa_coverage: HalaqaCoverage = HalaqaCoverage()
    teacher_coverage: TeacherCoverage = TeacherCoverage()
    activation_rate: float = 0.0
    halaqa_breakdown: List[HalaqaTargetStats] = []

class AchievementCategory(BaseModel):
    achieved: float = 0.0
    target: float = 0.0
    percentage: float = 0.0
    unit: str

class DayAchievementStatus(BaseModel):
    date: datetime.date
    target_met: bool
    percentage: float

class WeekSummary(BaseModel):
    days: List[DayAchievementStatus] = []
    days_target_met: int = 0
    total_days: int = 0

class DailyAchievementStats(BaseModel):
    from_date: datetime.date
    to_date: datetime.date
    total_students: int = 0
    students_with_targets: int = 0
    memorization: AchievementCategory = AchievementCategory(unit="lines")
    revision: AchievementCategory = AchievementCategory(unit="pages")
    consolidation: AchievementCategory = AchievementCategory(unit="pages")
    week_summary: WeekSummary = WeekSummary()
