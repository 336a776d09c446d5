from .student import Student, StudentCreate, CurriculumPosition, Halaqa, HalaqaCreate, TeacherCreate, EnrollmentCreate
from .progress import ProgressCategory, QualityRating, ProgressCreate, ProgressEntry, StudentProgressSummary
from .target import TargetSet, BulkTargetSet, DailyTarget
from .stats import AchievementHistory, DailyAchievement, StreakLeaderboard, TargetAdoptionOverview, DailyAchievementStats

__all__ = [
    'Student', 'StudentCreate', 'CurriculumPosition', 'Halaqa', 'HalaqaCreate', 'TeacherCreate', 'EnrollmentCreate',
    'ProgressCategory', 'QualityRating', 'ProgressCreate', 'ProgressEntry', 'StudentProgressSummary',
    'TargetSet', 'BulkTargetSet', 'DailyTarget',
    'AchievementHistory', 'DailyAchievement', 'StreakLeaderboard', 'TargetAdoptionOverview', 'DailyAchievementStats',
]
