# Routes package __init__.py - re-exports routers for main.py convenience
from .chapters import router as chapters_router
from .students import router as students_router
from .halaqat import router as halaqat_router
from .progress import router as progress_router
from .targets import router as targets_router
from .stats import router as stats_router

__all__ = ['chapters_router', 'students_router', 'halaqat_router', 'progress_router', 'targets_router', 'stats_router']
