"""
Движки бота.

Содержит:
- exercises/: похожесть строк, оценка ответов, генерация упражнений
- progress.py: счётчики, серии дней, достижения, прогресс по уровню
"""

from .progress import (
    ProgressTracker,
    advance_streak,
    level_progress,
    next_level,
    is_ready_for_next_level,
)

__all__ = [
    'ProgressTracker',
    'advance_streak',
    'level_progress',
    'next_level',
    'is_ready_for_next_level',
]
