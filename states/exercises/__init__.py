"""
Стейты упражнений.

- exercise.py: ExerciseState — генерация упражнения (транзитный)
- exercise_reply.py: ExerciseReplyState — проверка ответа
"""

from .exercise import ExerciseState
from .exercise_reply import ExerciseReplyState

__all__ = ['ExerciseState', 'ExerciseReplyState']
