"""
Движок упражнений.

Содержит:
- scorer.py: похожесть строк (Левенштейн)
- evaluator.py: оценка ответа по уровням 100/80/60/0
- generator.py: шаблонная и LLM-генерация упражнений
- templates.yaml: шаблоны предложений по типам и уровням
"""

from .scorer import similarity, levenshtein_distance
from .evaluator import grade, GradedAttempt, Verdict, FEEDBACK, answer_variants
from .generator import (
    ExerciseGenerator,
    load_templates,
    extract_options,
    clean_exercise_content,
    extract_instructions,
)

__all__ = [
    'similarity',
    'levenshtein_distance',
    'grade',
    'GradedAttempt',
    'Verdict',
    'FEEDBACK',
    'answer_variants',
    'ExerciseGenerator',
    'load_templates',
    'extract_options',
    'clean_exercise_content',
    'extract_instructions',
]
