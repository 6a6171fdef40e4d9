"""
Проверка ответа пользователя на упражнение.

Уровни оценки (срабатывает первый подходящий):
1. Точное совпадение с одним из вариантов ответа  -> 100
2. Похожесть по Левенштейну > 0.8                  -> 80
3. Ответ содержит вариант как подстроку            -> 60
4. Иначе                                           -> 0

Эталонный ответ может перечислять варианты через "/": "like/love".
"""

from dataclasses import dataclass

from db.entities import Exercise
from engines.exercises.scorer import similarity

NEAR_MATCH_THRESHOLD = 0.8


class Verdict:
    PERFECT = "perfect"
    NEAR_MISS = "near-miss"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


FEEDBACK = {
    Verdict.PERFECT: "Perfect! Your answer is correct.",
    Verdict.NEAR_MISS: "Almost correct! There are some minor errors in your answer.",
    Verdict.PARTIAL: "Partially correct. Your answer contains the right elements but has some issues.",
    Verdict.INCORRECT: "Your answer is incorrect. Please try again.",
}

SCORES = {
    Verdict.PERFECT: 100,
    Verdict.NEAR_MISS: 80,
    Verdict.PARTIAL: 60,
    Verdict.INCORRECT: 0,
}


@dataclass(frozen=True)
class GradedAttempt:
    score: int
    verdict: str
    feedback: str

    @property
    def is_correct(self) -> bool:
        return self.score == 100


def answer_variants(answer: str) -> list[str]:
    """Допустимые варианты ответа в нормализованном виде"""
    variants = (variant.strip() for variant in answer.strip().lower().split("/"))
    return [variant for variant in variants if variant]


def _attempt(verdict: str) -> GradedAttempt:
    return GradedAttempt(score=SCORES[verdict], verdict=verdict, feedback=FEEDBACK[verdict])


def grade(exercise: Exercise, user_answer: str) -> GradedAttempt:
    """
    Оценивает ответ пользователя.

    Args:
        exercise: Упражнение с эталонным ответом
        user_answer: Текст ответа как его прислал пользователь

    Returns:
        GradedAttempt с баллом, вердиктом и текстом обратной связи
    """
    normalized = user_answer.strip().lower()
    variants = answer_variants(exercise.answer)

    if any(normalized == variant for variant in variants):
        return _attempt(Verdict.PERFECT)

    if any(similarity(normalized, variant) > NEAR_MATCH_THRESHOLD for variant in variants):
        return _attempt(Verdict.NEAR_MISS)

    if any(variant in normalized for variant in variants):
        return _attempt(Verdict.PARTIAL)

    return _attempt(Verdict.INCORRECT)
