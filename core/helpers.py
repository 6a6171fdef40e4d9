"""
Вспомогательные функции для генерации контента.

Содержит:
- get_chat_system_prompt: системный промпт собеседника для /chat
- get_exercise_prompt: промпт генерации упражнения через LLM
- build_chat_history: история диалога в формате Completion Provider
- escape_md: экранирование пользовательского текста для Markdown
"""

from typing import List

from config import ExerciseType
from db.entities import ConversationMessage

GENERATE_EXERCISE_REQUEST = "Generate an exercise"


def get_chat_system_prompt(level: str) -> str:
    """Системный промпт для разговора с учеником заданного уровня

    Args:
        level: уровень английского (A1..C2)

    Returns:
        Строка системного промпта
    """
    return (
        f"You are an English tutor speaking with a student at {level} level. "
        "Be encouraging, correct major mistakes, and adapt your language to their level. "
        "Keep responses concise and natural. Respond in English only."
    )


def get_exercise_prompt(exercise_type: str, level: str) -> str:
    """Промпт для генерации упражнения заданного типа и уровня

    Ответ LLM должен содержать четыре раздела: инструкцию, задание,
    ответ и пояснение.
    """
    if exercise_type == ExerciseType.GRAMMAR:
        return f"""Create a grammar exercise for {level} level student.
The exercise should test a specific grammar point appropriate for this level.
The response should include:
1. Clear instructions
2. The exercise content
3. The correct answer(s)
4. A brief explanation of the grammar rule tested
Format the response clearly with sections."""

    if exercise_type == ExerciseType.VOCABULARY:
        return f"""Create a vocabulary exercise for {level} level student.
The exercise should test knowledge of words appropriate for this level.
The response should include:
1. Clear instructions
2. The exercise content (could be fill-in-the-blank, matching, etc.)
3. The correct answer(s)
4. Usage examples for the vocabulary items
Format the response clearly with sections."""

    if exercise_type == ExerciseType.TRANSLATION:
        return f"""Create a translation exercise for {level} level student.
Provide 3-5 sentences in Russian that the student should translate to English.
The sentences should be appropriate for this level and test specific grammar/vocabulary.
The response should include:
1. Clear instructions
2. The sentences to translate (in Russian)
3. The correct English translations
4. Notes on any particularly challenging aspects
Format the response clearly with sections."""

    return f"""Create an English language exercise for {level} level student.
The exercise should be appropriate for this level and engaging.
The response should include:
1. Clear instructions
2. The exercise content
3. The correct answer(s) or evaluation criteria
4. A short explanation or tips for the student
Format the response clearly with sections."""


def build_chat_history(system_prompt: str, messages: List[ConversationMessage]) -> List[dict]:
    """Собирает историю для converse(): системный промпт + сообщения диалога"""
    history = [{"role": "system", "content": system_prompt}]
    history.extend({"role": m.role, "content": m.content} for m in messages)
    return history


def escape_md(text: str) -> str:
    """Экранирует спецсимволы Telegram Markdown (legacy): _ * ` ["""
    for char in ("_", "*", "`", "["):
        text = text.replace(char, "\\" + char)
    return text
