"""
Стейт: Ожидание ответа на упражнение.

Сообщение: проверка ответа (100/80/60/0), запись попытки и прогресса
Выход: idle

Упражнения от LLM без эталонного ответа автоматически не проверяются:
показываем текст упражнения с разделом ответов, счётчики не трогаем.
"""

from typing import Optional

from aiogram.types import Message

from config import SessionState, ActivityKind, get_logger
from core.context import ExerciseReplyContext
from core.errors import NotFound
from core.helpers import escape_md
from db.entities import UserExercise
from engines.exercises import grade
from states.base import BaseState

logger = get_logger(__name__)

VERDICT_EMOJI = {
    100: "🎉",
    80: "👍",
    60: "🤔",
    0: "❌",
}


class ExerciseReplyState(BaseState):

    name = SessionState.EXERCISE_REPLY

    async def handle(self, user, message: Message, context: ExerciseReplyContext) -> Optional[str]:
        exercise = await self.db.get_exercise(context.exercise_id)
        if exercise is None:
            raise NotFound(self.name, f"exercise {context.exercise_id} does not exist")

        answer = message.text or ""

        # Сначала запись попытки и прогресса, отправка только потом:
        # после записи ход всегда завершается переходом в idle
        if not exercise.is_gradable:
            unlocked = await self.progress.touch(user.id)
            await self.send_quietly(user, f"{self.t('states.exercise.not_gradable', user)}\n\n{exercise.content}")
            await self.announce(user, unlocked, quietly=True)
            await self.send_quietly(user, self.t("states.exercise.another", user))
            return "graded"

        async with self.wait_message(user, "states.exercise.checking"):
            attempt = grade(exercise, answer)
            await self.db.save_user_exercise(UserExercise(
                user_id=user.id,
                exercise_id=exercise.id,
                user_answer=answer,
                is_correct=attempt.is_correct,
            ))
            unlocked = await self.progress.record_activity(user.id, ActivityKind.EXERCISE, attempt.is_correct)

        logger.info(
            f"✍️ Ответ на упражнение {exercise.id} от user_id={user.id}: "
            f"{attempt.verdict} ({attempt.score})"
        )

        lines = [
            f"{VERDICT_EMOJI.get(attempt.score, '')} {attempt.feedback}",
            self.t("states.exercise.score", user, score=attempt.score),
        ]
        if not attempt.is_correct:
            lines.append(self.t("states.exercise.correct_answer", user, answer=escape_md(exercise.answer)))
        await self.send_quietly(user, "\n".join(lines), parse_mode="Markdown")

        await self.announce(user, unlocked, quietly=True)
        await self.send_quietly(user, self.t("states.exercise.another", user))
        return "graded"
