"""
Стейт: Генерация упражнения (/exercise [тип]).

Транзитный: в сессию не записывается. enter() создаёт и сохраняет
упражнение и сразу отдаёт событие generated -> exercise_reply.

Выбор стратегии:
- есть шаблоны для типа и уровня -> шаблон (можно проверить автоматически)
- иначе, если включён exercises.generative_fallback -> LLM
- иначе -> "недоступно", сессия не меняется
"""

from typing import Optional

from aiogram.types import Message

from config import SessionState, ExerciseType, DEFAULT_EXERCISE_TYPE, get_logger
from config.features import flags
from core.context import ExerciseReplyContext
from core.helpers import escape_md
from db.entities import Exercise
from engines.exercises import ExerciseGenerator
from states.base import BaseState, Entered

logger = get_logger(__name__)


class ExerciseState(BaseState):

    name = SessionState.EXERCISE

    def __init__(self, *args, generator: Optional[ExerciseGenerator] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.generator = generator or ExerciseGenerator(self.llm)

    async def enter(self, user, context: dict = None) -> Optional[Entered]:
        exercise_type = await self._requested_type(user, (context or {}).get("initial_text", ""))
        level = user.english_level

        if self.generator.has_template(exercise_type, level):
            exercise = self.generator.generate_offline(exercise_type, level)
        elif flags.is_enabled("exercises.generative_fallback", default=True):
            async with self.wait_message(user, "states.exercise.wait"):
                exercise = await self.generator.generate_via_provider(exercise_type, level)
        else:
            await self.send(user, self.t("states.exercise.unavailable", user, type=exercise_type))
            return None

        exercise = await self.db.save_exercise(exercise)
        logger.info(
            f"📚 Упражнение {exercise.id} ({exercise.type}/{exercise.level}) "
            f"для user_id={user.id}, gradable={exercise.is_gradable}"
        )
        await self.present(user, exercise)

        return Entered(
            ExerciseReplyContext(exercise_id=exercise.id, exercise_type=exercise.type),
            event="generated",
        )

    async def _requested_type(self, user, argument: str) -> str:
        """Тип из аргумента команды; неизвестный -> тип по умолчанию с пояснением"""
        requested = argument.strip().lower()
        if not requested:
            return DEFAULT_EXERCISE_TYPE
        if requested in ExerciseType.ALL:
            return requested

        await self.send(user, self.t(
            "states.exercise.unknown_type", user,
            requested=argument.strip(), fallback=DEFAULT_EXERCISE_TYPE,
        ))
        return DEFAULT_EXERCISE_TYPE

    async def present(self, user, exercise: Exercise) -> None:
        """Отправляет упражнение пользователю"""
        if not exercise.is_gradable:
            # Текст LLM отправляем без разметки
            await self.send(user, f"{exercise.content}\n\n{self.t('states.exercise.answer_prompt', user)}")
            return

        parts = [
            self.t("states.exercise.title", user),
            f"_{escape_md(exercise.instruction)}_",
            escape_md(exercise.content),
        ]
        if exercise.options:
            options = " / ".join(escape_md(option) for option in exercise.options)
            parts.append(self.t("states.exercise.options", user, options=options))
        parts.append(self.t("states.exercise.answer_prompt", user))
        await self.send_md(user, "\n\n".join(parts))

    async def handle(self, user, message: Message, context) -> Optional[str]:
        # Сюда попадаем, только если сессия осталась в транзитном стейте
        await self.send(user, self.t("states.exercise.leftover", user))
        return "reset"
