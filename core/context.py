"""
Типизированный контекст сессии.

Каждому стейту соответствует свой dataclass с обязательными полями.
В БД контекст хранится как JSON (context_data), разбирается при чтении:

    ctx = parse_context("exercise_reply", {"exerciseID": 42, "exerciseType": "grammar"})
    # -> ExerciseReplyContext(exercise_id=42, exercise_type="grammar")

    dump_context(ctx)
    # -> {"exerciseID": 42, "exerciseType": "grammar"}

Если данные не подходят стейту — MalformedContext.
"""

from dataclasses import dataclass
from typing import Union

from config import SessionState, ExerciseType
from core.errors import MalformedContext


@dataclass(frozen=True)
class IdleContext:
    pass


@dataclass(frozen=True)
class ChatContext:
    conversation_id: int


@dataclass(frozen=True)
class GrammarCheckContext:
    pass


@dataclass(frozen=True)
class ExerciseContext:
    exercise_type: str


@dataclass(frozen=True)
class ExerciseReplyContext:
    exercise_id: int
    exercise_type: str


StateContext = Union[
    IdleContext,
    ChatContext,
    GrammarCheckContext,
    ExerciseContext,
    ExerciseReplyContext,
]

CONTEXT_TYPES = {
    SessionState.IDLE: IdleContext,
    SessionState.CHAT: ChatContext,
    SessionState.GRAMMAR_CHECK: GrammarCheckContext,
    SessionState.EXERCISE: ExerciseContext,
    SessionState.EXERCISE_REPLY: ExerciseReplyContext,
}


def _require_id(state: str, data: dict, key: str) -> int:
    value = data.get(key)
    # bool: подкласс int, его не принимаем
    if isinstance(value, bool):
        raise MalformedContext(state, f"{key} is not an id")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise MalformedContext(state, f"{key} is missing or invalid: {value!r}")
    return value


def _require_exercise_type(state: str, data: dict) -> str:
    value = data.get("exerciseType")
    if value not in ExerciseType.ALL:
        raise MalformedContext(state, f"exerciseType is missing or unknown: {value!r}")
    return value


def parse_context(state: str, data) -> StateContext:
    """
    Разбирает сырой JSON контекста для указанного стейта.

    Args:
        state: Имя стейта сессии
        data: Словарь из context_data (может быть None)

    Returns:
        Контекст нужного стейту типа

    Raises:
        MalformedContext: стейт неизвестен или данные не подходят
    """
    if state not in CONTEXT_TYPES:
        raise MalformedContext(state, "unknown state")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedContext(state, f"context is not a mapping: {type(data).__name__}")

    if state == SessionState.CHAT:
        return ChatContext(conversation_id=_require_id(state, data, "conversationID"))
    if state == SessionState.EXERCISE:
        return ExerciseContext(exercise_type=_require_exercise_type(state, data))
    if state == SessionState.EXERCISE_REPLY:
        return ExerciseReplyContext(
            exercise_id=_require_id(state, data, "exerciseID"),
            exercise_type=_require_exercise_type(state, data),
        )
    if state == SessionState.GRAMMAR_CHECK:
        return GrammarCheckContext()
    return IdleContext()


def dump_context(ctx: StateContext) -> dict:
    """Сериализует контекст в JSON-совместимый словарь."""
    if isinstance(ctx, ChatContext):
        return {"conversationID": ctx.conversation_id}
    if isinstance(ctx, ExerciseContext):
        return {"exerciseType": ctx.exercise_type}
    if isinstance(ctx, ExerciseReplyContext):
        return {"exerciseID": ctx.exercise_id, "exerciseType": ctx.exercise_type}
    return {}


def state_of(ctx: StateContext) -> str:
    """Имя стейта, которому принадлежит контекст."""
    for state, ctx_type in CONTEXT_TYPES.items():
        if type(ctx) is ctx_type:
            return state
    raise TypeError(f"Not a session context: {ctx!r}")
