"""
Тесты типизированного контекста сессии и SessionStorage.

Запуск: python -m pytest tests/test_context.py -v
"""

import asyncio

import pytest

from core.context import (
    ChatContext,
    ExerciseContext,
    ExerciseReplyContext,
    GrammarCheckContext,
    IdleContext,
    dump_context,
    parse_context,
    state_of,
)
from core.errors import MalformedContext
from core.storage import SessionStorage
from db.entities import Session, User
from fakes import FakeRepository


def test_parse_known_contexts():
    assert parse_context("idle", {}) == IdleContext()
    assert parse_context("idle", None) == IdleContext()
    assert parse_context("grammar_check", {"anything": 1}) == GrammarCheckContext()
    assert parse_context("chat", {"conversationID": 5}) == ChatContext(conversation_id=5)
    assert parse_context("exercise", {"exerciseType": "vocabulary"}) == ExerciseContext("vocabulary")
    assert parse_context("exercise_reply", {"exerciseID": 42, "exerciseType": "grammar"}) == \
        ExerciseReplyContext(exercise_id=42, exercise_type="grammar")


def test_parse_accepts_numeric_strings():
    """Id, записанный строкой, тоже принимается"""
    assert parse_context("chat", {"conversationID": "12"}) == ChatContext(conversation_id=12)


@pytest.mark.parametrize("state, data", [
    ("chat", {}),
    ("chat", {"conversationID": 0}),
    ("chat", {"conversationID": True}),
    ("exercise_reply", {"exerciseType": "grammar"}),
    ("exercise_reply", {"exerciseID": 3, "exerciseType": "poetry"}),
    ("exercise_reply", {"exerciseID": "abc", "exerciseType": "grammar"}),
    ("exercise", {}),
    ("idle", ["not", "a", "mapping"]),
    ("unknown_state", {}),
])
def test_parse_malformed(state, data):
    """Неподходящие данные — MalformedContext с именем стейта"""
    with pytest.raises(MalformedContext) as exc:
        parse_context(state, data)
    assert exc.value.state == state


def test_dump_and_state_of():
    ctx = ExerciseReplyContext(exercise_id=7, exercise_type="translation")
    assert dump_context(ctx) == {"exerciseID": 7, "exerciseType": "translation"}
    assert dump_context(ChatContext(conversation_id=3)) == {"conversationID": 3}
    assert dump_context(IdleContext()) == {}

    assert state_of(ctx) == "exercise_reply"
    assert state_of(GrammarCheckContext()) == "grammar_check"
    with pytest.raises(TypeError):
        state_of({"exerciseID": 7})


def test_storage_commit_sets_state_and_conversation():
    """Стейт выводится из типа контекста; conversation_id только у чата"""
    repo = FakeRepository()
    storage = SessionStorage(repo)
    user = User(id=1, telegram_id=1001)

    async def scenario():
        session = await storage.load(user)
        assert session.state == "idle"

        await storage.commit(session, ChatContext(conversation_id=9))
        stored = repo.sessions[1]
        assert (stored.state, stored.context_data, stored.conversation_id) == \
            ("chat", {"conversationID": 9}, 9)

        await storage.commit(session, IdleContext())
        stored = repo.sessions[1]
        assert (stored.state, stored.context_data, stored.conversation_id) == ("idle", {}, None)

    asyncio.run(scenario())


def test_storage_peek_context():
    """peek_context не бросает исключение, а возвращает None"""
    storage = SessionStorage(FakeRepository())

    broken = Session(user_id=1, state="exercise_reply", context_data={})
    assert storage.peek_context(broken) is None
    with pytest.raises(MalformedContext):
        storage.context_of(broken)

    unknown = Session(user_id=1, state="placement_test", context_data={})
    assert storage.peek_context(unknown) is None

    chat = Session(user_id=1, state="chat", context_data={"conversationID": 4})
    assert storage.peek_context(chat) == ChatContext(conversation_id=4)
