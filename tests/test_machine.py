"""
Сценарии State Machine без Telegram и PostgreSQL.

Машина собирается с настоящими transitions.yaml и переводами,
Telegram, БД, LLM и LanguageTool заменены заглушками из fakes.py.

Запуск: python -m pytest tests/test_machine.py -v
"""

import asyncio
from datetime import timedelta

from clients.languagetool import GrammarIssue
from core.errors import CheckerError, ProviderError
from core.machine import parse_command
from db.queries.users import local_today
from fakes import FakeChecker, FakeProvider, build_machine, make_message, progress_of, say, session_of
from i18n import I18n

APOLOGY = "Sorry, something went wrong. Please try again later."

LLM_EXERCISE = (
    "Listening exercise\n"
    "Instructions:\n"
    "Listen to the dialogue and answer the questions.\n"
    "Answers:\n"
    "1) at the station"
)


def test_parse_command():
    assert parse_command("/exercise vocabulary") == ("exercise", "vocabulary")
    assert parse_command("/START@english_bot") == ("start", "")
    assert parse_command("  /check He go home.  ") == ("check", "He go home.")
    assert parse_command("hello /start") == (None, "hello /start")
    assert parse_command("") == (None, "")


# =========================================
# /start, неизвестные команды, idle
# =========================================

def test_start_creates_user_and_greets():
    """Первое сообщение создаёт пользователя, сессию и первый день серии"""
    env = build_machine()
    asyncio.run(say(env, "/start"))

    user = env.db.users[1001]
    assert (user.username, user.first_name, user.english_level) == ("student", "Anna", "A1")
    assert "Welcome to English Learning Bot" in env.bot.last_text()
    assert session_of(env).state == "idle"
    assert progress_of(env).current_streak == 1
    print("✅ /start: пользователь создан, приветствие отправлено")


def test_start_with_bot_mention():
    env = build_machine()
    asyncio.run(say(env, "/START@english_bot"))
    assert "Welcome to English Learning Bot" in env.bot.last_text()


def test_russian_interface():
    """language_code=ru — ответы из ru/*.yaml"""
    env = build_machine()
    asyncio.run(say(env, "/foo", language_code="ru-RU"))

    expected = I18n().t("common.unknown_command", "ru")
    assert env.bot.last_text() == expected
    assert expected != I18n().t("common.unknown_command", "en")


def test_unknown_command_keeps_session():
    env = build_machine()
    asyncio.run(say(env, "/chat", "/dance"))

    assert env.bot.last_text() == "Unknown command. Use /help to see available commands."
    assert session_of(env).state == "chat"


def test_message_without_sender_is_skipped():
    """Сообщение без from_user (пост канала) пропускается без ошибки и ответа"""
    env = build_machine()
    message = make_message("hello")
    message.from_user = None

    asyncio.run(env.machine.handle_message(message))

    assert env.bot.sent == []
    assert env.db.users == {}
    assert len(env.machine.locks) == 0


def test_free_text_in_idle_suggests_commands():
    env = build_machine()
    asyncio.run(say(env, "/start"))
    updates = env.db.session_updates

    asyncio.run(say(env, "hello"))

    assert "I'm not sure what you want to do" in env.bot.last_text()
    assert session_of(env).state == "idle"
    assert env.db.session_updates == updates, "prompted -> _same не записывает сессию"


# =========================================
# Упражнения
# =========================================

def test_exercise_correct_answer():
    """/exercise -> exercise_reply -> ответ -> idle, попытка и счётчики записаны"""
    env = build_machine()
    asyncio.run(say(env, "/exercise"))

    session = session_of(env)
    assert session.state == "exercise_reply"
    assert session.context_data == {"exerciseID": 1, "exerciseType": "grammar"}

    exercise = env.db.exercises[1]
    assert exercise.content == "I _____  to school every day."
    assert exercise.options == ["go", "goes"]

    _, text, kwargs = env.bot.sent[-1]
    assert "Options: go / goes" in text
    assert kwargs.get("parse_mode") == "Markdown"

    asyncio.run(say(env, "Go"))

    assert env.db.user_exercises[0].user_answer == "Go"
    assert env.db.user_exercises[0].is_correct
    assert "🎉 Perfect! Your answer is correct.\nScore: 100/100" in env.bot.joined()
    assert env.bot.last_text() == "Would you like another exercise? Use /exercise to get one."
    # Сообщение "проверяю" удалено
    assert len(env.bot.deleted) == 1

    session = session_of(env)
    assert (session.state, session.context_data) == ("idle", {})

    progress = progress_of(env)
    assert (progress.total_exercises, progress.correct_exercises) == (1, 1)
    print("✅ Упражнение: правильный ответ засчитан")


def test_exercise_wrong_answer_shows_correct_one():
    env = build_machine()
    asyncio.run(say(env, "/exercise grammar", "went"))

    assert "❌ Your answer is incorrect. Please try again." in env.bot.joined()
    assert "Correct answer: *go*" in env.bot.joined()
    assert not env.db.user_exercises[0].is_correct

    progress = progress_of(env)
    assert (progress.total_exercises, progress.correct_exercises) == (1, 0)
    assert session_of(env).state == "idle"


def test_exercise_partial_answer():
    """Ответ содержит правильный вариант — 60, но не засчитывается"""
    env = build_machine()
    asyncio.run(say(env, "/exercise", "I go to school"))

    assert "🤔 Partially correct." in env.bot.joined()
    assert "Score: 60/100" in env.bot.joined()
    assert not env.db.user_exercises[0].is_correct
    assert progress_of(env).correct_exercises == 0


def test_exercise_feedback_send_failure_still_completes():
    """Telegram не принял отзыв: попытка записана один раз, сессия уже в idle"""
    env = build_machine()
    asyncio.run(say(env, "/exercise"))
    env.bot.fail_on = "Score:"

    asyncio.run(say(env, "go"))

    assert APOLOGY not in env.bot.joined()
    assert env.bot.last_text() == "Would you like another exercise? Use /exercise to get one."
    assert session_of(env).state == "idle"
    assert len(env.db.user_exercises) == 1
    assert progress_of(env).total_exercises == 1

    # Повторный ответ уже не считается ответом на упражнение
    asyncio.run(say(env, "go"))

    assert "I'm not sure what you want to do" in env.bot.last_text()
    assert len(env.db.user_exercises) == 1
    assert progress_of(env).total_exercises == 1


def test_exercise_unknown_type_falls_back_to_grammar():
    env = build_machine()
    asyncio.run(say(env, "/exercise poetry"))

    assert "Unknown exercise type 'poetry'. Here is a grammar exercise instead." in env.bot.joined()
    assert session_of(env).context_data["exerciseType"] == "grammar"


def test_exercise_uses_user_level():
    """После /level B2 упражнение берётся из верхней корзины"""
    env = build_machine()
    asyncio.run(say(env, "/level b2", "/exercise"))

    assert env.db.users[1001].english_level == "B2"
    exercise = env.db.exercises[1]
    assert exercise.level == "B2"
    assert exercise.answer == "had"
    assert exercise.options == []


def test_generative_exercise_is_not_graded():
    """Нет шаблона — упражнение от LLM; ответ не проверяется и не засчитывается"""
    env = build_machine(provider=FakeProvider(reply=LLM_EXERCISE))
    asyncio.run(say(env, "/exercise listening"))

    session = session_of(env)
    assert session.state == "exercise_reply"
    assert session.context_data == {"exerciseID": 1, "exerciseType": "listening"}
    assert env.db.exercises[1].answer == ""
    # "Генерирую..." удалено, текст LLM без разметки
    assert len(env.bot.deleted) == 1
    _, text, kwargs = env.bot.sent[-1]
    assert text.startswith(LLM_EXERCISE)
    assert "parse_mode" not in kwargs

    asyncio.run(say(env, "at the station"))

    assert "can't be checked automatically" in env.bot.joined()
    assert env.db.user_exercises == []
    assert progress_of(env).total_exercises == 0
    assert session_of(env).state == "idle"


def test_generative_fallback_disabled(monkeypatch):
    monkeypatch.setenv("EXERCISES_GENERATIVE_FALLBACK", "false")
    env = build_machine()
    asyncio.run(say(env, "/exercise speaking"))

    assert "speaking exercises are not available" in env.bot.last_text()
    assert env.db.exercises == {}
    assert env.llm.generate_calls == []
    assert session_of(env).state == "idle"


def test_provider_failure_keeps_session():
    """Сбой LLM: извинение, сессия как была до команды"""
    env = build_machine()
    asyncio.run(say(env, "/chat"))
    before = (session_of(env).state, session_of(env).context_data)

    env.llm.error = ProviderError("OpenAI API returned 503")
    asyncio.run(say(env, "/exercise listening"))

    assert env.bot.last_text() == APOLOGY
    assert (session_of(env).state, session_of(env).context_data) == before
    assert env.db.exercises == {}
    assert len(env.bot.deleted) == 1, "Сообщение ожидания удаляется и при ошибке"


def test_concurrent_messages_are_processed_in_order():
    """Ответ, пришедший вместе с /exercise, проверяется после создания упражнения"""
    env = build_machine()

    async def scenario():
        await asyncio.gather(
            env.machine.handle_message(make_message("/exercise")),
            env.machine.handle_message(make_message("go")),
        )

    asyncio.run(scenario())

    assert len(env.db.users) == 1
    assert len(env.db.user_exercises) == 1
    assert env.db.user_exercises[0].is_correct
    assert session_of(env).state == "idle"
    assert len(env.machine.locks) == 0


# =========================================
# Повреждённый контекст
# =========================================

def test_malformed_context_resets_to_idle():
    env = build_machine()
    asyncio.run(say(env, "/start"))

    session = session_of(env)
    session.state = "exercise_reply"
    session.context_data = {"exerciseType": "grammar"}

    asyncio.run(say(env, "go"))

    assert env.bot.last_text() == APOLOGY
    assert (session_of(env).state, session_of(env).context_data) == ("idle", {})


def test_missing_exercise_resets_to_idle():
    env = build_machine()
    asyncio.run(say(env, "/start"))

    session = session_of(env)
    session.state = "exercise_reply"
    session.context_data = {"exerciseID": 99, "exerciseType": "grammar"}

    asyncio.run(say(env, "go"))

    assert env.bot.last_text() == APOLOGY
    assert session_of(env).state == "idle"
    assert env.db.user_exercises == []


def test_unknown_state_resets_to_idle():
    env = build_machine()
    asyncio.run(say(env, "/start"))
    session_of(env).state = "placement_test"

    asyncio.run(say(env, "hello"))

    assert env.bot.last_text() == APOLOGY
    assert session_of(env).state == "idle"


def test_global_command_recovers_from_malformed_context():
    """Команда работает и из повреждённой сессии"""
    env = build_machine()
    asyncio.run(say(env, "/start"))
    session = session_of(env)
    session.state = "chat"
    session.context_data = {}

    asyncio.run(say(env, "/chat"))

    assert "Let's practice English!" in env.bot.last_text()
    assert session_of(env).context_data == {"conversationID": 1}


# =========================================
# Проверка грамматики
# =========================================

GO_ISSUE = GrammarIssue(
    message="The verb 'go' does not agree with 'He'.",
    offset=3,
    length=2,
    replacements=["goes", "went", "gone", "going"],
)


def test_grammar_check_flow():
    """/check -> grammar_check -> текст -> результат -> idle"""
    env = build_machine(checker=FakeChecker(issues=[GO_ISSUE]))
    asyncio.run(say(env, "/check"))

    assert "Grammar Check Mode" in env.bot.last_text()
    assert session_of(env).state == "grammar_check"

    asyncio.run(say(env, "He go home."))

    _, result, kwargs = env.bot.sent[-1]
    assert kwargs.get("parse_mode") == "Markdown"
    assert "Found 1 issue(s):" in result
    assert "1. *Error*: The verb 'go' does not agree with 'He'." in result
    assert "*Context*: He *go* home." in result
    assert "*Suggestions*: goes, went, gone" in result
    assert "going" not in result

    assert env.checker.calls == ["He go home."]
    assert session_of(env).state == "idle"
    assert progress_of(env).grammar_checks == 1
    assert len(env.bot.deleted) == 1


def test_grammar_check_with_inline_text():
    """/check <текст> проверяет сразу и возвращает в idle"""
    env = build_machine()
    asyncio.run(say(env, "/check She goes home."))

    assert env.checker.calls == ["She goes home."]
    assert "Your text is grammatically correct!" in env.bot.last_text()
    assert session_of(env).state == "idle"


def test_grammar_checker_failure_keeps_session():
    env = build_machine(checker=FakeChecker(error=CheckerError("LanguageTool API timeout")))
    asyncio.run(say(env, "/check", "He go home."))

    assert env.bot.last_text() == APOLOGY
    assert session_of(env).state == "grammar_check"
    assert progress_of(env).grammar_checks == 0


def test_streak_achievement_announced():
    """Седьмой день подряд — поздравление с достижением"""
    env = build_machine()
    asyncio.run(say(env, "/start"))

    progress = progress_of(env)
    progress.current_streak = 6
    progress.longest_streak = 6
    progress.last_activity_date = local_today() - timedelta(days=1)

    asyncio.run(say(env, "/check She goes home."))

    assert "Achievement unlocked: 7-day streak" in env.bot.joined()
    assert [a.achievement_type for a in env.db.achievements] == ["streak_7_days"]


# =========================================
# Разговор
# =========================================

def test_chat_flow():
    env = build_machine(provider=FakeProvider(reply="I'm fine, thanks! And you?"))
    asyncio.run(say(env, "/chat"))

    session = session_of(env)
    assert session.state == "chat"
    assert session.conversation_id == 1
    assert progress_of(env).total_conversations == 1

    asyncio.run(say(env, "Hello! How are you?"))

    assert env.bot.last_text() == "I'm fine, thanks! And you?"
    assert env.bot.actions == [(1001, "typing")]

    history = env.llm.converse_calls[0]
    assert history[0]["role"] == "system"
    assert "A1 level" in history[0]["content"]
    assert history[1:] == [{"role": "user", "content": "Hello! How are you?"}]

    assert [(m.role, m.content) for m in env.db.messages] == [
        ("user", "Hello! How are you?"),
        ("assistant", "I'm fine, thanks! And you?"),
    ]
    assert session_of(env).state == "chat"
    assert progress_of(env).total_messages == 1


def test_chat_resumes_conversation():
    """Повторный /chat продолжает тот же диалог"""
    env = build_machine()
    asyncio.run(say(env, "/chat", "Hi!", "/chat", "What's new?"))

    assert "Let's continue our conversation!" in env.bot.joined()
    assert len(env.db.conversations) == 1
    assert progress_of(env).total_conversations == 1

    # Во втором запросе видна вся история диалога
    history = env.llm.converse_calls[1]
    assert [m["content"] for m in history[1:]] == [
        "Hi!", env.llm.reply, "What's new?",
    ]


def test_chat_with_inline_text():
    env = build_machine()
    asyncio.run(say(env, "/chat Tell me about London"))

    assert env.llm.converse_calls[0][-1] == {"role": "user", "content": "Tell me about London"}
    assert env.bot.last_text() == env.llm.reply
    assert session_of(env).state == "chat"


def test_chat_provider_failure_keeps_session():
    env = build_machine()
    asyncio.run(say(env, "/chat"))
    env.llm.error = ProviderError("OpenAI API timeout")

    asyncio.run(say(env, "Hello"))

    assert env.bot.last_text() == APOLOGY
    assert session_of(env).state == "chat"
    assert session_of(env).conversation_id == 1
    assert progress_of(env).total_messages == 0


def test_chat_inline_text_failure_not_counted():
    """/chat <текст> при сбое LLM: диалог не засчитан, сессия как была"""
    env = build_machine(provider=FakeProvider(error=ProviderError("OpenAI API timeout")))
    asyncio.run(say(env, "/chat Hello"))

    assert env.bot.last_text() == APOLOGY
    assert session_of(env).state == "idle"
    assert progress_of(env).total_conversations == 0

    env.llm.error = None
    asyncio.run(say(env, "/chat Hello"))

    assert env.bot.last_text() == env.llm.reply
    assert session_of(env).state == "chat"
    assert progress_of(env).total_conversations == 1


def test_turn_timeout_apologises():
    env = build_machine(provider=FakeProvider(delay=1), turn_timeout=0.05)
    asyncio.run(say(env, "/chat", "Hello"))

    assert env.bot.last_text() == APOLOGY
    assert session_of(env).state == "chat"
    assert len(env.machine.locks) == 0


# =========================================
# Информационные команды
# =========================================

def test_help():
    env = build_machine()
    asyncio.run(say(env, "/help"))
    assert "Available commands" in env.bot.last_text()


def test_level_command():
    env = build_machine()
    asyncio.run(say(env, "/level"))
    assert "Your English level: *A1*" in env.bot.last_text()

    asyncio.run(say(env, "/level Z9"))
    assert env.bot.last_text().startswith("Unknown level 'Z9'")
    assert env.db.users[1001].english_level == "A1"

    asyncio.run(say(env, "/level c1"))
    assert env.bot.last_text() == "✅ Your English level is now *C1*."
    assert env.db.users[1001].english_level == "C1"


def test_info_commands_keep_session():
    env = build_machine()
    asyncio.run(say(env, "/exercise", "/progress", "/help", "go"))

    # Ответ после /progress и /help всё ещё проверяется
    assert env.db.user_exercises[0].is_correct


def test_progress_report():
    env = build_machine()
    asyncio.run(say(env, "/exercise", "go", "/progress"))

    _, report, kwargs = env.bot.sent[-1]
    assert kwargs.get("parse_mode") == "Markdown"
    assert "English Level: *A1* (31.4% completed)" in report
    assert "Exercises Completed: *1*" in report
    assert "Correct Answers: *1 (100%)*" in report
    assert "Current Streak: *1 days*" in report
    assert "Keep up the good work!" in report
    assert "ready to advance" not in report
