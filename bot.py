"""
English Tutor Bot — Telegram-бот для практики английского.

Режимы: разговор с репетитором (/chat), проверка грамматики (/check),
упражнения (/exercise), прогресс и серии дней (/progress).

Хранение данных — PostgreSQL, переходы — State Machine (config/transitions.yaml).
"""

import asyncio

from aiogram import Bot, Dispatcher, Router, F
from aiogram.types import Message, BotCommand
from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import (
    BOT_TOKEN,
    HEALTH_PORT,
    TRANSITIONS_PATH,
    get_logger,
    validate_env,
)
from config.features import flags
from clients import gpt, languagetool
from core.machine import StateMachine
from core.middleware import LoggingMiddleware, RateLimiter, RateLimitMiddleware
from core.storage import SessionStorage
from db import init_db, close_pool
from db.repository import Database
from i18n import get_i18n
from states.registry import register_all_states

logger = get_logger(__name__)

router = Router()

# Заполняется в main()
machine: StateMachine = None


@router.message(F.text, F.from_user)
async def on_text(message: Message):
    """Любой текст (включая команды) уходит в State Machine"""
    await machine.handle_message(message)


# ============= HEALTH CHECK =============

async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def start_health_server(port: int) -> web.AppRunner:
    app = web.Application()
    app.router.add_get("/health", health)

    runner = web.AppRunner(app)
    await runner.setup()
    await web.TCPSite(runner, "0.0.0.0", port).start()
    logger.info(f"🩺 Health check на порту {port}")
    return runner


# ============= ЗАПУСК =============

async def main():
    global machine

    validate_env()

    # Инициализация БД
    await init_db()

    bot = Bot(token=BOT_TOKEN)
    dp = Dispatcher()
    dp.include_router(router)

    db = Database()
    i18n = get_i18n()
    machine = StateMachine(TRANSITIONS_PATH, SessionStorage(db), bot=bot, i18n=i18n)
    register_all_states(machine, bot, db, gpt, i18n, checker=languagetool)

    # Middleware: сначала лог, потом лимит
    dp.message.outer_middleware(LoggingMiddleware())

    scheduler = AsyncIOScheduler()
    if flags.is_enabled("rate_limit.enabled", default=True):
        limiter = RateLimiter(
            interval=flags.get_float("rate_limit.interval_seconds", 1.0),
            ttl=flags.get_float("rate_limit.ttl_seconds", 300.0),
        )
        dp.message.outer_middleware(RateLimitMiddleware(limiter))
        scheduler.add_job(limiter.evict_stale, 'interval', minutes=1)

    # Установка команд бота (Menu-кнопка)
    await bot.set_my_commands([
        BotCommand(command="start", description="Start the bot"),
        BotCommand(command="chat", description="Practice conversation"),
        BotCommand(command="check", description="Check grammar"),
        BotCommand(command="exercise", description="Get a new exercise"),
        BotCommand(command="progress", description="Show your progress"),
        BotCommand(command="level", description="Show or change your level"),
        BotCommand(command="help", description="List commands"),
    ])

    # Запуск планировщика
    scheduler.start()

    runner = None
    if HEALTH_PORT:
        runner = await start_health_server(HEALTH_PORT)

    logger.info("🚀 Бот запущен с PostgreSQL!")
    try:
        await dp.start_polling(bot)
    finally:
        scheduler.shutdown(wait=False)
        if runner:
            await runner.cleanup()
        await close_pool()
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
