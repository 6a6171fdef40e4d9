"""
Middleware для входящих сообщений (aiogram 3).

- LoggingMiddleware: лог входа и длительности обработки хода
- RateLimitMiddleware: не больше одного сообщения в interval секунд от пользователя

Подключение:
    limiter = RateLimiter(interval=1.0, ttl=300)
    dp.message.outer_middleware(LoggingMiddleware())
    dp.message.outer_middleware(RateLimitMiddleware(limiter))

    # Раз в минуту чистим старые записи
    scheduler.add_job(limiter.evict_stale, 'interval', minutes=1)
"""

import time
from typing import Any, Awaitable, Callable, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.types import Message, TelegramObject

from config import get_logger

logger = get_logger(__name__)


class LoggingMiddleware(BaseMiddleware):
    """Логирует каждое сообщение и время его обработки"""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        if not isinstance(event, Message):
            return await handler(event, data)

        text = event.text or ""
        command = text.split()[0] if text.startswith("/") else ""
        user_id = event.from_user.id if event.from_user else None
        logger.info(
            f"📨 Message: chat_id={event.chat.id}, user_id={user_id}, "
            f"command={command or '-'}, length={len(text)}"
        )

        started = time.monotonic()
        try:
            return await handler(event, data)
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(f"⏱ Processed chat_id={event.chat.id} in {elapsed_ms:.0f} ms")


class RateLimiter:
    """
    Время последнего принятого сообщения по пользователю.

    Все вызовы идут из event loop без await между проверкой и записью,
    отдельная блокировка не нужна.
    """

    def __init__(self, interval: float = 1.0, ttl: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self.ttl = ttl
        self.clock = clock
        self._last_seen: Dict[int, float] = {}

    def allow(self, user_id: int, now: Optional[float] = None) -> bool:
        """True — сообщение принимаем и запоминаем время"""
        now = self.clock() if now is None else now
        last = self._last_seen.get(user_id)
        if last is not None and now - last < self.interval:
            return False
        self._last_seen[user_id] = now
        return True

    def evict_stale(self, now: Optional[float] = None) -> int:
        """Удаляет записи старше ttl, возвращает их число"""
        now = self.clock() if now is None else now
        stale = [uid for uid, seen in self._last_seen.items() if now - seen > self.ttl]
        for uid in stale:
            del self._last_seen[uid]
        if stale:
            logger.debug(f"RateLimiter: evicted {len(stale)} stale entries")
        return len(stale)

    def __len__(self) -> int:
        return len(self._last_seen)


class RateLimitMiddleware(BaseMiddleware):
    """Отбрасывает сообщения, пришедшие чаще лимита"""

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        if isinstance(event, Message) and event.from_user:
            if not self.limiter.allow(event.from_user.id):
                logger.warning(f"⚠️ Rate limit exceeded for user_id={event.from_user.id}")
                return None
        return await handler(event, data)
