"""
Поочерёдная обработка сообщений одного пользователя.

Каждый ход (сообщение от получения до ответа) выполняется под замком
пользователя: два сообщения одного пользователя обрабатываются строго
по очереди, сообщения разных пользователей — параллельно.

Использование:
    locks = UserLocks()

    async with locks.hold(telegram_id):
        await process_turn(...)
"""

import asyncio
from contextlib import asynccontextmanager


class UserLocks:
    """asyncio.Lock на пользователя; запись удаляется, когда замок никому не нужен."""

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._holders: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, key: int):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
