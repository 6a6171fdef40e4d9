"""
Клиент для OpenAI-совместимого Chat Completions API.

GPTClient — Completion Provider бота:
- generate(prompt, system_prompt): один запрос с системным промптом
- converse(history): продолжение диалога по истории сообщений

Любой сбой (сеть, таймаут, не-200, пустой ответ) — ProviderError.
"""

import asyncio
from typing import List, Optional

import aiohttp

from config import (
    get_logger,
    OPENAI_API_KEY,
    OPENAI_API_URL,
    OPENAI_MODEL,
    REQUEST_TIMEOUT,
)
from core.errors import ProviderError

logger = get_logger(__name__)


def parse_completion(data: dict) -> str:
    """Достаёт текст ответа из JSON Chat Completions

    Raises:
        ProviderError: в ответе ошибка API или нет choices
    """
    error = data.get("error")
    if error:
        message = error.get("message", "") if isinstance(error, dict) else str(error)
        raise ProviderError(f"API error: {message}")

    choices = data.get("choices") or []
    if not choices:
        raise ProviderError("Empty choices in completion response")

    content = (choices[0].get("message") or {}).get("content") or ""
    if not content.strip():
        raise ProviderError("Empty completion text")
    return content


class GPTClient:
    """Клиент для работы с Chat Completions API"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: int = REQUEST_TIMEOUT):
        self.api_key = api_key or OPENAI_API_KEY
        self.model = model or OPENAI_MODEL
        self.base_url = base_url or OPENAI_API_URL
        self.timeout = timeout

    async def generate(self, prompt: str, system_prompt: str) -> str:
        """Генерация текста по промпту

        Args:
            prompt: сообщение пользователя
            system_prompt: системный промпт

        Returns:
            Сгенерированный текст
        """
        return await self._chat([
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ])

    async def converse(self, history: List[dict]) -> str:
        """Ответ собеседника по истории диалога

        Args:
            history: [{"role": "system"|"user"|"assistant", "content": "..."}, ...]
        """
        return await self._chat(history)

    async def _chat(self, messages: List[dict]) -> str:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        payload = {
            "model": self.model,
            "messages": messages,
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.base_url, headers=headers, json=payload) as resp:
                    if resp.status != 200:
                        error = await resp.text()
                        logger.error(f"OpenAI API error {resp.status}: {error[:500]}")
                        raise ProviderError(f"OpenAI API returned {resp.status}")
                    data = await resp.json()
        except asyncio.TimeoutError as e:
            logger.error(f"OpenAI API timeout after {self.timeout}s")
            raise ProviderError("OpenAI API timeout") from e
        except aiohttp.ClientError as e:
            logger.error(f"OpenAI API exception: {e}")
            raise ProviderError(str(e)) from e

        return parse_completion(data)


# Глобальный экземпляр
gpt = GPTClient()
