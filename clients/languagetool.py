"""
Клиент для LanguageTool HTTP API (/v2/check).

LanguageToolClient — Grammar Checker бота:
    issues = await languagetool.check("He go to school.")
    # [GrammarIssue(message="...", offset=3, length=2, replacements=["goes", ...])]

Сбой запроса или не-200 ответ — CheckerError.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import aiohttp

from config import (
    get_logger,
    LANGUAGETOOL_URL,
    LANGUAGETOOL_LANGUAGE,
    REQUEST_TIMEOUT,
)
from core.errors import CheckerError

logger = get_logger(__name__)

# Сколько символов показывать вокруг ошибки
CONTEXT_CHARS = 10
# Сколько вариантов исправления показывать
MAX_REPLACEMENTS = 3


@dataclass
class GrammarIssue:
    message: str
    offset: int
    length: int
    replacements: List[str] = field(default_factory=list)


def parse_matches(data: dict) -> List[GrammarIssue]:
    """Переводит JSON ответа LanguageTool в список GrammarIssue"""
    issues = []
    for match in data.get("matches") or []:
        issues.append(GrammarIssue(
            message=match.get("message", ""),
            offset=int(match.get("offset", 0)),
            length=int(match.get("length", 0)),
            replacements=[
                r.get("value", "") for r in match.get("replacements") or []
                if r.get("value")
            ],
        ))
    return issues


def issue_context(text: str, issue: GrammarIssue) -> Tuple[str, str, str]:
    """
    Фрагмент текста вокруг ошибки.

    Returns:
        (до ошибки, ошибка, после ошибки); обрезанные края помечены "..."
    """
    start = max(0, min(issue.offset, len(text)))
    end = max(start, min(issue.offset + issue.length, len(text)))

    if start > CONTEXT_CHARS:
        before = "..." + text[start - CONTEXT_CHARS:start]
    else:
        before = text[:start]

    if end + CONTEXT_CHARS < len(text):
        after = text[end:end + CONTEXT_CHARS] + "..."
    else:
        after = text[end:]

    return before, text[start:end], after


class LanguageToolClient:
    """Клиент для LanguageTool API"""

    def __init__(self, base_url: Optional[str] = None, language: Optional[str] = None,
                 timeout: int = REQUEST_TIMEOUT):
        self.base_url = base_url or LANGUAGETOOL_URL
        self.language = language or LANGUAGETOOL_LANGUAGE
        self.timeout = timeout

    async def check(self, text: str) -> List[GrammarIssue]:
        """Проверяет текст на грамматические и стилистические ошибки"""
        form = {
            "text": text,
            "language": self.language,
            "enabledOnly": "false",
        }
        headers = {"Accept": "application/json"}
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.base_url, data=form, headers=headers) as resp:
                    if resp.status != 200:
                        error = await resp.text()
                        logger.error(f"LanguageTool API error {resp.status}: {error[:500]}")
                        raise CheckerError(f"LanguageTool API returned {resp.status}")
                    data = await resp.json()
        except asyncio.TimeoutError as e:
            logger.error(f"LanguageTool API timeout after {self.timeout}s")
            raise CheckerError("LanguageTool API timeout") from e
        except aiohttp.ClientError as e:
            logger.error(f"LanguageTool API exception: {e}")
            raise CheckerError(str(e)) from e

        issues = parse_matches(data)
        logger.info(f"🔍 LanguageTool: {len(issues)} замечаний на {len(text)} символов")
        return issues


# Глобальный экземпляр
languagetool = LanguageToolClient()
