"""
Ошибки, которые прерывают обработку одного сообщения (хода).

- TransientProviderFailure: сбой внешнего API (LLM, LanguageTool).
  Пользователь получает извинение, сессия не меняется.
- MalformedContext: контекст сессии не соответствует стейту.
  Пользователь получает извинение, сессия сбрасывается в idle.
"""

from typing import Optional


class TransientProviderFailure(Exception):
    """Сбой внешнего сервиса: сеть, таймаут, не-2xx ответ, пустой результат."""
    pass


class ProviderError(TransientProviderFailure):
    """Ошибка Completion Provider (LLM)."""
    pass


class CheckerError(TransientProviderFailure):
    """Ошибка Grammar Checker (LanguageTool)."""
    pass


class MalformedContext(Exception):
    """Контекст сессии не подходит для текущего стейта."""

    def __init__(self, state: Optional[str], reason: str):
        self.state = state
        self.reason = reason
        super().__init__(f"Malformed context for state '{state}': {reason}")


class NotFound(MalformedContext):
    """Контекст ссылается на запись, которой нет в БД."""
    pass
