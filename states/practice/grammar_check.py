"""
Стейт: Проверка грамматики (/check).

Вход: /check — подсказка; "/check <текст>" проверяет текст сразу
Сообщение: проверка через LanguageTool, список замечаний
Выход: idle после одной проверки
"""

from typing import List, Optional

from aiogram.types import Message

from clients.languagetool import GrammarIssue, issue_context, MAX_REPLACEMENTS
from config import SessionState, ActivityKind
from core.context import GrammarCheckContext, IdleContext
from core.helpers import escape_md
from states.base import BaseState, Entered


class GrammarCheckState(BaseState):

    name = SessionState.GRAMMAR_CHECK

    async def enter(self, user, context: dict = None) -> Entered:
        initial_text = (context or {}).get("initial_text")
        if initial_text:
            await self.check(user, initial_text)
            return Entered(IdleContext(), event="checked")

        await self.send_md(user, self.t("states.grammar.intro", user))
        return Entered(GrammarCheckContext())

    async def handle(self, user, message: Message, context) -> Optional[str]:
        await self.check(user, message.text or "")
        return "checked"

    async def check(self, user, text: str) -> None:
        async with self.wait_message(user, "states.grammar.wait"):
            issues = await self.checker.check(text)

        await self.send_md(user, self.format_result(user, text, issues))
        await self.record(user, ActivityKind.GRAMMAR_CHECK)

    def format_result(self, user, text: str, issues: List[GrammarIssue]) -> str:
        """Нумерованный список замечаний с контекстом и вариантами исправления"""
        parts = [self.t("states.grammar.title", user)]

        if not issues:
            parts.append(self.t("states.grammar.correct", user))
            return "\n\n".join(parts)

        parts.append(self.t("states.grammar.found", user, count=len(issues)))

        for number, issue in enumerate(issues, start=1):
            before, span, after = issue_context(text, issue)
            lines = [
                self.t("states.grammar.issue", user, number=number, message=escape_md(issue.message)),
                self.t(
                    "states.grammar.context", user,
                    before=escape_md(before), span=escape_md(span), after=escape_md(after),
                ),
            ]
            if issue.replacements:
                items = ", ".join(escape_md(r) for r in issue.replacements[:MAX_REPLACEMENTS])
                lines.append(self.t("states.grammar.replacements", user, items=items))
            parts.append("\n".join(lines))

        return "\n\n".join(parts)
