"""
Информационные команды: /help, /progress, /level.

Стейт сессии не меняют (target: _same в transitions.yaml).
"""

from config import EnglishLevel, get_logger
from core.helpers import escape_md
from engines.progress import level_progress, next_level, is_ready_for_next_level
from states.base import BaseHandler

logger = get_logger(__name__)


class InfoCommands(BaseHandler):
    """Обработчики команд, которые только показывают или меняют настройки"""

    def register(self, machine) -> None:
        machine.register_command("help", self.help)
        machine.register_command("progress", self.progress_report)
        machine.register_command("level", self.level)

    async def help(self, user, session, args: str = "") -> None:
        await self.send_md(user, self.t("common.help", user))

    async def progress_report(self, user, session, args: str = "") -> None:
        """Статистика, серия, достижения и оценка прохождения уровня"""
        progress = await self.db.get_progress(user.id)
        achievements = await self.db.get_achievements(user.id)

        success_rate = 0
        if progress.total_exercises > 0:
            success_rate = progress.correct_exercises * 100 // progress.total_exercises

        lines = [self.t(
            "states.progress.text", user,
            level=user.english_level,
            level_progress=f"{level_progress(progress, user.english_level):g}",
            total_exercises=progress.total_exercises,
            correct_exercises=progress.correct_exercises,
            success_rate=success_rate,
            total_conversations=progress.total_conversations,
            total_messages=progress.total_messages,
            grammar_checks=progress.grammar_checks,
            current_streak=progress.current_streak,
            longest_streak=progress.longest_streak,
        )]

        if achievements:
            titles = ", ".join(escape_md(a.title) for a in achievements)
            lines.append(self.t("states.progress.achievements", user, titles=titles))

        if is_ready_for_next_level(progress, user.english_level):
            lines.append(self.t(
                "states.progress.ready", user, next_level=next_level(user.english_level)
            ))

        lines.append(self.t("states.progress.footer", user))
        await self.send_md(user, "\n\n".join(lines))

    async def level(self, user, session, args: str = "") -> None:
        """/level — показать уровень, /level B1 — сменить"""
        levels = ", ".join(EnglishLevel.ALL)
        requested = args.strip().upper()

        if not requested:
            await self.send_md(user, self.t("common.level.current", user, level=user.english_level, levels=levels))
            return

        if requested not in EnglishLevel.ALL:
            await self.send(user, self.t("common.level.invalid", user, level=args.strip(), levels=levels))
            return

        await self.db.update_user_level(user.id, requested)
        user.english_level = requested
        logger.info(f"🎚 Уровень пользователя {user.id}: {requested}")
        await self.send_md(user, self.t("common.level.changed", user, level=requested))
