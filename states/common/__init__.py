"""
Общие стейты и команды.

- idle.py: IdleState — покой, ожидание команды
- commands.py: InfoCommands — /help, /progress, /level
"""

from .idle import IdleState
from .commands import InfoCommands

__all__ = ['IdleState', 'InfoCommands']
