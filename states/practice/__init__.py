"""
Стейты практики.

- chat.py: ChatState — разговор с репетитором
- grammar_check.py: GrammarCheckState — проверка грамматики
"""

from .chat import ChatState
from .grammar_check import GrammarCheckState

__all__ = ['ChatState', 'GrammarCheckState']
