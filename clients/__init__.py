"""
Клиенты для внешних API.

Содержит:
- gpt.py: GPTClient для Chat Completions API (Completion Provider)
- languagetool.py: LanguageToolClient для проверки грамматики (Grammar Checker)
"""

from .gpt import GPTClient, gpt, parse_completion
from .languagetool import (
    LanguageToolClient,
    languagetool,
    GrammarIssue,
    parse_matches,
    issue_context,
    MAX_REPLACEMENTS,
)

__all__ = [
    'GPTClient',
    'gpt',
    'parse_completion',
    'LanguageToolClient',
    'languagetool',
    'GrammarIssue',
    'parse_matches',
    'issue_context',
    'MAX_REPLACEMENTS',
]
