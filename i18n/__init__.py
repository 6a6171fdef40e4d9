"""
Модуль локализации бота.

Архитектура:
- en/*.yaml: английские строки (язык по умолчанию)
- ru/*.yaml: русский перевод

Использование:
    from i18n import t, detect_language

    # Получить перевод
    message = t('common.welcome', 'en')
    message = t('common.level.changed', 'ru', level='B1')

    # Определить язык по коду Telegram
    lang = detect_language(user.language_code)
"""

from .loader import (
    t,
    detect_language,
    get_i18n,
    I18n,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)

__all__ = [
    't',
    'detect_language',
    'get_i18n',
    'I18n',
    'SUPPORTED_LANGUAGES',
    'DEFAULT_LANGUAGE',
]
