"""
I18n — система локализации бота.

Загружает переводы из YAML файлов и предоставляет API для их получения.

Структура файлов:
    i18n/
    ├── en/
    │   ├── common.yaml      # Общие строки (команды, ошибки)
    │   └── states.yaml      # Строки для стейтов
    └── ru/
        ├── common.yaml
        └── states.yaml

Формат YAML:
    welcome: "Hello, {name}!"
    chat:
      intro: "Let's practice English!"

Использование:
    from i18n import t

    text = t("states.chat.intro", "en")
    text = t("common.level.changed", "ru", level="B1")
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "ru")


def detect_language(language_code: Optional[str]) -> str:
    """
    Язык интерфейса по language_code из Telegram.

    "ru", "ru-RU" -> "ru"; всё остальное -> "en".
    """
    if not language_code:
        return DEFAULT_LANGUAGE
    base = language_code.lower().split("-")[0]
    return base if base in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


class I18n:
    """
    Класс для работы с локализацией.

    Загружает все переводы из YAML файлов при инициализации.
    Поддерживает вложенные ключи через точку (например, "states.chat.intro").
    """

    def __init__(self, i18n_dir: str = None, default_lang: str = DEFAULT_LANGUAGE):
        """
        Args:
            i18n_dir: Путь к папке с переводами. По умолчанию — папка i18n/
            default_lang: Язык, на который откатываемся при отсутствии перевода
        """
        self._dir = Path(i18n_dir) if i18n_dir else Path(__file__).parent
        self._translations: dict[str, dict[str, str]] = {}
        self._default_lang = default_lang
        self._load_all(self._dir)

    def _load_all(self, i18n_dir: Path) -> None:
        """Загружает все переводы из папки."""
        if not i18n_dir.exists():
            logger.warning(f"i18n directory not found: {i18n_dir}")
            return

        for lang_dir in i18n_dir.iterdir():
            if lang_dir.is_dir() and not lang_dir.name.startswith(("_", ".")):
                lang = lang_dir.name
                self._translations[lang] = {}

                for yaml_file in lang_dir.glob("*.yaml"):
                    self._load_file(yaml_file, lang)

                logger.debug(f"Loaded {len(self._translations[lang])} keys for language: {lang}")

    def _load_file(self, yaml_file: Path, lang: str) -> None:
        """Загружает один YAML файл."""
        try:
            with open(yaml_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in {yaml_file}: {e}")
            return

        # Имя файла — namespace (common.yaml -> common)
        self._flatten(data, yaml_file.stem, self._translations[lang])

    def _flatten(self, data: dict, prefix: str, result: dict) -> None:
        """
        Превращает вложенный dict в плоский с точками.

        Пример:
            {"chat": {"intro": "Hello"}}
            -> {"states.chat.intro": "Hello"}
        """
        for key, value in data.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                self._flatten(value, full_key, result)
            else:
                result[full_key] = str(value)

    def t(self, key: str, lang: str = None, **kwargs) -> str:
        """
        Получает перевод по ключу.

        Args:
            key: Ключ перевода (например, "common.welcome")
            lang: Код языка (en, ru). По умолчанию — en
            **kwargs: Параметры для форматирования строки

        Returns:
            Переведённая строка. Если ключ не найден — возвращает сам ключ.
        """
        if lang is None or lang not in self._translations:
            lang = self._default_lang

        text = self._translations.get(lang, {}).get(key)

        # Fallback на язык по умолчанию
        if text is None and lang != self._default_lang:
            text = self._translations.get(self._default_lang, {}).get(key)

        if text is None:
            logger.warning(f"Translation not found: {key} ({lang})")
            return key

        if kwargs:
            try:
                return text.format(**kwargs)
            except KeyError as e:
                logger.warning(f"Missing format parameter in '{key}': {e}")
                return text

        return text


# Глобальный экземпляр
_i18n: Optional[I18n] = None


def get_i18n() -> I18n:
    global _i18n
    if _i18n is None:
        _i18n = I18n()
    return _i18n


def t(key: str, lang: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """Shortcut для получения перевода."""
    return get_i18n().t(key, lang, **kwargs)
