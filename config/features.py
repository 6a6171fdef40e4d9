"""
Feature flags и настраиваемые параметры бота.

Значения берутся из features.yaml, переменные окружения имеют приоритет.

Имя env переменной получается из пути флага: точки → подчёркивания, верхний регистр.
Пример: "exercises.generative_fallback" → "EXERCISES_GENERATIVE_FALLBACK"

Использование:
    from config.features import flags

    if flags.is_enabled("exercises.generative_fallback"):
        exercise = await generator.generate_via_provider(exercise_type, level)

    limit = flags.get_int("chat.history_limit", 10)
"""

import os
from pathlib import Path
from typing import Any

import yaml

DEFAULT_FEATURES_PATH = Path(__file__).parent / "features.yaml"

_TRUE_VALUES = ("true", "1", "yes", "on")


class FeatureFlags:
    """Флаги из features.yaml с переопределением через окружение."""

    def __init__(self, config_path: Path = None, environ: dict = None):
        """
        Args:
            config_path: Путь к features.yaml. По умолчанию config/features.yaml
            environ: Источник переопределений (по умолчанию os.environ)
        """
        self._path = Path(config_path) if config_path else DEFAULT_FEATURES_PATH
        self._environ = environ if environ is not None else os.environ
        self._config: dict = {}
        self._load_config()

    def _load_config(self) -> None:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            self._config = {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self._path.name}: {e}")

    @staticmethod
    def _env_name(path: str) -> str:
        return path.upper().replace(".", "_")

    def _lookup(self, path: str) -> Any:
        value = self._config
        for key in path.split("."):
            if not isinstance(value, dict) or key not in value:
                return None
            value = value[key]
        return value

    def is_enabled(self, path: str, default: bool = False) -> bool:
        """
        Включён ли флаг.

        Args:
            path: Путь через точку (например, "rate_limit.enabled")
            default: Значение, если флаг нигде не задан
        """
        env_value = self._environ.get(self._env_name(path))
        if env_value is not None:
            return env_value.lower() in _TRUE_VALUES

        value = self._lookup(path)
        return default if value is None else bool(value)

    def get(self, path: str, default: Any = None) -> Any:
        """Сырое значение (env переопределение возвращается строкой)."""
        env_value = self._environ.get(self._env_name(path))
        if env_value is not None:
            return env_value

        value = self._lookup(path)
        return default if value is None else value

    def get_int(self, path: str, default: int) -> int:
        try:
            return int(self.get(path, default))
        except (TypeError, ValueError):
            return default

    def get_float(self, path: str, default: float) -> float:
        try:
            return float(self.get(path, default))
        except (TypeError, ValueError):
            return default

    def reload(self) -> None:
        """Перечитывает features.yaml."""
        self._load_config()


# Глобальный экземпляр
flags = FeatureFlags()
