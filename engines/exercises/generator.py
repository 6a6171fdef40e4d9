"""
Генератор упражнений.

Две стратегии:
- generate_offline: случайный шаблон из templates.yaml (без сети)
- generate_via_provider: упражнение пишет LLM, текст сохраняется как есть

Шаблон с вариантами в скобках:
    "I (go/goes) home."  ->  content "I _____  home.", options ["go", "goes"]
"""

import random
from pathlib import Path
from typing import Optional

import yaml

from config import get_logger, EnglishLevel, TEMPLATES_PATH
from core.helpers import get_exercise_prompt, GENERATE_EXERCISE_REQUEST
from db.entities import Exercise

logger = get_logger(__name__)

BLANK = "_____ "

LOWER = "lower"
UPPER = "upper"


# =============================================================================
# РАЗБОР ТЕКСТА
# =============================================================================

def extract_options(content: str) -> str:
    """Текст между первой "(" и первой ")", иначе пустая строка"""
    start = content.find("(")
    end = content.find(")")
    if start != -1 and end != -1 and start < end:
        return content[start + 1:end]
    return ""


def clean_exercise_content(content: str) -> str:
    """Заменяет первые скобки с вариантами на пропуск"""
    start = content.find("(")
    end = content.find(")")
    if start != -1 and end != -1 and start < end:
        return content[:start] + BLANK + content[end + 1:]
    return content


def extract_instructions(content: str) -> str:
    """
    Эвристика: инструкция из свободного ответа LLM.

    Ищет строку с "instruct" или "1." и берёт первую непустую строку
    после неё (или саму строку, если дальше ничего нет). Если маркера
    нет, берётся первая строка.
    """
    lines = content.split("\n")
    for i, line in enumerate(lines):
        if "instruct" in line.lower() or "1." in line:
            for following in lines[i + 1:]:
                if following.strip():
                    return following.strip()
            return line.strip()
    return lines[0].strip() if lines else ""


# =============================================================================
# ГЕНЕРАТОР
# =============================================================================

def load_templates(path: Path = TEMPLATES_PATH) -> dict:
    """Загружает шаблоны упражнений из YAML"""
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


class ExerciseGenerator:
    """
    Создаёт упражнения по типу и уровню.

    Args:
        llm: Completion Provider с методом generate(prompt, system_prompt)
        templates: словарь шаблонов (по умолчанию из templates.yaml)
        rng: источник случайности (random.Random)
    """

    def __init__(self, llm=None, templates: Optional[dict] = None,
                 rng: Optional[random.Random] = None):
        self.llm = llm
        self.templates = templates if templates is not None else load_templates()
        self.rng = rng or random.Random()

    def bucket_for(self, exercise_type: str, level: str) -> str:
        """Корзина уровня: lower или upper"""
        lower_levels = self.templates.get(exercise_type, {}).get(
            'lower_levels', [EnglishLevel.A1, EnglishLevel.A2, EnglishLevel.B1]
        )
        return LOWER if level in lower_levels else UPPER

    def has_template(self, exercise_type: str, level: str) -> bool:
        """Есть ли шаблоны для типа и корзины уровня"""
        bucket = self.templates.get(exercise_type, {}).get(self.bucket_for(exercise_type, level))
        return bool(bucket and bucket.get('candidates'))

    def generate_offline(self, exercise_type: str, level: str) -> Exercise:
        """
        Упражнение из шаблона.

        Raises:
            KeyError: для типа и уровня нет шаблонов
        """
        if not self.has_template(exercise_type, level):
            raise KeyError(f"No templates for {exercise_type}/{level}")

        bucket = self.templates[exercise_type][self.bucket_for(exercise_type, level)]
        candidate = self.rng.choice(bucket['candidates'])

        content = candidate['sentence']
        options = []
        if bucket.get('multiple_choice'):
            options = extract_options(content).split("/")
            content = clean_exercise_content(content)

        return Exercise(
            type=exercise_type,
            level=level,
            instruction=bucket.get('instruction', ''),
            content=content,
            answer=candidate['answer'],
            options=options,
        )

    async def generate_via_provider(self, exercise_type: str, level: str) -> Exercise:
        """
        Упражнение от LLM.

        Ответ и варианты из свободного текста не извлекаются,
        поэтому такое упражнение не проверяется автоматически.

        Raises:
            ProviderError: LLM недоступен или вернул пустой ответ
        """
        prompt = get_exercise_prompt(exercise_type, level)
        content = await self.llm.generate(GENERATE_EXERCISE_REQUEST, prompt)
        logger.info(f"🤖 Упражнение {exercise_type}/{level} сгенерировано LLM ({len(content)} символов)")

        return Exercise(
            type=exercise_type,
            level=level,
            instruction=extract_instructions(content),
            content=content,
        )
