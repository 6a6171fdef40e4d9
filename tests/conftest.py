"""
Общая настройка тестов.

Запуск: python -m pytest tests/ -v
"""

import os
import sys

# Добавляем путь к проекту
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
