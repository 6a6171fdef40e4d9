"""
Модуль стейтов State Machine.

Содержит:
- base.py: базовые классы BaseHandler, BaseState и результат входа Entered
- common/: idle и информационные команды
- practice/: разговор и проверка грамматики
- exercises/: генерация упражнений и проверка ответов
- registry.py: регистрация всего в StateMachine
"""

from .base import BaseState, BaseHandler, Entered

__all__ = ['BaseState', 'BaseHandler', 'Entered']
