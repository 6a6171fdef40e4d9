"""
Модуль работы с базой данных.

Содержит:
- connection.py: пул соединений PostgreSQL
- models.py: описание таблиц (SQL schemas)
- entities.py: dataclass-записи (User, Session, Exercise, ...)
- repository.py: Database, через который к БД обращаются стейты
- queries/: функции для работы с данными
"""

from .connection import (
    get_pool,
    close_pool,
    init_db,
)

from .models import create_tables

__all__ = [
    'get_pool',
    'close_pool',
    'init_db',
    'create_tables',
]
