"""
Конфигурация проекта
"""
import os
from dataclasses import dataclass
from typing import List


def _env_flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    """Настройки приложения"""
    # Telegram
    BOT_TOKEN: str = os.getenv('BOT_TOKEN', '')
    ADMIN_IDS: List[int] = None

    # База данных
    DB_PATH: str = os.getenv('DB_PATH', 'data/float_bot.db')

    # Логирование
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    # Значения по умолчанию для первого запуска (дальше правятся из админки)
    DEFAULT_SESSION_DURATION_MINUTES: int = int(os.getenv('DEFAULT_SESSION_DURATION_MINUTES', '60'))
    DEFAULT_CLEANING_BUFFER_MINUTES: int = int(os.getenv('DEFAULT_CLEANING_BUFFER_MINUTES', '30'))
    DEFAULT_TANK_STAGGER_MINUTES: int = int(os.getenv('DEFAULT_TANK_STAGGER_MINUTES', '30'))
    DEFAULT_OPEN_TIME: str = os.getenv('DEFAULT_OPEN_TIME', '08:00')
    DEFAULT_CLOSE_TIME: str = os.getenv('DEFAULT_CLOSE_TIME', '22:00')
    DEFAULT_TANK_NAMES: List[str] = None

    # Бизнес-правила
    MAX_BOOKING_MONTHS: int = 2
    HOLD_TIMEOUT_MINUTES: int = 10
    HOLD_CLEANUP_INTERVAL_MINUTES: int = 2

    # Ёмкость: каждой камере свое число сеансов вместо общего максимума
    FIT_EACH_TANK: bool = _env_flag('FIT_EACH_TANK')

    def __post_init__(self):
        """Инициализация после создания объекта"""
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN не установлен")

        # Парсинг ADMIN_IDS из переменной окружения
        if self.ADMIN_IDS is None:
            admin_ids_str = os.getenv('ADMIN_IDS', '')
            if admin_ids_str:
                self.ADMIN_IDS = [int(id.strip()) for id in admin_ids_str.split(',') if id.strip()]
            else:
                self.ADMIN_IDS = []

        if self.DEFAULT_TANK_NAMES is None:
            names_str = os.getenv('DEFAULT_TANK_NAMES', 'Камера 1,Камера 2,Камера 3')
            self.DEFAULT_TANK_NAMES = [name.strip() for name in names_str.split(',') if name.strip()]

    def is_admin(self, user_id: int) -> bool:
        """Проверка, является ли пользователь администратором"""
        return user_id in self.ADMIN_IDS


# Глобальный экземпляр настроек
settings = Settings()
