"""
Модуль для работы с базой данных SQLite
"""
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Generator

from config import settings

logger = logging.getLogger(__name__)


def get_connection() -> sqlite3.Connection:
    """Получение подключения к БД"""
    conn = sqlite3.connect(settings.DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Контекстный менеджер для работы с БД"""
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db():
    """Инициализация базы данных"""
    # Создание директории для БД, если не существует
    db_dir = os.path.dirname(settings.DB_PATH)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)

    with get_db() as conn:
        cursor = conn.cursor()

        # Общие настройки работы (всегда одна строка)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS operating_settings (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                session_duration_minutes INTEGER NOT NULL,
                cleaning_buffer_minutes INTEGER NOT NULL,
                tank_stagger_interval_minutes INTEGER NOT NULL,
                default_open_time TEXT NOT NULL,
                default_close_time TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Таблица камер
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tanks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'Ready',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Исключения по датам (не больше одного на дату)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS day_overrides (
                date TEXT PRIMARY KEY,
                status TEXT NOT NULL,
                open_time TEXT,
                close_time TEXT,
                sessions_to_sell INTEGER NOT NULL DEFAULT 0,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Таблица записей
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS bookings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                username TEXT,
                tank_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                session_number INTEGER NOT NULL,
                start_time TEXT NOT NULL,
                phone TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                status TEXT DEFAULT 'active',
                FOREIGN KEY (tank_id) REFERENCES tanks (id)
            )
        """)

        # Один активный клиент на время старта в камере
        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_bookings_start
            ON bookings(date, tank_id, start_time)
            WHERE status = 'active'
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_bookings_user
            ON bookings(user_id, status)
        """)

        # Таблица временных удержаний
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS holds (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                tank_id INTEGER NOT NULL,
                date TEXT NOT NULL,
                session_number INTEGER NOT NULL,
                start_time TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                expires_at TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_holds_expires
            ON holds(expires_at)
        """)

        cursor.execute("SELECT COUNT(*) as count FROM operating_settings")
        if cursor.fetchone()['count'] == 0:
            cursor.execute("""
                INSERT INTO operating_settings
                (id, session_duration_minutes, cleaning_buffer_minutes,
                 tank_stagger_interval_minutes, default_open_time, default_close_time)
                VALUES (1, ?, ?, ?, ?, ?)
            """, (
                settings.DEFAULT_SESSION_DURATION_MINUTES,
                settings.DEFAULT_CLEANING_BUFFER_MINUTES,
                settings.DEFAULT_TANK_STAGGER_MINUTES,
                settings.DEFAULT_OPEN_TIME,
                settings.DEFAULT_CLOSE_TIME,
            ))
            logger.info("Созданы настройки работы по умолчанию")

        # Проверка наличия камер
        cursor.execute("SELECT COUNT(*) as count FROM tanks")
        if cursor.fetchone()['count'] == 0:
            for name in settings.DEFAULT_TANK_NAMES:
                cursor.execute("INSERT INTO tanks (name) VALUES (?)", (name,))
            logger.info(f"Добавлено камер по умолчанию: {len(settings.DEFAULT_TANK_NAMES)}")

        conn.commit()
