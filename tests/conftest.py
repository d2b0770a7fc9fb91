import os

# config.settings создается при импорте и требует токен
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("ADMIN_IDS", "1")

import pytest

from database.models import OperatingSettings, Tank, TANK_MAINTENANCE


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Чистая SQLite БД во временной папке"""
    from config import settings
    from database.database import init_db

    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "data" / "test.db"))
    init_db()
    return settings.DB_PATH


@pytest.fixture
def operating():
    return OperatingSettings(
        session_duration_minutes=60,
        cleaning_buffer_minutes=15,
        tank_stagger_interval_minutes=20,
        default_open_time="09:00",
        default_close_time="17:00",
    )


@pytest.fixture
def tanks():
    return [
        Tank(id=1, name="Камера 1"),
        Tank(id=2, name="Камера 2"),
        Tank(id=3, name="Камера 3"),
        Tank(id=4, name="Камера 4", status=TANK_MAINTENANCE),
    ]
