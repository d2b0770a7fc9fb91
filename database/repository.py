"""
Репозиторий для работы с данными
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Set, Tuple

from database.database import get_db
from database.models import (
    Booking, DayOverride, Hold, OperatingSettings, Tank,
    OVERRIDE_BOOKABLE, OVERRIDE_STATUSES, TANK_STATUSES,
)
from utils.time_utils import normalize_time, safe_int

logger = logging.getLogger(__name__)


def _timestamp(dt: datetime) -> str:
    return dt.isoformat(sep=' ', timespec='seconds')


class SettingsRepository:
    """Репозиторий общих настроек работы"""

    @staticmethod
    def get_settings() -> OperatingSettings:
        """Получение текущих настроек"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM operating_settings WHERE id = 1")
            row = cursor.fetchone()
            if row is None:
                raise LookupError("Настройки работы не найдены, БД не инициализирована")
            return OperatingSettings(
                session_duration_minutes=row['session_duration_minutes'],
                cleaning_buffer_minutes=row['cleaning_buffer_minutes'],
                tank_stagger_interval_minutes=row['tank_stagger_interval_minutes'],
                default_open_time=row['default_open_time'],
                default_close_time=row['default_close_time'],
            )

    @staticmethod
    def update_settings(operating: OperatingSettings):
        """Сохранение настроек (с проверкой)"""
        operating.validate()
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE operating_settings SET
                    session_duration_minutes = ?,
                    cleaning_buffer_minutes = ?,
                    tank_stagger_interval_minutes = ?,
                    default_open_time = ?,
                    default_close_time = ?,
                    updated_at = ?
                WHERE id = 1
            """, (
                operating.session_duration_minutes,
                operating.cleaning_buffer_minutes,
                operating.tank_stagger_interval_minutes,
                normalize_time(operating.default_open_time),
                normalize_time(operating.default_close_time),
                _timestamp(datetime.now()),
            ))
        logger.info(f"Настройки работы обновлены: {operating}")


class TankRepository:
    """Репозиторий для работы с камерами"""

    @staticmethod
    def list_tanks() -> List[Tank]:
        """Все камеры в порядке добавления (порядок задает сдвиг старта)"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM tanks ORDER BY id")
            return [TankRepository._row_to_tank(row) for row in cursor.fetchall()]

    @staticmethod
    def get_tank_by_id(tank_id: int) -> Optional[Tank]:
        """Получение камеры по ID"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM tanks WHERE id = ?", (tank_id,))
            row = cursor.fetchone()
            return TankRepository._row_to_tank(row) if row else None

    @staticmethod
    def create_tank(name: str) -> int:
        """Добавление камеры"""
        name = (name or '').strip()
        if not name:
            raise ValueError("Название камеры не может быть пустым")
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("INSERT INTO tanks (name) VALUES (?)", (name,))
            tank_id = cursor.lastrowid
        logger.info(f"Добавлена камера #{tank_id} {name!r}")
        return tank_id

    @staticmethod
    def set_status(tank_id: int, status: str) -> bool:
        """Перевод камеры в Ready / Maintenance"""
        if status not in TANK_STATUSES:
            raise ValueError(f"Неизвестный статус камеры: {status!r}")
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("UPDATE tanks SET status = ? WHERE id = ?", (status, tank_id))
            updated = cursor.rowcount > 0
        if updated:
            logger.info(f"Камера #{tank_id} переведена в статус {status}")
        return updated

    @staticmethod
    def _row_to_tank(row) -> Tank:
        return Tank(id=row['id'], name=row['name'], status=row['status'])


class OverrideRepository:
    """Репозиторий исключений по датам"""

    @staticmethod
    def get_overrides(start_date: date, end_date: date) -> List[DayOverride]:
        """Исключения за период (включительно)"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM day_overrides
                WHERE date >= ? AND date <= ?
                ORDER BY date
            """, (start_date.isoformat(), end_date.isoformat()))
            return [OverrideRepository._row_to_override(row) for row in cursor.fetchall()]

    @staticmethod
    def get_override(day: date) -> Optional[DayOverride]:
        overrides = OverrideRepository.get_overrides(day, day)
        return overrides[0] if overrides else None

    @staticmethod
    def set_override(day: date, status: str, open_time: Optional[str],
                     close_time: Optional[str], sessions_to_sell: int):
        """Создание или замена исключения на дату"""
        if status not in OVERRIDE_STATUSES:
            raise ValueError(f"Неизвестный статус дня: {status!r}")
        if status == OVERRIDE_BOOKABLE and not (open_time and close_time):
            raise ValueError("Для рабочего дня нужно указать часы работы")
        if open_time:
            open_time = normalize_time(open_time)
        if close_time:
            close_time = normalize_time(close_time)
        sessions_to_sell = max(0, safe_int(sessions_to_sell))

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO day_overrides
                (date, status, open_time, close_time, sessions_to_sell, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(date) DO UPDATE SET
                    status = excluded.status,
                    open_time = excluded.open_time,
                    close_time = excluded.close_time,
                    sessions_to_sell = excluded.sessions_to_sell,
                    updated_at = excluded.updated_at
            """, (
                day.isoformat(), status, open_time, close_time,
                sessions_to_sell, _timestamp(datetime.now()),
            ))
        logger.info(
            f"Исключение на {day}: {status} {open_time}-{close_time}, "
            f"сеансов к продаже {sessions_to_sell}"
        )

    @staticmethod
    def delete_override(day: date) -> bool:
        """Возврат даты к общему расписанию"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM day_overrides WHERE date = ?", (day.isoformat(),))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Исключение на {day} удалено")
        return deleted

    @staticmethod
    def _row_to_override(row) -> DayOverride:
        return DayOverride(
            date=date.fromisoformat(row['date']),
            status=row['status'],
            open_time=row['open_time'],
            close_time=row['close_time'],
            sessions_to_sell=row['sessions_to_sell'],
        )


class BookingRepository:
    """Репозиторий для работы с записями"""

    @staticmethod
    def create_booking(booking: Booking) -> int:
        """
        Создание новой записи.
        Повторная запись на то же время в той же камере дает sqlite3.IntegrityError.
        """
        with get_db() as conn:
            booking_id = BookingRepository._insert_booking(conn.cursor(), booking)
        logger.info(
            f"Запись #{booking_id}: {booking.date} камера #{booking.tank_id} "
            f"сеанс {booking.session_number}"
        )
        return booking_id

    @staticmethod
    def create_booking_within_limit(booking: Booking, sessions_limit: int) -> Optional[int]:
        """
        Создание записи, только если на дату продано меньше sessions_limit сеансов.

        Подсчет и вставка идут в одной транзакции BEGIN IMMEDIATE.
        Возвращает ID записи или None, если мест нет.
        """
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            cursor.execute("""
                SELECT COUNT(*) as count FROM bookings
                WHERE status = 'active' AND date = ?
            """, (booking.date.isoformat(),))
            booked = cursor.fetchone()['count']
            if booked >= sessions_limit:
                logger.warning(
                    f"Нет мест на {booking.date}: записей {booked}, лимит {sessions_limit}"
                )
                return None
            booking_id = BookingRepository._insert_booking(cursor, booking)
        logger.info(
            f"Запись #{booking_id}: {booking.date} камера #{booking.tank_id} "
            f"сеанс {booking.session_number}"
        )
        return booking_id

    @staticmethod
    def _insert_booking(cursor, booking: Booking) -> int:
        cursor.execute("""
            INSERT INTO bookings
            (user_id, username, tank_id, date, session_number, start_time, phone, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            booking.user_id,
            booking.username,
            booking.tank_id,
            booking.date.isoformat(),
            booking.session_number,
            booking.start_time,
            booking.phone,
            _timestamp(booking.created_at),
        ))
        return cursor.lastrowid

    @staticmethod
    def get_booking_counts(start_date: date, end_date: date) -> Dict[date, int]:
        """Количество активных записей по датам за период"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT date, COUNT(*) as count FROM bookings
                WHERE status = 'active' AND date >= ? AND date <= ?
                GROUP BY date
            """, (start_date.isoformat(), end_date.isoformat()))
            return {date.fromisoformat(row['date']): row['count'] for row in cursor.fetchall()}

    @staticmethod
    def get_user_bookings(user_id: int, from_date: date) -> List[Booking]:
        """Получение будущих записей пользователя"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM bookings
                WHERE user_id = ? AND status = 'active' AND date >= ?
                ORDER BY date, start_time
            """, (user_id, from_date.isoformat()))
            return [BookingRepository._row_to_booking(row) for row in cursor.fetchall()]

    @staticmethod
    def get_bookings_by_date(day: date) -> List[Booking]:
        """Все активные записи на дату"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM bookings
                WHERE status = 'active' AND date = ?
                ORDER BY tank_id, session_number
            """, (day.isoformat(),))
            return [BookingRepository._row_to_booking(row) for row in cursor.fetchall()]

    @staticmethod
    def get_taken_sessions(day: date, exclude_user: Optional[int] = None) -> Set[Tuple[int, str]]:
        """
        Занятые сеансы на дату: (tank_id, start_time).
        Учитываются активные записи и неистекшие удержания других пользователей.
        Номер сеанса не входит в ключ: после смены часов он указывает на другое время.
        """
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT tank_id, start_time FROM bookings
                WHERE status = 'active' AND date = ?
            """, (day.isoformat(),))
            taken = {(row['tank_id'], row['start_time']) for row in cursor.fetchall()}

            query = """
                SELECT tank_id, start_time FROM holds
                WHERE date = ? AND expires_at > ?
            """
            params = [day.isoformat(), _timestamp(datetime.now())]
            if exclude_user:
                query += " AND user_id != ?"
                params.append(exclude_user)
            cursor.execute(query, params)
            taken.update((row['tank_id'], row['start_time']) for row in cursor.fetchall())
            return taken

    @staticmethod
    def cancel_booking(booking_id: int) -> bool:
        """Отмена записи"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE bookings SET status = 'cancelled'
                WHERE id = ? AND status = 'active'
            """, (booking_id,))
            cancelled = cursor.rowcount > 0
        if cancelled:
            logger.info(f"Запись #{booking_id} отменена")
        return cancelled

    @staticmethod
    def get_booking_by_id(booking_id: int) -> Optional[Booking]:
        """Получение записи по ID"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,))
            row = cursor.fetchone()
            return BookingRepository._row_to_booking(row) if row else None

    @staticmethod
    def _row_to_booking(row) -> Booking:
        """Преобразование строки БД в объект Booking"""
        return Booking(
            id=row['id'],
            user_id=row['user_id'],
            username=row['username'],
            tank_id=row['tank_id'],
            date=date.fromisoformat(row['date']),
            session_number=row['session_number'],
            start_time=row['start_time'],
            phone=row['phone'],
            created_at=datetime.fromisoformat(row['created_at']),
            status=row['status']
        )


class HoldRepository:
    """Репозиторий для работы с временными удержаниями"""

    @staticmethod
    def create_hold(hold: Hold) -> int:
        """Создание нового hold"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO holds
                (user_id, tank_id, date, session_number, start_time, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                hold.user_id,
                hold.tank_id,
                hold.date.isoformat(),
                hold.session_number,
                hold.start_time,
                _timestamp(hold.created_at),
                _timestamp(hold.expires_at),
            ))
            return cursor.lastrowid

    @staticmethod
    def delete_user_holds(user_id: int):
        """Удаление всех holds пользователя"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM holds WHERE user_id = ?", (user_id,))

    @staticmethod
    def cleanup_expired() -> int:
        """Удаление истёкших holds"""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM holds WHERE expires_at < ?", (_timestamp(datetime.now()),))
            return cursor.rowcount
