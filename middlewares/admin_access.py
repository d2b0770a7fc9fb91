"""
Middleware проверки прав администратора для админского роутера
"""
import logging
from typing import Callable, Dict, Any, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from config import settings

logger = logging.getLogger(__name__)


class AdminAccessMiddleware(BaseMiddleware):
    """Пропускает к хендлерам только пользователей из ADMIN_IDS"""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = data.get("event_from_user")
        if user is not None and settings.is_admin(user.id):
            return await handler(event, data)

        logger.warning(f"Попытка доступа к админке: user_id={user.id if user else None}")
        if isinstance(event, CallbackQuery):
            await event.answer("⚠️ У вас нет доступа", show_alert=True)
        elif isinstance(event, Message):
            await event.answer("⚠️ У вас нет доступа к админ-панели")
        return None
