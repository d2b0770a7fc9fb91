"""
Middleware для автоматической очистки истёкших holds
"""
import logging
from typing import Callable, Dict, Any, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from database.repository import HoldRepository

logger = logging.getLogger(__name__)


class HoldCleanupMiddleware(BaseMiddleware):
    """
    Перед обработкой события удаляет истёкшие удержания сеансов,
    чтобы клиент видел освободившиеся места сразу, не дожидаясь планировщика.
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        deleted_count = HoldRepository.cleanup_expired()
        if deleted_count:
            logger.debug(f"Перед обработкой события удалено holds: {deleted_count}")

        return await handler(event, data)
