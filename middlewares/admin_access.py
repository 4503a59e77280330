"""
Middleware для ограничения доступа к боту администраторами площадки
"""
import logging
from typing import Callable, Dict, Any, Awaitable, Iterable, Optional

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, TelegramObject

from config import settings

logger = logging.getLogger(__name__)


class AdminAccessMiddleware(BaseMiddleware):
    """Middleware: события от не-администраторов не доходят до хендлеров"""

    def __init__(self, admin_ids: Optional[Iterable[int]] = None):
        self.admin_ids = admin_ids

    def is_allowed(self, user_id: int) -> bool:
        if self.admin_ids is not None:
            return user_id in self.admin_ids
        return settings.is_admin(user_id)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = getattr(event, 'from_user', None)
        if user is not None and self.is_allowed(user.id):
            return await handler(event, data)

        logger.warning(f"Отклонён запрос пользователя {user.id if user else 'unknown'}")
        if isinstance(event, CallbackQuery):
            await event.answer("⚠️ У вас нет доступа", show_alert=True)
        elif hasattr(event, 'answer'):
            await event.answer("⚠️ У вас нет доступа к этому боту")
        return None
