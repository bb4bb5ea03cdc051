# ksp_admin/services/notification_service.py
"""
Cola de notificaciones (toasts) del panel.

Los controladores publican aquí exactamente una notificación por operación
fallida y una por operación de escritura exitosa. La vista las consume con
`drain()`.
"""

import enum
import logging
from collections import deque
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ToastLevel(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"


class Toast(BaseModel):
    level: ToastLevel
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ToastQueue:
    """Cola acotada de toasts pendientes de mostrar."""

    def __init__(self, limit: int = 50):
        self._items = deque(maxlen=limit)

    @property
    def items(self) -> List[Toast]:
        return list(self._items)

    def success(self, message: str) -> Toast:
        return self._push(ToastLevel.SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self._push(ToastLevel.ERROR, message)

    def drain(self) -> List[Toast]:
        """Devuelve y vacía los toasts pendientes."""
        items = list(self._items)
        self._items.clear()
        return items

    def _push(self, level: ToastLevel, message: str) -> Toast:
        toast = Toast(level=level, message=message)
        self._items.append(toast)
        logger.debug(f"Toast {level.value}: {message}")
        return toast
