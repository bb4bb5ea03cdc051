# ksp_admin/dashboard.py
"""
Contenedor del panel: construye la sesión, el cliente REST, la cola de
notificaciones y los dos controladores con la configuración dada.
"""

import logging
from typing import Optional

from ksp_admin.core.config import Settings, settings as default_settings
from ksp_admin.services.category_service import CategoryController, CategoryForm
from ksp_admin.services.notification_service import ToastQueue
from ksp_admin.services.remote_store import RemoteStore
from ksp_admin.services.session_service import AdminSession, RedisSessionStore, build_session_store
from ksp_admin.services.stock_service import StockEditController

logger = logging.getLogger(__name__)


class Dashboard:
    """Agrupa los servicios que comparte toda la vista."""

    def __init__(self, settings: Optional[Settings] = None, store: Optional[RemoteStore] = None, session: Optional[AdminSession] = None):
        self.settings = settings or default_settings
        self.session = session or AdminSession(
            build_session_store(self.settings),
            token_key=self.settings.SESSION_TOKEN_KEY,
            user_key=self.settings.SESSION_USER_KEY,
        )
        self.store = store or RemoteStore(
            session=self.session,
            base_url=self.settings.API_URL,
            timeout=self.settings.REQUEST_TIMEOUT_SECONDS,
        )
        self.toasts = ToastQueue(limit=self.settings.TOAST_HISTORY_LIMIT)
        self.categories = CategoryController(self.store, self.toasts)
        self.category_form = CategoryForm()
        self.stock = StockEditController(
            self.store,
            self.toasts,
            debounce_seconds=self.settings.STOCK_DEBOUNCE_SECONDS,
            min_value=self.settings.STOCK_MIN_VALUE,
            commit_timeout=self.settings.STOCK_COMMIT_TIMEOUT_SECONDS,
        )

    async def start(self) -> None:
        await self.session.restore()
        logger.info(f"Panel conectado a {self.settings.API_URL}")

    async def aclose(self) -> None:
        await self.stock.aclose()
        if isinstance(self.session.store, RedisSessionStore):
            await self.session.store.close()
