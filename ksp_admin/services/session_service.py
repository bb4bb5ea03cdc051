# ksp_admin/services/session_service.py
"""
Sesión del administrador.

La sesión es un objeto explícito que se inyecta en el cliente REST al
construirlo, con un ciclo de vida login/logout. El token y los datos del
usuario se persisten en un almacén clave-valor (memoria o Redis) para
sobrevivir a un reinicio del panel.
"""

import base64
import json
import logging
import time
from typing import Dict, Optional

from redis.asyncio import Redis

from ksp_admin.core.config import Settings
from ksp_admin.schemas.session_schema import AdminUser, SessionState

logger = logging.getLogger(__name__)

# ========================================
# ALMACENES CLAVE-VALOR
# ========================================

class MemorySessionStore:
    """Almacén en memoria. Se pierde al reiniciar el proceso."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)


class RedisSessionStore:
    """Almacén respaldado por Redis (conexión lazy)."""

    def __init__(self, url: str, password: Optional[str] = None):
        self.url = url
        self.password = password
        self._client: Optional[Redis] = None

    def _get_client(self) -> Redis:
        """Inicializa y devuelve el cliente de Redis."""
        if self._client is None:
            self._client = Redis.from_url(self.url, password=self.password, decode_responses=True)
        return self._client

    async def get(self, key: str) -> Optional[str]:
        return await self._get_client().get(key)

    async def set(self, key: str, value: str) -> None:
        await self._get_client().set(key, value)

    async def delete(self, *keys: str) -> None:
        if keys:
            await self._get_client().delete(*keys)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_session_store(settings: Settings):
    """Elige el almacén de sesión según SESSION_BACKEND."""
    if settings.SESSION_BACKEND.lower() == "redis":
        return RedisSessionStore(settings.REDIS_URL, password=settings.REDIS_PASSWORD)
    return MemorySessionStore()


# ========================================
# SESIÓN
# ========================================

def token_expiry(token: str) -> Optional[float]:
    """
    Devuelve el `exp` (epoch en segundos) de un JWT, o None si el token no
    se puede decodificar o no lo trae. No verifica la firma: eso es cosa
    del backend.
    """
    parts = token.split(".")
    if len(parts) < 2:
        return None
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")))
    except (ValueError, UnicodeError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)


class AdminSession:
    """
    Sesión explícita del administrador.

    El cliente REST la recibe en su constructor y lee `token` en cada
    petición, así que un logout tiene efecto inmediato en las siguientes
    llamadas.
    """

    def __init__(self, store=None, token_key: str = "admin_auth_token", user_key: str = "admin_user"):
        self.store = store if store is not None else MemorySessionStore()
        self.token_key = token_key
        self.user_key = user_key
        self._token: Optional[str] = None
        self._user: Optional[AdminUser] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[AdminUser]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        if not self._token:
            return False
        exp = token_expiry(self._token)
        if exp is None:
            return False
        return time.time() < exp

    def state(self) -> SessionState:
        return SessionState(is_authenticated=self.is_authenticated, user=self._user)

    async def restore(self) -> None:
        """Recupera token y usuario del almacén (al arrancar el panel)."""
        self._token = await self.store.get(self.token_key)
        raw_user = await self.store.get(self.user_key)
        self._user = None
        if raw_user:
            try:
                self._user = AdminUser.model_validate_json(raw_user)
            except ValueError:
                logger.error("Datos de usuario corruptos en el almacén de sesión, se descartan")
        logger.info(f"Sesión restaurada (autenticada: {self.is_authenticated})")

    async def login(self, token: str, user: AdminUser) -> None:
        self._token = token
        self._user = user
        await self.store.set(self.token_key, token)
        await self.store.set(self.user_key, user.model_dump_json())
        logger.info(f"Sesión iniciada para {user.email}")

    async def logout(self) -> None:
        self._token = None
        self._user = None
        await self.store.delete(self.token_key, self.user_key)
        logger.info("Sesión cerrada")
