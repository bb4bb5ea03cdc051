# ksp_admin/core/config.py
"""
Este archivo contiene la configuración del panel de administración.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path

# Apunta a la raíz del proyecto (donde vive el .env)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    """
    Configuración del panel usando Pydantic BaseSettings.
    Variables sensibles desde .env, defaults seguros para el resto.
    """
    # Configuración general del proyecto
    BASE_DIR: Path = BASE_DIR
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "KSP Admin"
    PROJECT_VERSION: str = "0.1.0"

    # Backend REST de la tienda (fuente de verdad)
    API_URL: str = "http://localhost:5000"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Control de stock
    STOCK_DEBOUNCE_SECONDS: float = 0.3
    STOCK_MIN_VALUE: int = 0
    STOCK_COMMIT_TIMEOUT_SECONDS: float = 15.0

    # Sesión del administrador: "memory" o "redis"
    SESSION_BACKEND: str = "memory"
    SESSION_TOKEN_KEY: str = "admin_auth_token"
    SESSION_USER_KEY: str = "admin_user"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None

    # Notificaciones (toasts) retenidas hasta que la vista las consume
    TOAST_HISTORY_LIMIT: int = 50

    # Logging - Defaults seguros
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def REDIS_URL(self) -> str:
        """URL de conexión a Redis para el almacén de sesión."""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

# Instancia global de la configuración
settings = Settings()
