# ksp_admin/core/logging_config.py
"""
Configuración del logging a partir de Settings (LOG_LEVEL, LOG_FORMAT).
"""

import logging
from typing import Optional

from ksp_admin.core.config import Settings, settings as default_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configura el logger raíz una sola vez al arrancar la aplicación."""
    settings = settings or default_settings
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=settings.LOG_FORMAT)
    # httpx es muy ruidoso en INFO (una línea por petición)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
