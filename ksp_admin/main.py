# ksp_admin/main.py
"""
Punto de entrada principal del panel de administración.

Este módulo configura la aplicación FastAPI que sirve las pantallas del
panel: registro de routers, documentación automática y ciclo de vida
(restaurar la sesión al arrancar, enviar las ediciones de stock
pendientes al cerrar).
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ksp_admin.api.v1.api_router import api_router_v1  # Router principal de la API v1
from ksp_admin.core.config import settings  # Configuración centralizada
from ksp_admin.core.logging_config import configure_logging
from ksp_admin.dashboard import Dashboard

logger = logging.getLogger(__name__)


def create_app(dashboard: Optional[Dashboard] = None) -> FastAPI:
    """
    Construye la aplicación. Los tests pasan su propio contenedor con un
    backend simulado.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # EVENTO DE STARTUP
        await app.state.dashboard.start()
        yield
        # EVENTO DE SHUTDOWN: las ediciones en cola se envían antes de salir
        await app.state.dashboard.aclose()
        logger.info("Panel detenido")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        version=settings.PROJECT_VERSION,
        description="Panel de administración de la tienda KSP",
        lifespan=lifespan,
    )
    app.state.dashboard = dashboard or Dashboard(settings)

    # ========================================
    # REGISTRO DE ROUTERS DE LA API
    # ========================================

    app.include_router(api_router_v1, prefix=settings.API_V1_STR)

    @app.get("/", tags=["Root"])
    async def read_root():
        """
        Endpoint raíz para verificación básica del estado del panel.

        Example:
            GET /
            Response: {"message": "Bienvenido a KSP Admin v0.1.0"}
        """
        return {"message": f"Bienvenido a {settings.PROJECT_NAME} v{settings.PROJECT_VERSION}"}

    return app


configure_logging(settings)
app = create_app()
