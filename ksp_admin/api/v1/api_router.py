# ksp_admin/api/v1/api_router.py
"""
Este archivo contiene el router principal para la API versión 1.

Se encarga de registrar y configurar todos los routers de la versión 1 de la API.
"""

from fastapi import APIRouter

# Importación de routers especializados por pantalla del panel
from ksp_admin.api.v1.endpoints import (
    categories,
    stock,
    session,
    notifications
)

# ========================================
# CONFIGURACIÓN DEL ROUTER PRINCIPAL V1
# ========================================

api_router_v1 = APIRouter()

# ========================================
# REGISTRO DE ROUTERS POR PANTALLA
# ========================================

# ROUTER DE CATEGORÍAS
# Listado jerárquico, filtros, modal de edición y CRUD
api_router_v1.include_router(
    categories.router,              # Router con endpoints de categorías
    prefix="/categories",           # Prefijo: /api/v1/categories
    tags=["Categories"]             # Tag para documentación OpenAPI/Swagger
)

# ROUTER DE STOCK
# Control de cantidades en línea con debounce y rollback
api_router_v1.include_router(
    stock.router,
    prefix="/stock",
    tags=["Stock"]
)

# ROUTER DE SESIÓN
api_router_v1.include_router(
    session.router,
    prefix="/session",
    tags=["Session"]
)

# ROUTER DE NOTIFICACIONES
api_router_v1.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"]
)
