# ksp_admin/api/deps.py
"""
Módulo de dependencias para FastAPI.

Centraliza lo que se inyecta en los endpoints: el contenedor del panel
(creado en el arranque de la aplicación) y los controladores que cuelgan
de él.
"""

from fastapi import Request

from ksp_admin.dashboard import Dashboard
from ksp_admin.services.category_service import CategoryController, CategoryForm
from ksp_admin.services.stock_service import StockEditController


def get_dashboard(request: Request) -> Dashboard:
    """Dependencia que devuelve el contenedor del panel de la aplicación."""
    return request.app.state.dashboard


def get_category_controller(request: Request) -> CategoryController:
    return get_dashboard(request).categories


def get_category_form(request: Request) -> CategoryForm:
    return get_dashboard(request).category_form


def get_stock_controller(request: Request) -> StockEditController:
    return get_dashboard(request).stock
