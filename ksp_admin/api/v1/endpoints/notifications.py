"""
Endpoint de notificaciones: la vista recoge aquí los toasts pendientes.
"""

from typing import List

from fastapi import APIRouter, Depends

from ksp_admin.api import deps
from ksp_admin.dashboard import Dashboard
from ksp_admin.services.notification_service import Toast

router = APIRouter()


@router.get("/", response_model=List[Toast])
def drain_notifications(dashboard: Dashboard = Depends(deps.get_dashboard)) -> List[Toast]:
    """Devuelve y vacía los toasts pendientes."""
    return dashboard.toasts.drain()
