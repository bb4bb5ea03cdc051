"""
Endpoints de sesión del administrador. El backend emite la sesión; aquí
solo se inicia, se consulta y se cierra.
"""

import logging

from fastapi import APIRouter, Depends

from ksp_admin.api import deps
from ksp_admin.core.exceptions import AdminError
from ksp_admin.dashboard import Dashboard
from ksp_admin.schemas.api_schema import OperationResult
from ksp_admin.schemas.session_schema import LoginRequest, SessionState

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=SessionState)
def read_session(dashboard: Dashboard = Depends(deps.get_dashboard)) -> SessionState:
    return dashboard.session.state()


@router.post("/login", response_model=OperationResult)
async def login(credentials: LoginRequest, dashboard: Dashboard = Depends(deps.get_dashboard)) -> OperationResult:
    try:
        user = await dashboard.store.login(credentials.email, credentials.password)
    except AdminError as e:
        logger.warning(f"Login fallido para {credentials.email}: {e.message}")
        dashboard.toasts.error(e.message)
        return OperationResult.fail(e.message)
    return OperationResult.ok(user.model_dump())


@router.post("/logout", response_model=SessionState)
async def logout(dashboard: Dashboard = Depends(deps.get_dashboard)) -> SessionState:
    await dashboard.session.logout()
    return dashboard.session.state()
