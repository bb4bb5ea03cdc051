# ksp_admin/schemas/session_schema.py
"""
Esquemas de la sesión del administrador.
"""

from typing import Optional

from pydantic import BaseModel, Field


class AdminUser(BaseModel):
    """Usuario administrador tal como lo devuelve el backend al hacer login."""
    email: str
    name: str = ""
    role: str = "admin"


class LoginRequest(BaseModel):
    """Credenciales del formulario de login."""
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=3)


class SessionState(BaseModel):
    """Estado de la sesión expuesto a la vista (nunca incluye el token)."""
    is_authenticated: bool
    user: Optional[AdminUser] = None
