# ksp_admin/schemas/api_schema.py
"""
Esquemas del sobre de respuesta del backend y del resultado que los
controladores devuelven a la vista.
"""

from typing import Any, Optional

from pydantic import BaseModel


class ApiEnvelope(BaseModel):
    """Respuesta del backend: `{success, message?, data?}`."""
    success: bool
    message: Optional[str] = None
    data: Any = None


class OperationResult(BaseModel):
    """
    Resultado de una operación de controlador. Nunca se lanza una excepción
    hacia la vista: los fallos llegan aquí con `success=False`.
    """
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)
