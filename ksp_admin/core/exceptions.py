# ksp_admin/core/exceptions.py
"""
Excepciones del panel de administración.

Jerarquía:
- AdminError: base común, lo que los controladores capturan en su frontera
- ValidationError: fallo detectado localmente, nunca llega a la red
- RemoteRejection: el backend respondió con success=false
- NetworkFailure: fallo de transporte, timeout o respuesta malformada
"""


class AdminError(Exception):
    """Error base de todas las operaciones del panel."""

    default_message = "Unexpected error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AdminError):
    """Datos inválidos detectados antes de cualquier llamada al backend."""

    default_message = "Invalid input"


class RemoteRejection(AdminError):
    """El backend rechazó la operación. El mensaje se muestra tal cual."""

    default_message = "The server rejected the request"


class NetworkFailure(AdminError):
    """El backend no respondió o respondió algo que no se puede interpretar."""

    default_message = "Network error - is the backend running?"
