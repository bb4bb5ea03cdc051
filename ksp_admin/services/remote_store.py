# ksp_admin/services/remote_store.py
"""
Cliente REST del backend de la tienda.

Este servicio se encarga de toda la comunicación HTTP con el backend
(fuente de verdad de categorías, productos y stock). Decodifica el sobre
`{success, message, data}` de forma defensiva y traduce cada fallo a una
excepción de `ksp_admin.core.exceptions`:

- success=false            -> RemoteRejection (mensaje del backend tal cual)
- error de transporte      -> NetworkFailure
- cuerpo no JSON, sobre sin `success`, o `data` ausente / con forma
  inesperada cuando la operación la necesita -> NetworkFailure

Las excepciones se capturan en la frontera de los controladores; este
módulo nunca decide qué se le muestra al usuario.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as SchemaError

from ksp_admin.core.exceptions import NetworkFailure, RemoteRejection, ValidationError
from ksp_admin.schemas.api_schema import ApiEnvelope
from ksp_admin.schemas.category_schema import Category, CategoryCreate, CategoryUpdate
from ksp_admin.schemas.product_schema import Product
from ksp_admin.schemas.session_schema import AdminUser
from ksp_admin.services.session_service import AdminSession

logger = logging.getLogger(__name__)

MALFORMED_RESPONSE = "Malformed response from server"


class RemoteStore:
    """
    Cliente asíncrono del backend REST.

    La sesión se inyecta en el constructor; su token (si existe) viaja en
    la cabecera Authorization de cada petición.
    """

    def __init__(
        self,
        session: Optional[AdminSession] = None,
        base_url: str = "http://localhost:5000",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    # ========================================
    # COMUNICACIÓN HTTP
    # ========================================

    def _get_api_client(self) -> httpx.AsyncClient:
        """Crea un cliente HTTP para comunicarse con el backend."""
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session is not None and self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    async def _request(self, method: str, path: str, default_error: str, payload: Optional[Dict[str, Any]] = None) -> ApiEnvelope:
        """Ejecuta la petición y devuelve el sobre ya validado como exitoso."""
        try:
            async with self._get_api_client() as client:
                response = await client.request(method, path, json=payload, headers=self._headers())
        except httpx.TimeoutException:
            logger.error(f"Timeout en {method} {path}")
            raise NetworkFailure("Request timed out")
        except httpx.HTTPError as e:
            logger.error(f"Error de red en {method} {path}: {e}")
            raise NetworkFailure()

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Respuesta no JSON en {method} {path} (HTTP {response.status_code})")
            raise NetworkFailure(MALFORMED_RESPONSE)

        if not isinstance(body, dict) or not isinstance(body.get("success"), bool):
            logger.error(f"Sobre de respuesta inesperado en {method} {path}: {body!r}")
            raise NetworkFailure(MALFORMED_RESPONSE)

        try:
            envelope = ApiEnvelope.model_validate(body)
        except SchemaError as e:
            logger.error(f"Sobre de respuesta inválido en {method} {path}: {e}")
            raise NetworkFailure(MALFORMED_RESPONSE)
        if not envelope.success:
            logger.warning(f"El backend rechazó {method} {path}: {envelope.message}")
            raise RemoteRejection(envelope.message or default_error)
        if response.is_error:
            logger.error(f"HTTP {response.status_code} con success=true en {method} {path}")
            raise NetworkFailure(MALFORMED_RESPONSE)
        return envelope

    @staticmethod
    def _require_dict(envelope: ApiEnvelope) -> Dict[str, Any]:
        if not isinstance(envelope.data, dict):
            raise NetworkFailure(MALFORMED_RESPONSE)
        return envelope.data

    @staticmethod
    def _require_list(envelope: ApiEnvelope) -> List[Any]:
        if not isinstance(envelope.data, list):
            raise NetworkFailure(MALFORMED_RESPONSE)
        return envelope.data

    @staticmethod
    def _decode(model, data: Dict[str, Any]):
        try:
            return model.model_validate(data)
        except SchemaError as e:
            logger.error(f"No se pudo decodificar {model.__name__}: {e}")
            raise NetworkFailure(MALFORMED_RESPONSE)

    def _decode_many(self, model, id_field: str, items: List[Any]) -> list:
        decoded = []
        for item in items:
            if not isinstance(item, dict):
                logger.warning(f"Elemento {model.__name__} ignorado (no es un objeto): {item!r}")
                continue
            try:
                record = model.model_validate(item)
            except SchemaError as e:
                logger.warning(f"Elemento {model.__name__} ignorado: {e}")
                continue
            if not getattr(record, id_field):
                logger.warning(f"Elemento {model.__name__} sin ID ignorado: {item!r}")
                continue
            decoded.append(record)
        return decoded

    # ========================================
    # CATEGORÍAS
    # ========================================

    async def list_categories(self) -> List[Category]:
        envelope = await self._request("GET", "/api/categories", "Failed to fetch categories")
        return self._decode_many(Category, "category_id", self._require_list(envelope))

    async def create_category(self, payload: CategoryCreate) -> Category:
        envelope = await self._request(
            "POST", "/api/categories", "Failed to create category", payload=payload.model_dump()
        )
        return self._decode(Category, self._require_dict(envelope))

    async def update_category(self, category_id: str, payload: CategoryUpdate) -> Optional[Category]:
        """Actualización parcial: solo viajan los campos fijados explícitamente."""
        envelope = await self._request(
            "PUT",
            f"/api/categories/{category_id}",
            "Failed to update category",
            payload=payload.model_dump(exclude_unset=True),
        )
        if isinstance(envelope.data, dict):
            return self._decode(Category, envelope.data)
        return None

    async def delete_category(self, category_id: str) -> None:
        await self._request("DELETE", f"/api/categories/{category_id}", "Failed to delete category")

    # ========================================
    # PRODUCTOS Y STOCK
    # ========================================

    async def list_products(self) -> List[Product]:
        envelope = await self._request("GET", "/api/products", "Failed to fetch products")
        return self._decode_many(Product, "product_id", self._require_list(envelope))

    async def get_product(self, product_id: str) -> Product:
        envelope = await self._request("GET", f"/api/products/{product_id}", "Failed to fetch product")
        return self._decode(Product, self._require_dict(envelope))

    async def set_product_stock(self, product_id: str, quantity: int) -> None:
        """Fija la cantidad absoluta. Repetir el mismo valor no tiene efecto."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Stock quantity must be a non-negative integer")
        await self._request(
            "PATCH",
            f"/api/products/{product_id}/stock",
            "Failed to update stock",
            payload={"quantity": quantity},
        )

    # ========================================
    # AUTENTICACIÓN
    # ========================================

    async def login(self, email: str, password: str) -> AdminUser:
        """
        Inicia sesión en el backend y guarda token y usuario en la sesión
        inyectada. El backend es quien emite la sesión.
        """
        envelope = await self._request(
            "POST", "/api/auth/login", "Invalid credentials", payload={"email": email, "password": password}
        )
        data = self._require_dict(envelope)
        token = data.get("token") or data.get("access_token")
        if not isinstance(token, str) or not token:
            raise NetworkFailure(MALFORMED_RESPONSE)

        raw_user = data.get("user")
        if isinstance(raw_user, dict):
            user = self._decode(AdminUser, {"email": email, **raw_user})
        else:
            user = AdminUser(email=email, name=email.split("@")[0])

        if self.session is not None:
            await self.session.login(token, user)
        return user
