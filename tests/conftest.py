"""
Configuración de pytest - fixtures comunes
"""
import asyncio
import base64
import json
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from ksp_admin.core.exceptions import AdminError
from ksp_admin.schemas.category_schema import Category
from ksp_admin.schemas.product_schema import Product
from ksp_admin.services.notification_service import ToastQueue
from ksp_admin.services.remote_store import RemoteStore


class FakeStockStore:
    """
    Backend simulado para el stock: registra cada escritura con su instante
    y la concurrencia observada, y permite inyectar retardos y fallos.
    """

    def __init__(self, quantities: Optional[Dict[str, int]] = None, delay: float = 0.0):
        self.quantities = dict(quantities or {})
        self.delay = delay
        self.calls: List[tuple] = []
        self.finished: List[tuple] = []
        self.failures: List[AdminError] = []
        self.get_product_error: Optional[AdminError] = None
        self.active: Dict[str, int] = {}
        self.max_active_per_row = 0
        self.max_active_total = 0

    async def set_product_stock(self, product_id: str, quantity: int) -> None:
        loop = asyncio.get_running_loop()
        self.calls.append((product_id, quantity, loop.time()))
        self.active[product_id] = self.active.get(product_id, 0) + 1
        self.max_active_per_row = max(self.max_active_per_row, self.active[product_id])
        self.max_active_total = max(self.max_active_total, sum(self.active.values()))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.failures:
                raise self.failures.pop(0)
            self.quantities[product_id] = quantity
        finally:
            self.active[product_id] -= 1
            self.finished.append((product_id, quantity, loop.time()))

    async def get_product(self, product_id: str) -> Product:
        if self.get_product_error is not None:
            raise self.get_product_error
        return Product(product_id=product_id, quantity=self.quantities.get(product_id, 0))

    async def list_products(self) -> List[Product]:
        return [Product(product_id=pid, quantity=qty) for pid, qty in self.quantities.items()]

    def sent_values(self, product_id: str = None) -> List[int]:
        return [value for pid, value, _ in self.calls if product_id is None or pid == product_id]


@pytest.fixture
def toasts():
    return ToastQueue()


@pytest.fixture
def stock_store():
    return FakeStockStore({"p1": 10, "p2": 3})


@pytest.fixture
def wine_categories() -> List[Category]:
    """Lista plana con dos raíces (una sin hijos) y dos subcategorías."""
    return [
        Category(category_id="1", name="Red", slug="red"),
        Category(category_id="2", name="Cabernet", slug="cabernet", parent_id="1"),
        Category(category_id="3", name="White", slug="white"),
        Category(category_id="4", name="Merlot", slug="merlot", parent_id="1"),
    ]


@pytest.fixture
def category_store(wine_categories):
    """RemoteStore simulado: los métodos asíncronos son AsyncMock."""
    store = MagicMock(spec=RemoteStore)
    store.list_categories.return_value = list(wine_categories)
    return store


def make_jwt(payload: dict) -> str:
    """JWT sin firmar válido para decodificar el payload."""
    def encode(part: dict) -> str:
        raw = json.dumps(part).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")
    return f"{encode({'alg': 'HS256', 'typ': 'JWT'})}.{encode(payload)}.signature"
