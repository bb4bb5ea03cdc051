# ksp_admin/services/stock_service.py
"""
Servicio de edición de stock en línea.

Media entre el control numérico de cada fila (botones +/- y campo de
texto) y la operación remota "fijar stock absoluto", manteniendo la vista
consistente con latencia de red y ediciones rápidas.

Reglas por fila:
- Toda mutación local se aplica al instante (actualización optimista).
- La escritura remota se agrupa con debounce: solo se envía el último
  valor, una vez transcurrida la ventana sin nuevas mutaciones.
- Nunca hay dos escrituras en vuelo para la misma fila. Una mutación que
  llega con una escritura en vuelo espera a que termine antes de arrancar
  su ventana de debounce.
- Confirmar el campo de texto con el mismo valor que ya se muestra solo
  descarta el texto: no se envía ninguna escritura.
- Si la escritura falla se relee el producto y se muestra su cantidad
  (o el último valor confirmado si la relectura también falla).

Las filas son independientes entre sí: sus escrituras pueden estar en
vuelo a la vez.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from ksp_admin.core.exceptions import AdminError, NetworkFailure, ValidationError
from ksp_admin.schemas.api_schema import OperationResult
from ksp_admin.schemas.product_schema import Product, StockRowState
from ksp_admin.services.notification_service import ToastQueue
from ksp_admin.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")
_INTEGER_TEXT = re.compile(r"^[+-]?\d+$")


class StockRow:
    """Estado editable de la cantidad de un producto."""

    def __init__(self, product_id: str, quantity: int):
        self.product_id = product_id
        self.value = quantity
        self.confirmed_value = quantity
        self.raw_text: Optional[str] = None
        self.pending_value: Optional[int] = None
        self.saving = False
        self.issued_seq = 0
        self.debounce_task: Optional[asyncio.Task] = None
        self.inflight_task: Optional[asyncio.Task] = None

    @property
    def has_queued_edit(self) -> bool:
        """Hay una mutación esperando su ventana de debounce."""
        return self.debounce_task is not None and not self.debounce_task.done()

    @property
    def is_busy(self) -> bool:
        return (
            self.has_queued_edit
            or (self.inflight_task is not None and not self.inflight_task.done())
            or self.raw_text is not None
        )

    def snapshot(self) -> StockRowState:
        return StockRowState(
            product_id=self.product_id,
            value=self.value,
            raw_text=self.raw_text,
            pending_value=self.pending_value,
            confirmed_value=self.confirmed_value,
            saving=self.saving,
        )


class StockEditController:
    """
    Controlador único de edición de stock, compartido por todas las vistas
    que editan cantidades.
    """

    def __init__(
        self,
        store: RemoteStore,
        toasts: ToastQueue,
        debounce_seconds: float = 0.3,
        min_value: int = 0,
        commit_timeout: Optional[float] = 15.0,
    ):
        self.store = store
        self.toasts = toasts
        self.debounce_seconds = debounce_seconds
        self.min_value = min_value
        self.commit_timeout = commit_timeout
        self._rows: Dict[str, StockRow] = {}
        self._products: Dict[str, Product] = {}

    # ========================================
    # FILAS
    # ========================================

    def track(self, product_id: str, quantity: int) -> StockRowState:
        """Registra una fila a partir del registro remoto del producto."""
        row = self._rows.get(product_id)
        if row is None:
            row = StockRow(product_id, max(self.min_value, quantity))
            self._rows[product_id] = row
        return row.snapshot()

    def rows(self) -> List[StockRowState]:
        return [row.snapshot() for row in self._rows.values()]

    def row_state(self, product_id: str) -> Optional[StockRowState]:
        row = self._rows.get(product_id)
        return row.snapshot() if row is not None else None

    @property
    def products(self) -> List[Product]:
        return list(self._products.values())

    async def load_products(self) -> OperationResult:
        """
        Carga los productos y sincroniza las filas con sus cantidades. Las
        filas con una edición pendiente conservan su valor local.
        """
        try:
            products = await self.store.list_products()
        except AdminError as e:
            logger.error(f"Error cargando productos: {e.message}")
            self.toasts.error(e.message)
            return OperationResult.fail(e.message)

        self._products = {product.product_id: product for product in products}
        for product in products:
            row = self._rows.get(product.product_id)
            if row is None:
                self._rows[product.product_id] = StockRow(product.product_id, product.quantity)
            elif row.is_busy:
                logger.debug(f"Fila {product.product_id} con edición pendiente, se conserva el valor local")
            else:
                row.value = row.confirmed_value = product.quantity
        logger.info(f"{len(products)} productos cargados")
        return OperationResult.ok(self.rows())

    # ========================================
    # MUTACIONES LOCALES
    # ========================================

    def increment(self, product_id: str) -> OperationResult:
        try:
            row = self._get_row(product_id)
        except ValidationError as e:
            return self._invalid(e)
        return self._apply(row, self._current(row) + 1)

    def decrement(self, product_id: str) -> OperationResult:
        try:
            row = self._get_row(product_id)
        except ValidationError as e:
            return self._invalid(e)
        current = self._current(row)
        if current <= self.min_value:
            return OperationResult.ok(row.snapshot())
        return self._apply(row, current - 1)

    def set_raw(self, product_id: str, text: str) -> OperationResult:
        """Texto tecleado: solo se conservan los dígitos. No se envía nada."""
        try:
            row = self._get_row(product_id)
        except ValidationError as e:
            return self._invalid(e)
        row.raw_text = _NON_DIGITS.sub("", text or "")
        return OperationResult.ok(row.snapshot())

    def confirm_raw(self, product_id: str) -> OperationResult:
        """
        Pérdida de foco o Enter: se sanea el texto y se programa una única
        escritura. Sin edición en curso no hace nada.
        """
        try:
            row = self._get_row(product_id)
        except ValidationError as e:
            return self._invalid(e)
        if row.raw_text is None:
            return OperationResult.ok(row.snapshot())
        value = self._sanitize(row.raw_text)
        if value == row.value:
            row.raw_text = None
            return OperationResult.ok(row.snapshot())
        return self._apply(row, value)

    def commit(self, product_id: str, value: Any) -> OperationResult:
        """Fija una cantidad absoluta a través del pipeline con debounce."""
        try:
            row = self._get_row(product_id)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError("Stock quantity must be a whole number")
            if value < self.min_value:
                raise ValidationError(f"Stock quantity cannot be below {self.min_value}")
        except ValidationError as e:
            return self._invalid(e)
        return self._apply(row, value)

    def adjust_by(self, product_id: str, delta: Any) -> OperationResult:
        """Ajuste relativo: max(mínimo, actual + delta)."""
        try:
            row = self._get_row(product_id)
            amount = self._parse_delta(delta)
        except ValidationError as e:
            return self._invalid(e)
        return self._apply(row, max(self.min_value, self._current(row) + amount))

    # ========================================
    # PIPELINE DE ESCRITURA
    # ========================================

    def _apply(self, row: StockRow, value: int) -> OperationResult:
        row.value = value
        row.raw_text = None
        row.pending_value = value
        self._schedule(row)
        return OperationResult.ok(row.snapshot())

    def _schedule(self, row: StockRow) -> None:
        if row.has_queued_edit:
            row.debounce_task.cancel()
        row.debounce_task = asyncio.get_running_loop().create_task(self._debounced_commit(row))

    async def _debounced_commit(self, row: StockRow) -> None:
        # La ventana de debounce arranca cuando la fila queda libre
        inflight = row.inflight_task
        if inflight is not None and not inflight.done():
            await asyncio.wait({inflight})
        await asyncio.sleep(self.debounce_seconds)
        row.inflight_task = asyncio.get_running_loop().create_task(self._write(row, row.value))

    async def _write(self, row: StockRow, value: int) -> None:
        row.issued_seq += 1
        seq = row.issued_seq
        row.saving = True
        logger.info(f"Enviando stock de {row.product_id}: {value} (seq {seq})")

        try:
            error: Optional[AdminError] = None
            try:
                await asyncio.wait_for(self.store.set_product_stock(row.product_id, value), timeout=self.commit_timeout)
            except asyncio.TimeoutError:
                error = NetworkFailure("Stock update timed out")
            except AdminError as e:
                error = e

            if seq != row.issued_seq:
                logger.debug(f"Respuesta obsoleta de {row.product_id} (seq {seq}) ignorada")
                return

            if error is None:
                row.confirmed_value = value
                if not row.has_queued_edit:
                    row.pending_value = None
                self.toasts.success("Stock updated")
                return

            logger.error(f"Fallo guardando stock de {row.product_id} ({value}): {error.message}")
            self.toasts.error(error.message)
            if row.has_queued_edit:
                # Hay una edición más reciente en cola: se queda en pantalla
                return
            await self._rollback(row)
        finally:
            if seq == row.issued_seq:
                row.saving = False

    async def _rollback(self, row: StockRow) -> None:
        """Restaura el último valor confirmado por el servidor, releyendo el producto."""
        try:
            product = await self.store.get_product(row.product_id)
        except AdminError as e:
            logger.warning(f"No se pudo releer {row.product_id}, se usa el último valor confirmado: {e.message}")
        else:
            row.confirmed_value = product.quantity
            self._products[product.product_id] = product

        if row.has_queued_edit:
            return
        logger.warning(f"Rollback de stock de {row.product_id} a {row.confirmed_value}")
        row.value = row.confirmed_value
        row.pending_value = None

    async def flush(self) -> None:
        """Espera a que terminen todas las ventanas de debounce y escrituras pendientes."""
        while True:
            pending = [
                task
                for row in self._rows.values()
                for task in (row.debounce_task, row.inflight_task)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.wait(pending)

    async def aclose(self) -> None:
        """Cierre ordenado: las ediciones hechas justo antes se siguen enviando."""
        await self.flush()

    # ========================================
    # AUXILIARES
    # ========================================

    def _get_row(self, product_id: str) -> StockRow:
        row = self._rows.get(product_id)
        if row is None:
            raise ValidationError(f"Unknown product {product_id}")
        return row

    def _current(self, row: StockRow) -> int:
        if row.raw_text is not None:
            return self._sanitize(row.raw_text)
        return row.value

    def _sanitize(self, raw: str) -> int:
        try:
            parsed = int(raw, 10)
        except ValueError:
            return self.min_value
        return parsed if parsed >= self.min_value else self.min_value

    @staticmethod
    def _parse_delta(delta: Any) -> int:
        if isinstance(delta, bool):
            raise ValidationError("Adjustment must be a whole number")
        if isinstance(delta, int):
            return delta
        if isinstance(delta, float) and delta.is_integer():
            return int(delta)
        if isinstance(delta, str) and _INTEGER_TEXT.match(delta.strip()):
            return int(delta.strip())
        raise ValidationError("Adjustment must be a whole number")

    def _invalid(self, error: ValidationError) -> OperationResult:
        logger.warning(f"Edición de stock rechazada: {error.message}")
        self.toasts.error(error.message)
        return OperationResult.fail(error.message)
