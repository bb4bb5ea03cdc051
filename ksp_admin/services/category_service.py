# ksp_admin/services/category_service.py
"""
Servicio para la gestión de categorías desde el panel.

Este servicio es el único que escribe en la lista plana de categorías que
muestra la vista. Orquesta las validaciones locales, las llamadas al
backend y las notificaciones, y mantiene el estado del modal de
creación/edición.

Características:
- Validación local antes de cualquier llamada de red
- Verificación de la jerarquía padre-hijo (dos niveles)
- Una notificación por operación (éxito o fallo), sin reintentos
- El borrado no se valida en cliente: el backend decide y se muestra su error
"""

import enum
import logging
from typing import Dict, List, Optional, Union

from ksp_admin.core.exceptions import AdminError
from ksp_admin.schemas.api_schema import OperationResult
from ksp_admin.schemas.category_schema import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    CategoryView,
    FilterMode,
)
from ksp_admin.services import category_tree
from ksp_admin.services.notification_service import ToastQueue
from ksp_admin.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

# ========================================
# ESTADO DEL MODAL DE CATEGORÍA
# ========================================

class FormMode(str, enum.Enum):
    CLOSED = "closed"
    CREATE = "create"
    EDIT = "edit"


class CategoryForm:
    """
    Máquina de estados del modal: CLOSED -> CREATE | EDIT -> CLOSED.

    En CREATE el slug se deriva del nombre mientras el usuario no lo toque.
    En EDIT el slug se considera editado a mano desde el principio, para no
    pisar el slug existente al cambiar el nombre.
    """

    def __init__(self):
        self.mode = FormMode.CLOSED
        self.editing_id: Optional[str] = None
        self.error: Optional[str] = None
        self.saving = False
        self._reset_fields()

    def _reset_fields(self) -> None:
        self.name = ""
        self.slug = ""
        self.description = ""
        self.parent_id: Optional[str] = None
        self.slug_manually_edited = False

    @property
    def is_open(self) -> bool:
        return self.mode is not FormMode.CLOSED

    def open_create(self) -> None:
        self._reset_fields()
        self.mode = FormMode.CREATE
        self.editing_id = None
        self.error = None

    def open_edit(self, category: Category) -> None:
        self.mode = FormMode.EDIT
        self.editing_id = category.category_id
        self.error = None
        self.name = category.name
        self.slug = category.slug
        self.description = category.description or ""
        self.parent_id = category.parent_id
        self.slug_manually_edited = True

    def set_name(self, value: str) -> None:
        self.name = value
        if not self.slug_manually_edited:
            self.slug = category_tree.derive_slug(value)

    def set_slug(self, value: str) -> None:
        self.slug = value
        self.slug_manually_edited = True

    def set_description(self, value: str) -> None:
        self.description = value

    def set_parent(self, parent_id: Optional[str]) -> None:
        self.parent_id = parent_id or None

    def parent_options(self, categories: List[Category]) -> List[Category]:
        return category_tree.available_parent_options(categories, exclude_id=self.editing_id)

    def cancel(self) -> None:
        self.close()

    def close(self) -> None:
        self.mode = FormMode.CLOSED
        self.editing_id = None
        self.error = None
        self.saving = False
        self._reset_fields()

    def to_create_payload(self) -> CategoryCreate:
        return CategoryCreate(
            name=self.name,
            slug=self.slug,
            description=self.description,
            parent_id=self.parent_id,
        )

    def to_update_payload(self) -> CategoryUpdate:
        return CategoryUpdate(
            name=self.name,
            slug=self.slug,
            description=self.description,
            parent_id=self.parent_id,
        )


# ========================================
# CONTROLADOR DE CATEGORÍAS
# ========================================

class CategoryController:
    """
    Dueño de la lista plana de categorías de la vista.

    Las operaciones devuelven siempre un OperationResult: los errores
    locales y remotos se capturan aquí y nunca llegan a la vista como
    excepción.
    """

    def __init__(self, store: RemoteStore, toasts: ToastQueue):
        self.store = store
        self.toasts = toasts
        self._categories: List[Category] = []
        self.loaded = False

    @property
    def categories(self) -> List[Category]:
        return list(self._categories)

    # ========================================
    # OPERACIONES DE CONSULTA
    # ========================================

    async def load(self) -> OperationResult:
        """
        Recarga la lista desde el backend. Si falla se conserva la lista
        anterior y se notifica; nunca se sustituye por datos por defecto.
        """
        try:
            self._categories = await self.store.list_categories()
        except AdminError as e:
            logger.error(f"Error cargando categorías: {e.message}")
            self.toasts.error(e.message)
            return OperationResult.fail(e.message)
        self.loaded = True
        logger.info(f"{len(self._categories)} categorías cargadas")
        return OperationResult.ok([cat.model_dump() for cat in self._categories])

    def views(self, mode: Union[FilterMode, str] = FilterMode.ALL) -> List[CategoryView]:
        return category_tree.build_category_views(self._categories, mode)

    def parents(self) -> List[Category]:
        return category_tree.derive_parents(self._categories)

    def subcategory_counts(self) -> Dict[str, int]:
        return category_tree.derive_subcategory_counts(self._categories)

    def parent_names(self) -> Dict[str, str]:
        return category_tree.derive_parent_name_lookup(self._categories)

    def parent_options(self, exclude_id: Optional[str] = None) -> List[Category]:
        return category_tree.available_parent_options(self._categories, exclude_id=exclude_id)

    def get(self, category_id: str) -> Optional[Category]:
        for cat in self._categories:
            if cat.category_id == category_id:
                return cat
        return None

    # ========================================
    # OPERACIONES DE ESCRITURA
    # ========================================

    async def create(self, payload: Union[CategoryCreate, dict]) -> OperationResult:
        await self._ensure_loaded()
        try:
            clean = category_tree.validate_create(payload)
            category_tree.validate_parent(self._categories, None, clean.parent_id)
            created = await self.store.create_category(clean)
        except AdminError as e:
            return self._fail("crear la categoría", e)

        self._categories.append(created)
        self.toasts.success("Category added")
        logger.info(f"Categoría creada: {created.category_id} ({created.name})")
        await self._resync()
        return OperationResult.ok(created.model_dump())

    async def update(self, category_id: str, payload: Union[CategoryUpdate, dict]) -> OperationResult:
        await self._ensure_loaded()
        try:
            clean = category_tree.validate_update(category_id, payload)
            if "parent_id" in clean.model_fields_set:
                category_tree.validate_parent(self._categories, category_id, clean.parent_id)
            updated = await self.store.update_category(category_id, clean)
        except AdminError as e:
            return self._fail("actualizar la categoría", e)

        if updated is None:
            current = self.get(category_id)
            if current is not None:
                updated = current.model_copy(update=clean.model_dump(exclude_unset=True))
        if updated is not None:
            self._categories = [updated if cat.category_id == category_id else cat for cat in self._categories]

        self.toasts.success("Category updated")
        logger.info(f"Categoría actualizada: {category_id}")
        await self._resync()
        return OperationResult.ok(updated.model_dump() if updated is not None else None)

    async def delete(self, category_id: str) -> OperationResult:
        try:
            await self.store.delete_category(category_id)
        except AdminError as e:
            return self._fail("eliminar la categoría", e)

        self._categories = [cat for cat in self._categories if cat.category_id != category_id]
        self.toasts.success("Category deleted")
        logger.info(f"Categoría eliminada: {category_id}")
        await self._resync()
        return OperationResult.ok()

    async def submit(self, form: CategoryForm) -> OperationResult:
        """
        Envía el modal. En éxito lo cierra; en fallo lo deja abierto, con
        todos los campos intactos y el mensaje de error en `form.error`.
        """
        if not form.is_open:
            return OperationResult.fail("The category form is not open")

        form.saving = True
        form.error = None
        try:
            if form.mode is FormMode.EDIT:
                result = await self.update(form.editing_id, form.to_update_payload())
            else:
                result = await self.create(form.to_create_payload())
        finally:
            form.saving = False

        if result.success:
            form.close()
        else:
            form.error = result.error
        return result

    # ========================================
    # AUXILIARES
    # ========================================

    def _fail(self, action: str, error: AdminError) -> OperationResult:
        logger.warning(f"No se pudo {action}: {error.message}")
        self.toasts.error(error.message)
        return OperationResult.fail(error.message)

    async def _resync(self) -> None:
        """
        Relee la lista tras una escritura exitosa. Si falla se conserva el
        estado local ya reconciliado; la operación ya se notificó como
        exitosa y no se emite una segunda notificación.
        """
        try:
            self._categories = await self.store.list_categories()
        except AdminError as e:
            logger.warning(f"No se pudo releer la lista de categorías: {e.message}")

    async def _ensure_loaded(self) -> None:
        """
        Carga la instantánea antes de validar una escritura si la vista aún
        no la ha pedido. Sin notificación: si falla, la validación de la
        jerarquía queda en manos del backend.
        """
        if self.loaded:
            return
        try:
            self._categories = await self.store.list_categories()
        except AdminError as e:
            logger.warning(f"No se pudo cargar la lista de categorías antes de escribir: {e.message}")
            return
        self.loaded = True
