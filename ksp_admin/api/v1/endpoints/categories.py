"""
Endpoints de la página de categorías: listado con datos derivados,
operaciones CRUD y el modal de creación/edición.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ksp_admin.api import deps
from ksp_admin.schemas.api_schema import OperationResult
from ksp_admin.schemas.category_schema import Category, CategoryCreate, CategoryUpdate, CategoryView, FilterMode
from ksp_admin.services.category_service import CategoryController, CategoryForm

router = APIRouter()


class CategoryFormState(BaseModel):
    """Estado del modal tal como lo pinta la vista."""
    mode: str
    editing_id: Optional[str] = None
    name: str = ""
    slug: str = ""
    description: str = ""
    parent_id: Optional[str] = None
    slug_manually_edited: bool = False
    saving: bool = False
    error: Optional[str] = None
    parent_options: List[Category] = []


class CategoryFormChanges(BaseModel):
    """Cambios de campos del modal. Solo se aplican los que se envían."""
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[str] = None


def _form_state(form: CategoryForm, controller: CategoryController) -> CategoryFormState:
    return CategoryFormState(
        mode=form.mode.value,
        editing_id=form.editing_id,
        name=form.name,
        slug=form.slug,
        description=form.description,
        parent_id=form.parent_id,
        slug_manually_edited=form.slug_manually_edited,
        saving=form.saving,
        error=form.error,
        parent_options=form.parent_options(controller.categories) if form.is_open else [],
    )


# ========================================
# LISTADO
# ========================================

@router.get("/", response_model=List[CategoryView])
async def read_categories(
    mode: FilterMode = FilterMode.ALL,
    controller: CategoryController = Depends(deps.get_category_controller),
) -> List[CategoryView]:
    """Tarjetas de categoría filtradas por modo (all, parents, subcategories)."""
    if not controller.loaded:
        await controller.load()
    return controller.views(mode)


@router.post("/reload", response_model=OperationResult)
async def reload_categories(controller: CategoryController = Depends(deps.get_category_controller)) -> OperationResult:
    """Relee la lista de categorías del backend."""
    return await controller.load()


@router.get("/parent-options", response_model=List[Category])
async def read_parent_options(
    exclude_id: Optional[str] = None,
    controller: CategoryController = Depends(deps.get_category_controller),
) -> List[Category]:
    """Categorías que pueden elegirse como padre."""
    return controller.parent_options(exclude_id=exclude_id)


# ========================================
# MODAL DE CREACIÓN / EDICIÓN
# ========================================

@router.get("/form", response_model=CategoryFormState)
def read_form(
    form: CategoryForm = Depends(deps.get_category_form),
    controller: CategoryController = Depends(deps.get_category_controller),
) -> CategoryFormState:
    return _form_state(form, controller)


@router.post("/form/create", response_model=CategoryFormState)
def open_create_form(
    form: CategoryForm = Depends(deps.get_category_form),
    controller: CategoryController = Depends(deps.get_category_controller),
) -> CategoryFormState:
    form.open_create()
    return _form_state(form, controller)


@router.post("/form/edit/{category_id}", response_model=CategoryFormState)
def open_edit_form(
    category_id: str,
    form: CategoryForm = Depends(deps.get_category_form),
    controller: CategoryController = Depends(deps.get_category_controller),
) -> CategoryFormState:
    category = controller.get(category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    form.open_edit(category)
    return _form_state(form, controller)


@router.patch("/form", response_model=CategoryFormState)
def change_form(
    changes: CategoryFormChanges,
    form: CategoryForm = Depends(deps.get_category_form),
    controller: CategoryController = Depends(deps.get_category_controller),
) -> CategoryFormState:
    if not form.is_open:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="The category form is not open")
    fields = changes.model_fields_set
    # El nombre va antes que el slug para que un slug explícito gane a la derivación
    if "name" in fields:
        form.set_name(changes.name or "")
    if "slug" in fields:
        form.set_slug(changes.slug or "")
    if "description" in fields:
        form.set_description(changes.description or "")
    if "parent_id" in fields:
        form.set_parent(changes.parent_id)
    return _form_state(form, controller)


@router.post("/form/submit", response_model=OperationResult)
async def submit_form(
    form: CategoryForm = Depends(deps.get_category_form),
    controller: CategoryController = Depends(deps.get_category_controller),
) -> OperationResult:
    return await controller.submit(form)


@router.post("/form/cancel", response_model=CategoryFormState)
def cancel_form(
    form: CategoryForm = Depends(deps.get_category_form),
    controller: CategoryController = Depends(deps.get_category_controller),
) -> CategoryFormState:
    form.cancel()
    return _form_state(form, controller)


# ========================================
# OPERACIONES CRUD
# ========================================

@router.post("/", response_model=OperationResult)
async def create_category(
    category_in: CategoryCreate,
    controller: CategoryController = Depends(deps.get_category_controller),
) -> OperationResult:
    """Crea una categoría (el slug se deriva del nombre si no se envía)."""
    return await controller.create(category_in)


@router.put("/{category_id}", response_model=OperationResult)
async def update_category(
    category_id: str,
    category_in: CategoryUpdate,
    controller: CategoryController = Depends(deps.get_category_controller),
) -> OperationResult:
    """Actualización parcial de una categoría."""
    return await controller.update(category_id, category_in)


@router.delete("/{category_id}", response_model=OperationResult)
async def delete_category(
    category_id: str,
    controller: CategoryController = Depends(deps.get_category_controller),
) -> OperationResult:
    """Elimina una categoría. El backend decide si el borrado es posible."""
    return await controller.delete(category_id)
