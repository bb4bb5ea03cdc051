# ksp_admin/services/category_tree.py
"""
Derivaciones de la jerarquía de categorías a partir de la lista plana.

La jerarquía tiene exactamente dos niveles: categorías raíz (parent_id
None) y subcategorías que apuntan a una raíz. Todo lo que la vista
necesita (raíces, conteo de subcategorías, nombre del padre, filtros,
opciones de padre) se recalcula aquí desde la instantánea actual, sin
caché: cualquier edición invalida los datos derivados.

Todas las funciones son puras: no mutan la colección de entrada.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence, Union

from ksp_admin.core.exceptions import ValidationError
from ksp_admin.schemas.category_schema import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    CategoryView,
    FilterMode,
)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]*$")
_WHITESPACE_RUN = re.compile(r"\s+")
_SLUG_FORBIDDEN = re.compile(r"[^a-z0-9-]")

# ========================================
# DERIVACIONES DE LA JERARQUÍA
# ========================================

def derive_parents(categories: Iterable[Category]) -> List[Category]:
    """Categorías raíz (sin padre), en el orden de entrada."""
    return [cat for cat in categories if cat.is_top_level]


def derive_subcategory_counts(categories: Sequence[Category]) -> Dict[str, int]:
    """
    Número de subcategorías por categoría raíz.

    Toda categoría raíz aparece en el resultado, también las que no tienen
    hijos (con 0).
    """
    counts = {cat.category_id: 0 for cat in categories if cat.is_top_level}
    for cat in categories:
        if cat.parent_id is not None and cat.parent_id in counts:
            counts[cat.parent_id] += 1
    return counts


def derive_parent_name_lookup(categories: Iterable[Category]) -> Dict[str, str]:
    """ID -> nombre de cada categoría, para mostrar "↳ Padre" en las subcategorías."""
    return {cat.category_id: cat.name for cat in categories}


def filter_by_mode(categories: Iterable[Category], mode: Union[FilterMode, str]) -> List[Category]:
    """
    Proyección de la lista según el modo de filtrado.

    "parents" y "subcategories" particionan "all": sus tamaños siempre
    suman el total.
    """
    mode = FilterMode(mode)
    if mode is FilterMode.PARENTS:
        return [cat for cat in categories if cat.is_top_level]
    if mode is FilterMode.SUBCATEGORIES:
        return [cat for cat in categories if not cat.is_top_level]
    return list(categories)


def available_parent_options(categories: Iterable[Category], exclude_id: Optional[str] = None) -> List[Category]:
    """
    Categorías que pueden elegirse como padre.

    Solo se ofrecen raíces, y nunca la categoría que se está editando: así
    no puede ser su propio padre ni la jerarquía pasar de dos niveles.
    """
    return [
        cat for cat in categories
        if cat.is_top_level and cat.category_id != exclude_id
    ]


def build_category_views(categories: Sequence[Category], mode: Union[FilterMode, str] = FilterMode.ALL) -> List[CategoryView]:
    """Tarjetas de la página de categorías con sus datos derivados."""
    counts = derive_subcategory_counts(categories)
    names = derive_parent_name_lookup(categories)
    views = []
    for cat in filter_by_mode(categories, mode):
        if cat.is_top_level:
            views.append(CategoryView(category=cat, subcategory_count=counts.get(cat.category_id, 0)))
        else:
            views.append(CategoryView(category=cat, parent_name=names.get(cat.parent_id)))
    return views


# ========================================
# SLUG
# ========================================

def derive_slug(name: str) -> str:
    """
    Slug a partir del nombre: minúsculas, espacios -> "-", y fuera todo lo
    que no sea [a-z0-9-]. Aplicarlo dos veces da el mismo resultado.
    """
    slug = _WHITESPACE_RUN.sub("-", name.lower())
    return _SLUG_FORBIDDEN.sub("", slug)


def _clean_slug(slug: Optional[str], name: str) -> str:
    slug = (slug or "").strip()
    if not slug:
        return derive_slug(name)
    if not SLUG_PATTERN.match(slug):
        raise ValidationError("Slug may only contain lowercase letters, numbers and hyphens")
    return slug


# ========================================
# VALIDACIONES
# ========================================

def validate_create(payload: Union[CategoryCreate, dict]) -> CategoryCreate:
    """
    Valida y normaliza el payload de creación.

    Raises:
        ValidationError: si el nombre queda vacío tras recortarlo o el slug
        explícito no cumple el formato.
    """
    if isinstance(payload, dict):
        payload = CategoryCreate.model_validate(payload)
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    return CategoryCreate(
        name=name,
        slug=_clean_slug(payload.slug, name),
        description=(payload.description or "").strip(),
        parent_id=payload.parent_id,
        image_url=payload.image_url,
    )


def validate_update(category_id: str, payload: Union[CategoryUpdate, dict]) -> CategoryUpdate:
    """
    Valida y normaliza un payload de actualización parcial.

    Solo se validan los campos fijados; los demás no viajan al backend.
    """
    if isinstance(payload, dict):
        payload = CategoryUpdate.model_validate(payload)
    updates = payload.model_dump(exclude_unset=True)

    if "name" in updates:
        name = (updates["name"] or "").strip()
        if not name:
            raise ValidationError("Name is required")
        updates["name"] = name

    if "slug" in updates:
        slug = (updates["slug"] or "").strip()
        if slug or "name" in updates:
            updates["slug"] = _clean_slug(slug, updates.get("name", ""))
        else:
            del updates["slug"]

    if "description" in updates:
        updates["description"] = (updates["description"] or "").strip()

    if updates.get("parent_id") is not None and updates["parent_id"] == str(category_id):
        raise ValidationError("A category cannot be its own parent")

    return CategoryUpdate(**updates)


def validate_parent(categories: Sequence[Category], category_id: Optional[str], parent_id: Optional[str]) -> None:
    """
    Comprueba que asignar `parent_id` mantiene la jerarquía de dos niveles.

    Args:
        categories: Instantánea actual de la lista plana
        category_id: Categoría que se edita (None al crear)
        parent_id: Padre propuesto (None para dejarla como raíz)

    Solo se valida contra la instantánea: un `parent_id` desconocido no se
    rechaza aquí.
    """
    if parent_id is None:
        return
    if category_id is not None and parent_id == category_id:
        raise ValidationError("A category cannot be its own parent")

    by_id = {cat.category_id: cat for cat in categories}
    parent = by_id.get(parent_id)
    if parent is not None and not parent.is_top_level:
        raise ValidationError("Subcategories cannot have children")
    if category_id is not None and any(cat.parent_id == category_id for cat in categories):
        raise ValidationError("A category with subcategories cannot become a subcategory")
