# ksp_admin/schemas/category_schema.py

"""
Esquemas Pydantic para las categorías del catálogo.

Patrón de esquemas utilizado:
- Category: Registro tal como lo devuelve el backend (decodificación tolerante)
- CategoryCreate: Payload para crear una categoría (POST)
- CategoryUpdate: Payload de actualización parcial (PUT)
- CategoryView: Categoría con los datos derivados que muestra la tarjeta
- FilterMode: Vistas de filtrado de la página de categorías
"""

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ========================================
# MODOS DE FILTRADO
# ========================================

class FilterMode(str, enum.Enum):
    """Proyecciones disponibles sobre la lista plana de categorías."""
    ALL = "all"
    PARENTS = "parents"
    SUBCATEGORIES = "subcategories"


# ========================================
# ESQUEMA DE LECTURA
# ========================================

class Category(BaseModel):
    """
    Categoría tal como llega del backend.

    El backend no garantiza un contrato fijo: el ID puede llegar como
    `category_id` o como `id`, y los campos opcionales pueden faltar o
    venir a null. Todo se normaliza aquí para que el resto del código
    trabaje siempre con la misma forma.
    """
    category_id: str
    name: str = ""
    slug: str = ""
    description: str = ""
    parent_id: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def normalize_backend_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("category_id") in (None, ""):
            data["category_id"] = data.get("id", "")
        for field in ("name", "slug", "description"):
            if data.get(field) is None:
                data[field] = ""
        if data.get("sort_order") is None:
            data["sort_order"] = 0
        if data.get("is_active") is None:
            data["is_active"] = True
        return data

    @field_validator("category_id", mode="before")
    @classmethod
    def id_as_string(cls, value: Any) -> str:
        return str(value)

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_is_none(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None


# ========================================
# ESQUEMAS PARA OPERACIONES
# ========================================

class CategoryCreate(BaseModel):
    """Payload para crear una categoría. El backend asigna el ID."""
    name: str
    slug: str = ""
    description: str = ""
    parent_id: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_is_none(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)


class CategoryUpdate(BaseModel):
    """Payload de actualización parcial. Solo se envían los campos fijados."""
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_is_none(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)


# ========================================
# ESQUEMA DE VISTA
# ========================================

class CategoryView(BaseModel):
    """
    Tarjeta de categoría: el registro más sus datos derivados.

    `subcategory_count` solo tiene sentido en categorías raíz y
    `parent_name` solo en subcategorías ("↳ Padre").
    """
    category: Category
    subcategory_count: int = 0
    parent_name: Optional[str] = None
