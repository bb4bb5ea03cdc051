# ksp_admin/schemas/product_schema.py
"""
Se encarga de definir los esquemas Pydantic de productos y del estado de
edición de stock de cada fila.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Product(BaseModel):
    """
    Producto tal como llega del backend.

    Tolera las distintas grafías que ha usado el backend: `product_id` o
    `id`, `product_name` o `name`, y `quantity`, `stock_quantity` o `stock`.
    """
    product_id: str
    sku: str = ""
    product_name: str = ""
    price: Optional[float] = None
    quantity: int = Field(default=0, ge=0)

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def normalize_backend_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("product_id") in (None, ""):
            data["product_id"] = data.get("id", "")
        if not data.get("product_name"):
            data["product_name"] = data.get("name") or ""
        if data.get("sku") is None:
            data["sku"] = ""
        if data.get("quantity") is None:
            for alias in ("stock_quantity", "stock"):
                if data.get(alias) is not None:
                    data["quantity"] = data[alias]
                    break
            else:
                data["quantity"] = 0
        return data

    @field_validator("product_id", mode="before")
    @classmethod
    def id_as_string(cls, value: Any) -> str:
        return str(value)


class StockRowState(BaseModel):
    """Instantánea del estado de una fila de stock para la vista."""
    product_id: str
    value: int
    raw_text: Optional[str] = None
    pending_value: Optional[int] = None
    confirmed_value: int
    saving: bool = False


# ========================================
# ESQUEMAS DE ENTRADA DE LA VISTA
# ========================================

class StockRawInput(BaseModel):
    """Texto tecleado en el campo de cantidad."""
    text: str = ""


class StockAdjustment(BaseModel):
    """
    Ajuste relativo de stock. El delta se valida en el controlador para
    poder rechazar entradas no numéricas con un resultado de validación.
    """
    delta: Any = None


class StockCommit(BaseModel):
    """Cantidad absoluta a fijar."""
    value: int = Field(..., ge=0)
