"""
Endpoints del control de stock en línea (botones +/-, campo de texto y
ajuste relativo). Responden con el estado optimista de la fila al
instante; la escritura remota ocurre después, con debounce.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ksp_admin.api import deps
from ksp_admin.schemas.api_schema import OperationResult
from ksp_admin.schemas.product_schema import StockAdjustment, StockCommit, StockRawInput, StockRowState
from ksp_admin.services.stock_service import StockEditController

router = APIRouter()


@router.get("/", response_model=List[StockRowState])
async def read_stock_rows(controller: StockEditController = Depends(deps.get_stock_controller)) -> List[StockRowState]:
    """Filas de stock. La primera consulta carga los productos del backend."""
    if not controller.rows():
        await controller.load_products()
    return controller.rows()


@router.post("/reload", response_model=OperationResult)
async def reload_products(controller: StockEditController = Depends(deps.get_stock_controller)) -> OperationResult:
    return await controller.load_products()


@router.get("/{product_id}", response_model=StockRowState)
def read_stock_row(product_id: str, controller: StockEditController = Depends(deps.get_stock_controller)) -> StockRowState:
    row = controller.row_state(product_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return row


@router.post("/{product_id}/increment", response_model=OperationResult)
async def increment_stock(product_id: str, controller: StockEditController = Depends(deps.get_stock_controller)) -> OperationResult:
    return controller.increment(product_id)


@router.post("/{product_id}/decrement", response_model=OperationResult)
async def decrement_stock(product_id: str, controller: StockEditController = Depends(deps.get_stock_controller)) -> OperationResult:
    return controller.decrement(product_id)


@router.post("/{product_id}/raw", response_model=OperationResult)
async def type_stock(product_id: str, body: StockRawInput, controller: StockEditController = Depends(deps.get_stock_controller)) -> OperationResult:
    return controller.set_raw(product_id, body.text)


@router.post("/{product_id}/confirm", response_model=OperationResult)
async def confirm_stock(product_id: str, controller: StockEditController = Depends(deps.get_stock_controller)) -> OperationResult:
    """Pérdida de foco o Enter en el campo de cantidad."""
    return controller.confirm_raw(product_id)


@router.post("/{product_id}/adjust", response_model=OperationResult)
async def adjust_stock(product_id: str, body: StockAdjustment, controller: StockEditController = Depends(deps.get_stock_controller)) -> OperationResult:
    return controller.adjust_by(product_id, body.delta)


@router.post("/{product_id}/commit", response_model=OperationResult)
async def commit_stock(product_id: str, body: StockCommit, controller: StockEditController = Depends(deps.get_stock_controller)) -> OperationResult:
    return controller.commit(product_id, body.value)
