"""
Endpoints de solo lectura del catálogo de caja.
"""
from fastapi import APIRouter, Path, Query
from typing import Optional

from app.dependencies.dbDependecies import db_dependency
from app.modules.catalog.models import MovementOrigin
from app.modules.catalog.schemas import (
    MovementTypeOut, MovementTypeList, PaymentMethodList,
    MovementOrigin as MovementOriginSchema
)
from app.modules.catalog.service import CatalogService


router = APIRouter(tags=["Catalog"])


@router.get("/movement-types", response_model=MovementTypeList)
async def list_movement_types(
    db: db_dependency,
    origin: Optional[MovementOriginSchema] = Query(None, description="manual o automatic"),
    cash_only: bool = Query(False, description="Solo tipos que afectan la caja"),
    active_only: bool = Query(True, description="Solo tipos activos")
):
    """
    Listar tipos de movimiento.

    El formulario de movimiento manual usa `origin=manual&cash_only=true`.
    """
    service = CatalogService(db)
    movement_types = service.list_movement_types(
        origin=MovementOrigin(origin.value) if origin else None,
        cash_only=cash_only,
        active_only=active_only
    )
    return MovementTypeList(movement_types=movement_types, total=len(movement_types))


@router.get("/movement-types/{movement_type_id}", response_model=MovementTypeOut)
async def get_movement_type(
    db: db_dependency,
    movement_type_id: int = Path(..., description="ID del tipo de movimiento")
):
    return CatalogService(db).get_movement_type(movement_type_id)


@router.get("/payment-methods", response_model=PaymentMethodList)
async def list_payment_methods(
    db: db_dependency,
    active_only: bool = Query(True, description="Solo medios activos")
):
    payment_methods = CatalogService(db).list_payment_methods(active_only=active_only)
    return PaymentMethodList(payment_methods=payment_methods, total=len(payment_methods))
