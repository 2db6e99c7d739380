"""
Routers FastAPI del motor de caja

Define los endpoints REST para:
- CashRegisters: apertura/cierre, caja actual, historial y estado por sucursal
- CashMovements: registro, consulta, totales por período y eliminación (privilegiada)

El operador se identifica con el header X-User-ID; borrar movimientos
requiere además un rol habilitado en X-User-Role.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.orm import Session
from typing import Optional, List
from uuid import UUID
from datetime import date

from app.core.config import settings
from app.common.exceptions import NotFoundError, ValidationError
from app.database.database import get_db
from app.dependencies.operatorDependencies import OperatorContext, OperatorDependencies
from app.modules.catalog.models import OperationType as OperationTypeModel
from app.modules.catalog.schemas import OperationType
from app.modules.cash.models import CashRegisterStatus as CashRegisterStatusModel
from app.modules.cash.services import CashRegisterService, CashMovementService
from app.modules.cash.schemas import (
    # CashRegister schemas
    CashRegisterOpen, CashRegisterClose, CashRegisterOut, CashRegisterList,
    CashRegisterReport, CashRegisterCloseResult, LastClosureOut, BranchesStatusOut,

    # CashMovement schemas
    CashMovementCreate, CashMovementOut, CashMovementList, CashMovementDelete,
    CashMovementAuditOut, CashMovementSummaryOut,

    # Enums
    CashRegisterStatus
)


# ===== CASH REGISTERS ROUTER =====

cash_registers_router = APIRouter(prefix="/cash-registers", tags=["Cash Registers"])


@cash_registers_router.post("/open", response_model=CashRegisterOut, status_code=status.HTTP_201_CREATED)
async def open_cash_register(
    register_data: CashRegisterOpen,
    operator: OperatorContext = Depends(OperatorDependencies.get_operator),
    db: Session = Depends(get_db)
):
    """
    Abrir caja registradora en una sucursal.

    - **branch_id**: Sucursal
    - **initial_amount**: Efectivo inicial (>= 0)
    - **opening_notes**: Notas opcionales

    Validaciones:
    - Solo una caja abierta por sucursal (409 si ya existe)
    """
    service = CashRegisterService(db)
    return service.open_cash_register(register_data=register_data, user_id=operator.user_id)


@cash_registers_router.get("/current", response_model=CashRegisterOut)
async def get_current_cash_register(
    branch_id: UUID = Query(..., description="ID de la sucursal"),
    db: Session = Depends(get_db)
):
    """
    Devuelve la caja abierta actual de la sucursal.

    - 404 si no hay caja abierta
    """
    register = CashRegisterService(db).get_current_cash_register(branch_id)
    if not register:
        raise NotFoundError("No hay caja abierta para esta sucursal")
    return register


@cash_registers_router.get("/last-closure", response_model=LastClosureOut)
async def get_last_closure(
    branch_id: UUID = Query(..., description="ID de la sucursal"),
    db: Session = Depends(get_db)
):
    """Monto contado en el último cierre; sugerencia para el monto inicial."""
    return CashRegisterService(db).get_last_closure(branch_id)


@cash_registers_router.get("/branches-status", response_model=BranchesStatusOut)
async def get_branches_status(
    branch_ids: List[UUID] = Query(..., description="IDs de sucursales"),
    db: Session = Depends(get_db)
):
    """Qué sucursales tienen caja abierta y cuáles no."""
    return CashRegisterService(db).get_branches_status(branch_ids)


@cash_registers_router.get("/", response_model=CashRegisterList)
async def get_cash_registers(
    branch_id: Optional[UUID] = Query(None, description="Filtrar por sucursal"),
    status: Optional[CashRegisterStatus] = Query(None, description="Filtrar por estado"),
    from_date: Optional[date] = Query(None, description="Apertura desde"),
    to_date: Optional[date] = Query(None, description="Apertura hasta"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Historial de cajas, más recientes primero."""
    service = CashRegisterService(db)
    return service.get_cash_registers(
        branch_id=branch_id,
        status=CashRegisterStatusModel(status.value) if status else None,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
        offset=offset
    )


@cash_registers_router.get("/{register_id}", response_model=CashRegisterReport)
async def get_cash_register_detail(
    register_id: UUID = Path(..., description="ID de la caja registradora"),
    db: Session = Depends(get_db)
):
    """
    Detalle de caja con totales por medio de pago y saldo esperado.

    Para cajas cerradas incluye el arqueo. Se recalcula en cada consulta.
    """
    return CashRegisterService(db).get_cash_register_report(register_id)


@cash_registers_router.post("/{register_id}/close", response_model=CashRegisterCloseResult)
async def close_cash_register(
    close_data: CashRegisterClose,
    register_id: UUID = Path(..., description="ID de la caja registradora"),
    operator: OperatorContext = Depends(OperatorDependencies.get_operator),
    db: Session = Depends(get_db)
):
    """
    Cerrar caja registradora con arqueo.

    - **counted_cash**: Efectivo contado físicamente
    - **closing_notes**: Notas de cierre

    Devuelve la diferencia y la clasificación (matched / surplus / shortfall).
    """
    service = CashRegisterService(db)
    return service.close_cash_register(
        register_id=register_id,
        close_data=close_data,
        user_id=operator.user_id
    )


@cash_registers_router.get("/{register_id}/audit", response_model=List[CashMovementAuditOut])
async def get_cash_register_audit(
    register_id: UUID = Path(..., description="ID de la caja registradora"),
    db: Session = Depends(get_db)
):
    """Movimientos eliminados de la caja."""
    CashRegisterService(db).get_cash_register(register_id)
    return CashMovementService(db).get_audit_trail(register_id)


# ===== CASH MOVEMENTS ROUTER =====

cash_movements_router = APIRouter(prefix="/cash-movements", tags=["Cash Movements"])


@cash_movements_router.post("/", response_model=CashMovementOut, status_code=status.HTTP_201_CREATED)
async def create_cash_movement(
    movement_data: CashMovementCreate,
    operator: OperatorContext = Depends(OperatorDependencies.get_operator),
    db: Session = Depends(get_db)
):
    """
    Registrar movimiento en una caja abierta.

    - **amount**: Siempre positivo; la dirección la define el tipo de movimiento
    - **affects_balance**: False para movimientos informativos
    """
    service = CashMovementService(db)
    return service.create_movement(movement_data=movement_data, user_id=operator.user_id)


def _movement_filters(
    cash_register_id: Optional[UUID] = Query(None, description="Filtrar por caja"),
    branch_ids: Optional[List[UUID]] = Query(None, description="Filtrar por sucursales"),
    from_date: Optional[date] = Query(None, description="Registrados desde"),
    to_date: Optional[date] = Query(None, description="Registrados hasta"),
    operation_type: Optional[OperationType] = Query(None, description="entrada o salida"),
    movement_type_id: Optional[int] = Query(None, description="Filtrar por tipo"),
    payment_method_id: Optional[int] = Query(None, description="Filtrar por medio de pago"),
    q: Optional[str] = Query(None, description="Buscar en la descripción")
) -> dict:
    if from_date and to_date and from_date > to_date:
        raise ValidationError("from_date no puede ser posterior a to_date")
    return {
        "cash_register_id": cash_register_id,
        "branch_ids": branch_ids,
        "from_date": from_date,
        "to_date": to_date,
        "operation_type": OperationTypeModel(operation_type.value) if operation_type else None,
        "movement_type_id": movement_type_id,
        "payment_method_id": payment_method_id,
        "q": q,
    }


@cash_movements_router.get("/", response_model=CashMovementList)
async def get_cash_movements(
    filters: dict = Depends(_movement_filters),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Historial de movimientos, más recientes primero."""
    service = CashMovementService(db)
    return service.get_movements(limit=limit, offset=offset, **filters)


@cash_movements_router.get("/summary", response_model=CashMovementSummaryOut)
async def get_cash_movements_summary(
    filters: dict = Depends(_movement_filters),
    db: Session = Depends(get_db)
):
    """
    Totales por medio de pago de los movimientos filtrados.

    Acepta los mismos filtros que el historial (sucursales, período, dirección).
    """
    return CashMovementService(db).get_movements_summary(**filters)


@cash_movements_router.delete("/{movement_id}", response_model=CashMovementAuditOut)
async def delete_cash_movement(
    movement_id: UUID = Path(..., description="ID del movimiento"),
    delete_data: Optional[CashMovementDelete] = None,
    operator: OperatorContext = Depends(OperatorDependencies.require_movement_delete()),
    db: Session = Depends(get_db)
):
    """
    Eliminar movimiento (acción privilegiada).

    Funciona también sobre cajas cerradas: el próximo detalle de la caja
    se recalcula sin el movimiento y queda registro de auditoría.
    """
    service = CashMovementService(db)
    return service.delete_movement(
        movement_id=movement_id,
        user_id=operator.user_id,
        reason=delete_data.reason if delete_data else None
    )
