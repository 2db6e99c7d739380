"""
Esquemas Pydantic del motor de caja

Define la validación de entrada y salida para:
- CashRegister: apertura, cierre, estado (variante open/closed), detalle
- CashMovement: registro, listado y eliminación
- Arqueo: resultado de la reconciliación
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from decimal import Decimal
from typing import Optional, List, Literal, Union, Annotated
from uuid import UUID
from datetime import date, datetime
from enum import Enum

from app.common.validators import to_money, validate_non_negative_amount


# ===== ENUMS =====

class CashRegisterStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ReconciliationStatus(str, Enum):
    MATCHED = "matched"
    SURPLUS = "surplus"
    SHORTFALL = "shortfall"


# ===== CASH REGISTER SCHEMAS =====

class CashRegisterOpen(BaseModel):
    """Esquema para abrir caja registradora"""
    branch_id: UUID = Field(..., description="ID de la sucursal")
    initial_amount: Decimal = Field(..., ge=0, description="Efectivo inicial en el cajón")
    opening_notes: Optional[str] = Field(None, max_length=500, description="Notas de apertura")

    @field_validator('initial_amount')
    @classmethod
    def validate_initial_amount(cls, v: Decimal) -> Decimal:
        return validate_non_negative_amount(v)


class CashRegisterClose(BaseModel):
    """Esquema para cerrar caja registradora"""
    counted_cash: Decimal = Field(..., ge=0, description="Efectivo contado físicamente")
    closing_notes: Optional[str] = Field(None, max_length=500, description="Notas de cierre")

    @field_validator('counted_cash')
    @classmethod
    def validate_counted_cash(cls, v: Decimal) -> Decimal:
        return validate_non_negative_amount(v)


class CashRegisterOut(BaseModel):
    """Esquema de salida para caja registradora"""
    id: UUID = Field(description="ID único de la caja")
    branch_id: UUID = Field(description="ID de la sucursal")
    user_id: UUID = Field(description="Operador que abrió la caja")
    status: CashRegisterStatus = Field(description="Estado de la caja")
    initial_amount: Decimal = Field(description="Monto inicial")
    final_amount: Optional[Decimal] = Field(None, description="Efectivo contado al cierre")
    opened_at: datetime = Field(description="Fecha y hora de apertura")
    closed_at: Optional[datetime] = Field(None, description="Fecha y hora de cierre")
    closed_by: Optional[UUID] = Field(None, description="Operador que cerró la caja")
    opening_notes: Optional[str] = Field(None, description="Notas de apertura")
    closing_notes: Optional[str] = Field(None, description="Notas de cierre")

    model_config = {"from_attributes": True}


class CashRegisterList(BaseModel):
    """Historial de cajas"""
    cash_registers: List[CashRegisterOut] = Field(description="Lista de cajas")
    total: int = Field(description="Total de cajas")
    limit: int = Field(description="Límite aplicado")
    offset: int = Field(description="Offset aplicado")


# ===== ESTADO (variante etiquetada) =====

class OpenSession(BaseModel):
    """Caja abierta: todavía no tiene monto final ni diferencia"""
    status: Literal["open"] = "open"
    id: UUID
    branch_id: UUID
    initial_amount: Decimal
    opened_at: datetime


class ClosedSession(BaseModel):
    """Caja cerrada: monto final, cierre y diferencia siempre presentes"""
    status: Literal["closed"] = "closed"
    id: UUID
    branch_id: UUID
    initial_amount: Decimal
    final_amount: Decimal
    opened_at: datetime
    closed_at: datetime
    difference: Decimal

    @model_validator(mode='after')
    def validate_bounds(self):
        if self.closed_at < self.opened_at:
            raise ValueError('closed_at no puede ser anterior a opened_at')
        return self


SessionState = Annotated[Union[OpenSession, ClosedSession], Field(discriminator="status")]


# ===== ARQUEO =====

class PaymentMethodTotalOut(BaseModel):
    payment_method: str = Field(description="Medio de pago")
    income: Decimal = Field(description="Total de entradas")
    expense: Decimal = Field(description="Total de salidas")
    net: Decimal = Field(description="Neto (el efectivo incluye el monto inicial)")
    is_cash: bool = Field(description="Medio de pago efectivo")


class ReconciliationOut(BaseModel):
    expected: Decimal = Field(description="Saldo esperado en efectivo")
    counted: Decimal = Field(description="Efectivo contado")
    difference: Decimal = Field(description="Diferencia con signo")
    status: ReconciliationStatus = Field(description="matched / surplus / shortfall")


class CashRegisterReport(BaseModel):
    """Detalle de caja recalculado desde los movimientos"""
    cash_register: CashRegisterOut
    state: SessionState
    expected_cash_balance: Decimal = Field(description="Saldo esperado en efectivo")
    total_income: Decimal
    total_expense: Decimal
    movement_count: int
    payment_method_totals: List[PaymentMethodTotalOut]
    reconciliation: Optional[ReconciliationOut] = Field(None, description="Solo para cajas cerradas")


class CashRegisterCloseResult(BaseModel):
    """Resultado del cierre de caja"""
    cash_register: CashRegisterOut
    reconciliation: ReconciliationOut
    payment_method_totals: List[PaymentMethodTotalOut]


class LastClosureOut(BaseModel):
    branch_id: UUID
    last_closure_amount: Optional[Decimal] = None
    has_previous_closure: bool


class BranchesStatusOut(BaseModel):
    open_registers: List[CashRegisterOut]
    closed_branches: List[UUID]
    total_branches: int
    open_count: int
    closed_count: int
    all_open: bool
    all_closed: bool
    mixed_status: bool


# ===== CASH MOVEMENT SCHEMAS =====

class CashMovementCreate(BaseModel):
    """Esquema para registrar movimiento de caja"""
    cash_register_id: UUID = Field(..., description="ID de la caja registradora")
    movement_type_id: int = Field(..., description="Tipo de movimiento")
    payment_method_id: int = Field(..., description="Medio de pago")
    amount: Decimal = Field(..., description="Monto (siempre positivo; se valida al registrar)")
    description: str = Field(..., min_length=1, max_length=255, description="Descripción")
    sale_id: Optional[UUID] = Field(None, description="Venta que originó el movimiento")
    purchase_order_id: Optional[UUID] = Field(None, description="Orden de compra que originó el movimiento")
    affects_balance: bool = Field(True, description="False para movimientos informativos")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return to_money(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('La descripción no puede estar vacía')
        return cleaned

    @model_validator(mode='after')
    def validate_reference(self):
        if self.sale_id and self.purchase_order_id:
            raise ValueError('Un movimiento referencia una venta o una compra, no ambas')
        return self


class CashMovementOut(BaseModel):
    """Esquema de salida para movimiento de caja"""
    id: UUID
    cash_register_id: UUID
    movement_type_id: int
    movement_type_name: Optional[str] = None
    operation_type: Optional[str] = None
    payment_method_id: int
    payment_method_name: Optional[str] = None
    amount: Decimal
    description: str
    sale_id: Optional[UUID] = None
    purchase_order_id: Optional[UUID] = None
    affects_balance: bool
    user_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class CashMovementList(BaseModel):
    movements: List[CashMovementOut]
    total: int
    limit: int
    offset: int


class CashMovementDelete(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Motivo de la eliminación")


class CashMovementAuditOut(BaseModel):
    """Registro de auditoría de un movimiento eliminado"""
    id: UUID
    movement_id: UUID
    cash_register_id: UUID
    action: str
    snapshot: dict
    register_status: str
    reason: Optional[str] = None
    performed_by: UUID
    performed_at: datetime

    model_config = {"from_attributes": True}


class CashMovementSummaryOut(BaseModel):
    """Totales de los movimientos filtrados (sucursales / período / dirección)"""
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_income: Decimal
    total_expense: Decimal
    net: Decimal
    cash_net: Decimal = Field(description="Flujo neto de efectivo del período")
    movement_count: int
    payment_method_totals: List[PaymentMethodTotalOut]
