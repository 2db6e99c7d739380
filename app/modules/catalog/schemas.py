"""
Esquemas Pydantic del catálogo de movimientos y medios de pago.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum


class OperationType(str, Enum):
    ENTRADA = "entrada"
    SALIDA = "salida"


class MovementOrigin(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class MovementTypeOut(BaseModel):
    """Esquema de salida para tipo de movimiento"""
    id: int = Field(description="ID del tipo de movimiento")
    name: str = Field(description="Nombre")
    description: Optional[str] = Field(None, description="Descripción")
    operation_type: OperationType = Field(description="entrada o salida")
    origin: MovementOrigin = Field(description="manual o automatic")
    is_cash_movement: bool = Field(description="Afecta el efectivo de la caja")
    is_current_account_movement: bool = Field(description="Afecta la cuenta corriente del cliente")
    active: bool = Field(description="Activo")

    model_config = {"from_attributes": True}


class MovementTypeList(BaseModel):
    movement_types: List[MovementTypeOut]
    total: int


class PaymentMethodOut(BaseModel):
    """Esquema de salida para medio de pago"""
    id: int
    name: str
    is_cash: bool = Field(description="Efectivo físico (entra en el arqueo)")
    is_active: bool

    model_config = {"from_attributes": True}


class PaymentMethodList(BaseModel):
    payment_methods: List[PaymentMethodOut]
    total: int
