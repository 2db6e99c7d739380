"""
Modelos del catálogo de referencia para caja.

- MovementType: clasificación de un movimiento monetario (entrada/salida,
  si afecta la caja física, si afecta cuenta corriente, origen manual o
  automático).
- PaymentMethod: medios de pago; `is_cash` marca el efectivo físico que
  entra en el arqueo.

Datos estáticos que se cargan por seed/configuración. El motor de caja
solo los lee.
"""
from sqlalchemy import Column, String, Integer, Boolean, Enum
from app.database.database import Base
from app.common.mixins import TimestampMixin
import enum


class OperationType(str, enum.Enum):
    """Dirección de la operación"""
    ENTRADA = "entrada"  # Aumenta el efectivo de la caja
    SALIDA = "salida"    # Disminuye el efectivo de la caja


class MovementOrigin(str, enum.Enum):
    """Quién genera movimientos de este tipo"""
    MANUAL = "manual"          # Cargado por el operador
    AUTOMATIC = "automatic"    # Generado por ventas/compras


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class MovementType(Base, TimestampMixin):
    __tablename__ = "movement_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(String(255), nullable=True)
    operation_type = Column(
        Enum(OperationType, name="operation_type", values_callable=_enum_values),
        nullable=False
    )
    origin = Column(
        Enum(MovementOrigin, name="movement_origin", values_callable=_enum_values),
        nullable=False,
        default=MovementOrigin.MANUAL
    )
    is_cash_movement = Column(Boolean, nullable=False, default=True)
    is_current_account_movement = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True, index=True)

    @property
    def is_income(self) -> bool:
        return self.operation_type == OperationType.ENTRADA

    def __str__(self):
        return f"{self.name} ({self.operation_type.value})"


class PaymentMethod(Base, TimestampMixin):
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    is_cash = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    def __str__(self):
        return self.name
