"""
Modelos SQLAlchemy del motor de caja

- CashRegister: una sesión de caja (apertura → cierre) en una sucursal
- CashMovement: movimiento monetario registrado contra una caja abierta
- CashMovementAudit: rastro de movimientos eliminados

Reglas persistidas en la base:
- Solo una caja abierta por sucursal (índice único parcial)
- Una caja cerrada siempre tiene final_amount y closed_at; una abierta nunca
- Los montos de movimientos son siempre positivos; la dirección la da el tipo

Los totales (saldo esperado, diferencia, totales por medio de pago) NO se
guardan: se recalculan desde los movimientos en cada lectura.
"""

from app.database.database import Base
from sqlalchemy import (
    Column, String, Boolean, DateTime, ForeignKey, Numeric, Enum, Text,
    Integer, CheckConstraint, Index, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from datetime import datetime
from uuid import uuid4
from app.common.mixins import TimestampMixin
from app.modules.catalog.models import MovementType, PaymentMethod
import enum


class CashRegisterStatus(str, enum.Enum):
    """Estados de caja registradora"""
    OPEN = "open"       # Caja abierta
    CLOSED = "closed"   # Caja cerrada (terminal)


class CashRegister(Base, TimestampMixin):
    """
    Sesión de caja registradora de una sucursal.

    Se crea al abrir la caja y solo se modifica al cerrarla.
    """
    __tablename__ = "cash_registers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    branch_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    status = Column(
        Enum(CashRegisterStatus, name="cash_register_status",
             values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=CashRegisterStatus.OPEN, index=True
    )

    initial_amount = Column(Numeric(15, 2), nullable=False, default=0)
    final_amount = Column(Numeric(15, 2), nullable=True)  # Efectivo contado al cerrar

    opened_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(UUID(as_uuid=True), nullable=True)

    opening_notes = Column(Text, nullable=True)
    closing_notes = Column(Text, nullable=True)

    movements = relationship(
        "CashMovement", back_populates="cash_register",
        order_by="CashMovement.created_at"
    )

    __table_args__ = (
        CheckConstraint("initial_amount >= 0", name="ck_cash_registers_initial_amount"),
        CheckConstraint(
            "(status = 'open' AND final_amount IS NULL AND closed_at IS NULL) OR "
            "(status = 'closed' AND final_amount IS NOT NULL AND closed_at IS NOT NULL)",
            name="ck_cash_registers_status_fields"
        ),
        Index(
            "uq_cash_registers_branch_open", "branch_id",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
        Index("idx_cash_registers_branch_opened", "branch_id", "opened_at"),
    )

    @property
    def is_open(self) -> bool:
        return self.status == CashRegisterStatus.OPEN


class CashMovement(Base):
    """
    Movimiento de caja. Inmutable: solo se crea o se elimina (acción privilegiada).

    Los movimientos automáticos llevan sale_id o purchase_order_id.
    """
    __tablename__ = "cash_movements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    cash_register_id = Column(UUID(as_uuid=True), ForeignKey("cash_registers.id"), nullable=False, index=True)
    movement_type_id = Column(Integer, ForeignKey("movement_types.id"), nullable=False, index=True)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)  # Siempre positivo
    description = Column(String(255), nullable=False)

    sale_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    purchase_order_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    affects_balance = Column(Boolean, nullable=False, default=True)
    user_id = Column(UUID(as_uuid=True), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    cash_register = relationship("CashRegister", back_populates="movements")
    movement_type = relationship(MovementType, lazy="joined")
    payment_method = relationship(PaymentMethod, lazy="joined")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_cash_movements_amount_positive"),
        CheckConstraint(
            "sale_id IS NULL OR purchase_order_id IS NULL",
            name="ck_cash_movements_single_reference"
        ),
        Index("idx_cash_movements_register_created", "cash_register_id", "created_at"),
    )

    @property
    def is_automatic(self) -> bool:
        return self.sale_id is not None or self.purchase_order_id is not None

    @property
    def movement_type_name(self):
        return self.movement_type.name if self.movement_type else None

    @property
    def operation_type(self):
        return self.movement_type.operation_type.value if self.movement_type else None

    @property
    def payment_method_name(self):
        return self.payment_method.name if self.payment_method else None

    def snapshot(self) -> dict:
        """Copia serializable para la auditoría de eliminación"""
        return {
            "id": str(self.id),
            "cash_register_id": str(self.cash_register_id),
            "movement_type_id": self.movement_type_id,
            "movement_type": self.movement_type_name,
            "operation_type": self.operation_type,
            "payment_method_id": self.payment_method_id,
            "payment_method": self.payment_method_name,
            "amount": str(self.amount),
            "description": self.description,
            "sale_id": str(self.sale_id) if self.sale_id else None,
            "purchase_order_id": str(self.purchase_order_id) if self.purchase_order_id else None,
            "affects_balance": self.affects_balance,
            "user_id": str(self.user_id),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class CashMovementAudit(Base):
    """Registro de auditoría de movimientos eliminados"""
    __tablename__ = "cash_movement_audits"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    movement_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    cash_register_id = Column(UUID(as_uuid=True), ForeignKey("cash_registers.id"), nullable=False, index=True)
    action = Column(String(20), nullable=False, default="delete")
    snapshot = Column(JSON, nullable=False)  # Copia del movimiento eliminado
    register_status = Column(String(20), nullable=False)  # Estado de la caja al eliminar
    reason = Column(Text, nullable=True)
    performed_by = Column(UUID(as_uuid=True), nullable=False)
    performed_at = Column(DateTime, nullable=False, default=datetime.utcnow)
