"""
Servicio de lectura del catálogo (tipos de movimiento y medios de pago).

El catálogo es de solo lectura para el motor de caja; los altas se hacen
por seed (ver seed_data.py).
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from app.common.exceptions import NotFoundError, ValidationError
from app.modules.catalog.models import MovementType, MovementOrigin, PaymentMethod


class CatalogService:
    """Consultas sobre el catálogo de referencia"""

    def __init__(self, db: Session):
        self.db = db

    # ===== TIPOS DE MOVIMIENTO =====

    def get_movement_type(self, movement_type_id: int) -> MovementType:
        movement_type = self.db.get(MovementType, movement_type_id)
        if not movement_type:
            raise NotFoundError("Tipo de movimiento no encontrado")
        return movement_type

    def get_movement_type_by_name(self, name: str) -> Optional[MovementType]:
        return self.db.query(MovementType).filter(MovementType.name == name).first()

    def require_active_movement_type(self, movement_type_id: int) -> MovementType:
        """Tipo válido para registrar un movimiento de caja."""
        movement_type = self.db.get(MovementType, movement_type_id)
        if not movement_type or not movement_type.active:
            raise ValidationError("Tipo de movimiento inexistente o inactivo")
        if not movement_type.is_cash_movement:
            raise ValidationError(
                f"El tipo '{movement_type.name}' no afecta la caja registradora"
            )
        return movement_type

    def list_movement_types(self, origin: Optional[MovementOrigin] = None,
                            cash_only: bool = False,
                            active_only: bool = True) -> List[MovementType]:
        """
        Listar tipos de movimiento.

        - origin=MANUAL: los que puede cargar un operador (formulario de nuevo movimiento)
        - origin=AUTOMATIC: los generados por ventas/compras
        - cash_only: solo los que afectan la caja física
        """
        query = self.db.query(MovementType)
        if origin is not None:
            query = query.filter(MovementType.origin == origin)
        if cash_only:
            query = query.filter(MovementType.is_cash_movement.is_(True))
        if active_only:
            query = query.filter(MovementType.active.is_(True))
        return query.order_by(MovementType.name).all()

    # ===== MEDIOS DE PAGO =====

    def get_payment_method(self, payment_method_id: int) -> PaymentMethod:
        payment_method = self.db.get(PaymentMethod, payment_method_id)
        if not payment_method:
            raise NotFoundError("Medio de pago no encontrado")
        return payment_method

    def require_payment_method(self, payment_method_id: int) -> PaymentMethod:
        payment_method = self.db.get(PaymentMethod, payment_method_id)
        if not payment_method or not payment_method.is_active:
            raise ValidationError("Medio de pago inexistente o inactivo")
        return payment_method

    def list_payment_methods(self, active_only: bool = True) -> List[PaymentMethod]:
        query = self.db.query(PaymentMethod)
        if active_only:
            query = query.filter(PaymentMethod.is_active.is_(True))
        return query.order_by(PaymentMethod.name).all()

    def get_cash_payment_method(self) -> Optional[PaymentMethod]:
        """Medio de pago marcado como efectivo físico."""
        return self.db.query(PaymentMethod).filter(
            PaymentMethod.is_cash.is_(True),
            PaymentMethod.is_active.is_(True)
        ).order_by(PaymentMethod.id).first()
