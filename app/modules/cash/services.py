"""
Servicios de negocio del motor de caja

Implementa la lógica de negocio para:
- CashRegisterService: apertura/cierre de cajas, arqueo, historial y estado por sucursal
- CashMovementService: registro, eliminación auditada y consulta de movimientos

Los saldos no se guardan: se recalculan desde los movimientos con
app.modules.cash.balance en cada lectura.
"""

import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import desc, func
from decimal import Decimal
from typing import List, Optional, Dict, Any, Iterable
from uuid import UUID
from datetime import date, datetime, time, timedelta

from app.common.exceptions import (
    CajaError, ConflictError, InvalidStateError, NotFoundError, ValidationError
)
from app.common.validators import ZERO, to_money
from app.core.config import settings
from app.modules.catalog.seed_data import SALE_MOVEMENT_TYPE, PURCHASE_MOVEMENT_TYPE
from app.modules.catalog.models import MovementType, OperationType
from app.modules.catalog.service import CatalogService
from app.modules.cash.models import (
    CashRegister, CashMovement, CashMovementAudit, CashRegisterStatus
)
from app.modules.cash.schemas import (
    CashRegisterOpen, CashRegisterClose, CashMovementCreate,
    CashRegisterOut, OpenSession, ClosedSession
)
from app.modules.cash.balance import BalanceSummary, LedgerEntry, calculate_balance, summarize_register
from app.modules.cash.reconciliation import Reconciliation, reconcile

logger = logging.getLogger(__name__)


def date_range_filter(column, from_date: Optional[date] = None, to_date: Optional[date] = None) -> list:
    """Filtros inclusivos por día sobre una columna DateTime."""
    filters = []
    if from_date:
        filters.append(column >= datetime.combine(from_date, time.min))
    if to_date:
        filters.append(column < datetime.combine(to_date + timedelta(days=1), time.min))
    return filters


def resolve_cash_method_name(db: Session) -> str:
    """Nombre del bucket de efectivo: el medio de pago is_cash o el configurado."""
    cash_method = CatalogService(db).get_cash_payment_method()
    return cash_method.name if cash_method else settings.CASH_PAYMENT_METHOD_NAME


def reconciliation_to_dict(result: Reconciliation) -> Dict[str, Any]:
    return {
        "expected": result.expected,
        "counted": result.counted,
        "difference": result.difference,
        "status": result.status.value,
    }


def payment_totals_to_list(summary: BalanceSummary) -> List[Dict[str, Any]]:
    return [
        {"payment_method": name, **totals}
        for name, totals in sorted(summary.as_dict().items())
    ]


class CashRegisterService:
    """Servicio para gestión de cajas registradoras"""

    def __init__(self, db: Session):
        self.db = db

    # ===== APERTURA / CIERRE =====

    def open_cash_register(self, register_data: CashRegisterOpen, user_id: UUID) -> CashRegister:
        """Abrir caja registradora en una sucursal"""
        try:
            initial_amount = to_money(register_data.initial_amount)
            if initial_amount < 0:
                raise ValidationError("El monto inicial no puede ser negativo")

            existing_open = self.get_current_cash_register(register_data.branch_id)
            if existing_open:
                raise ConflictError("Ya existe una caja abierta para esta sucursal")

            register = CashRegister(
                branch_id=register_data.branch_id,
                user_id=user_id,
                status=CashRegisterStatus.OPEN,
                initial_amount=initial_amount,
                opened_at=datetime.utcnow(),
                opening_notes=register_data.opening_notes
            )
            self.db.add(register)
            self.db.commit()
            self.db.refresh(register)

            logger.info(
                "Caja %s abierta en sucursal %s con monto inicial %s",
                register.id, register.branch_id, register.initial_amount
            )
            return register

        except CajaError:
            self.db.rollback()
            raise
        except IntegrityError:
            # Otra apertura concurrente ganó el índice único parcial
            self.db.rollback()
            raise ConflictError("Ya existe una caja abierta para esta sucursal")
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error de base de datos al abrir caja")
            raise

    def close_cash_register(self, register_id: UUID, close_data: CashRegisterClose,
                            user_id: UUID) -> Dict[str, Any]:
        """
        Cerrar caja registradora con arqueo.

        Bloquea la fila de la caja para que ningún movimiento se registre
        entre el cálculo del saldo esperado y el cambio de estado.
        """
        try:
            register = self.lock_register(register_id)
            if not register.is_open:
                raise InvalidStateError("La caja ya está cerrada")
            if close_data.counted_cash is None:
                raise ValidationError("El efectivo contado es obligatorio")

            summary = summarize_register(register, resolve_cash_method_name(self.db))
            result = reconcile(summary.expected_cash_balance, close_data.counted_cash)

            register.status = CashRegisterStatus.CLOSED
            register.final_amount = result.counted
            register.closed_at = datetime.utcnow()
            register.closed_by = user_id
            register.closing_notes = close_data.closing_notes

            self.db.commit()
            self.db.refresh(register)

            logger.info(
                "Caja %s cerrada: esperado=%s contado=%s diferencia=%s (%s)",
                register.id, result.expected, result.counted,
                result.difference, result.status.value
            )
            return {
                "cash_register": CashRegisterOut.model_validate(register),
                "reconciliation": reconciliation_to_dict(result),
                "payment_method_totals": payment_totals_to_list(summary),
            }

        except CajaError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error de base de datos al cerrar caja %s", register_id)
            raise

    # ===== CONSULTAS =====

    def get_current_cash_register(self, branch_id: UUID) -> Optional[CashRegister]:
        """
        Obtener la caja abierta actual de una sucursal.

        Retorna None si la sucursal no tiene caja abierta.
        """
        return self.db.query(CashRegister).filter(
            CashRegister.branch_id == branch_id,
            CashRegister.status == CashRegisterStatus.OPEN
        ).first()

    def get_cash_register(self, register_id: UUID) -> CashRegister:
        register = self.db.get(CashRegister, register_id)
        if not register:
            raise NotFoundError("Caja registradora no encontrada")
        return register

    def get_cash_registers(self, branch_id: Optional[UUID] = None,
                           status: Optional[CashRegisterStatus] = None,
                           from_date: Optional[date] = None,
                           to_date: Optional[date] = None,
                           limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        """Historial de cajas, más recientes primero"""
        query = self.db.query(CashRegister)

        if branch_id:
            query = query.filter(CashRegister.branch_id == branch_id)
        if status:
            query = query.filter(CashRegister.status == status)
        for condition in date_range_filter(CashRegister.opened_at, from_date, to_date):
            query = query.filter(condition)

        query = query.order_by(desc(CashRegister.opened_at))

        total = query.count()
        registers = query.offset(offset).limit(limit).all()

        return {
            "cash_registers": registers,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_last_closure(self, branch_id: UUID) -> Dict[str, Any]:
        """Efectivo contado en el último cierre de la sucursal (sugerencia de monto inicial)"""
        last_closed = self.db.query(CashRegister).filter(
            CashRegister.branch_id == branch_id,
            CashRegister.status == CashRegisterStatus.CLOSED
        ).order_by(desc(CashRegister.closed_at)).first()

        return {
            "branch_id": branch_id,
            "last_closure_amount": last_closed.final_amount if last_closed else None,
            "has_previous_closure": last_closed is not None,
        }

    def get_branches_status(self, branch_ids: Iterable[UUID]) -> Dict[str, Any]:
        """Estado de caja (abierta / cerrada) de varias sucursales"""
        requested = list(dict.fromkeys(branch_ids))
        if not requested:
            raise ValidationError("Debe indicar al menos una sucursal")

        open_registers = self.db.query(CashRegister).filter(
            CashRegister.branch_id.in_(requested),
            CashRegister.status == CashRegisterStatus.OPEN
        ).order_by(CashRegister.opened_at).all()

        open_branch_ids = {r.branch_id for r in open_registers}
        closed_branches = [b for b in requested if b not in open_branch_ids]

        open_count = len(open_branch_ids)
        closed_count = len(closed_branches)
        return {
            "open_registers": open_registers,
            "closed_branches": closed_branches,
            "total_branches": len(requested),
            "open_count": open_count,
            "closed_count": closed_count,
            "all_open": closed_count == 0,
            "all_closed": open_count == 0,
            "mixed_status": open_count > 0 and closed_count > 0,
        }

    # ===== SALDOS =====

    def get_summary(self, register: CashRegister) -> BalanceSummary:
        return summarize_register(register, resolve_cash_method_name(self.db))

    def to_state(self, register: CashRegister, summary: Optional[BalanceSummary] = None):
        """Vista etiquetada: OpenSession o ClosedSession según el estado."""
        if register.is_open:
            return OpenSession(
                id=register.id,
                branch_id=register.branch_id,
                initial_amount=register.initial_amount,
                opened_at=register.opened_at
            )
        summary = summary or self.get_summary(register)
        result = reconcile(summary.expected_cash_balance, register.final_amount)
        return ClosedSession(
            id=register.id,
            branch_id=register.branch_id,
            initial_amount=register.initial_amount,
            final_amount=register.final_amount,
            opened_at=register.opened_at,
            closed_at=register.closed_at,
            difference=result.difference
        )

    def get_cash_register_report(self, register_id: UUID) -> Dict[str, Any]:
        """
        Detalle de caja recalculado desde los movimientos.

        Incluye totales por medio de pago, saldo esperado y, para cajas
        cerradas, el arqueo contra el monto final. Dos llamadas sobre los
        mismos movimientos devuelven el mismo resultado.
        """
        register = self.get_cash_register(register_id)
        summary = self.get_summary(register)

        reconciliation = None
        if not register.is_open:
            reconciliation = reconciliation_to_dict(
                reconcile(summary.expected_cash_balance, register.final_amount)
            )

        return {
            "cash_register": CashRegisterOut.model_validate(register),
            "state": self.to_state(register, summary),
            "expected_cash_balance": summary.expected_cash_balance,
            "total_income": summary.total_income,
            "total_expense": summary.total_expense,
            "movement_count": summary.movement_count,
            "payment_method_totals": payment_totals_to_list(summary),
            "reconciliation": reconciliation,
        }

    def lock_register(self, register_id: UUID) -> CashRegister:
        """SELECT ... FOR UPDATE sobre la caja; serializa cierre, registro y borrado."""
        register = self.db.query(CashRegister).filter(
            CashRegister.id == register_id
        ).with_for_update().populate_existing().first()
        if not register:
            raise NotFoundError("Caja registradora no encontrada")
        return register


class CashMovementService:
    """Servicio para movimientos de caja"""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)

    def create_movement(self, movement_data: CashMovementCreate, user_id: UUID) -> CashMovement:
        """
        Registrar movimiento en una caja abierta.

        La caja se bloquea durante el registro: un cierre concurrente espera
        o el movimiento ve la caja cerrada y falla. El estado de la caja se
        valida antes que el monto.
        """
        try:
            register = CashRegisterService(self.db).lock_register(movement_data.cash_register_id)
            if not register.is_open:
                raise InvalidStateError("La caja no está abierta")

            amount = to_money(movement_data.amount)
            if amount <= 0:
                raise ValidationError("El monto debe ser mayor a cero")
            if movement_data.sale_id and movement_data.purchase_order_id:
                raise ValidationError("Un movimiento referencia una venta o una compra, no ambas")

            self.catalog.require_active_movement_type(movement_data.movement_type_id)
            self.catalog.require_payment_method(movement_data.payment_method_id)

            movement = CashMovement(
                cash_register_id=register.id,
                movement_type_id=movement_data.movement_type_id,
                payment_method_id=movement_data.payment_method_id,
                amount=amount,
                description=movement_data.description,
                sale_id=movement_data.sale_id,
                purchase_order_id=movement_data.purchase_order_id,
                affects_balance=movement_data.affects_balance,
                user_id=user_id,
                created_at=datetime.utcnow()
            )
            self.db.add(movement)
            self.db.commit()
            self.db.refresh(movement)

            logger.debug(
                "Movimiento %s registrado en caja %s: %s %s",
                movement.id, register.id, movement.operation_type, movement.amount
            )
            return movement

        except CajaError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error de base de datos al registrar movimiento")
            raise

    def record_sale(self, branch_id: UUID, sale_id: UUID, amount: Decimal,
                    payment_method_id: int, user_id: UUID,
                    description: Optional[str] = None) -> CashMovement:
        """Movimiento automático de una venta en la caja abierta de la sucursal"""
        return self._record_automatic(
            branch_id, SALE_MOVEMENT_TYPE, amount, payment_method_id, user_id,
            description or f"Venta {sale_id}", sale_id=sale_id
        )

    def record_purchase(self, branch_id: UUID, purchase_order_id: UUID, amount: Decimal,
                        payment_method_id: int, user_id: UUID,
                        description: Optional[str] = None) -> CashMovement:
        """Movimiento automático de una compra pagada desde la caja de la sucursal"""
        return self._record_automatic(
            branch_id, PURCHASE_MOVEMENT_TYPE, amount, payment_method_id, user_id,
            description or f"Compra {purchase_order_id}", purchase_order_id=purchase_order_id
        )

    def _record_automatic(self, branch_id: UUID, type_name: str, amount: Decimal,
                          payment_method_id: int, user_id: UUID, description: str,
                          sale_id: Optional[UUID] = None,
                          purchase_order_id: Optional[UUID] = None) -> CashMovement:
        register = CashRegisterService(self.db).get_current_cash_register(branch_id)
        if not register:
            raise InvalidStateError("La sucursal no tiene una caja abierta")

        if to_money(amount) <= 0:
            raise ValidationError("El monto debe ser mayor a cero")

        movement_type = self.catalog.get_movement_type_by_name(type_name)
        if not movement_type:
            raise ValidationError(f"Tipo de movimiento '{type_name}' no configurado")

        return self.create_movement(
            CashMovementCreate(
                cash_register_id=register.id,
                movement_type_id=movement_type.id,
                payment_method_id=payment_method_id,
                amount=amount,
                description=description[:255],
                sale_id=sale_id,
                purchase_order_id=purchase_order_id
            ),
            user_id
        )

    def delete_movement(self, movement_id: UUID, user_id: UUID,
                        reason: Optional[str] = None) -> CashMovementAudit:
        """
        Eliminar un movimiento (acción privilegiada).

        Se permite también sobre cajas cerradas; queda un registro de
        auditoría con la copia del movimiento y el próximo reporte de la
        caja refleja el cambio.
        """
        try:
            movement = self.db.get(CashMovement, movement_id)
            if not movement:
                raise NotFoundError("Movimiento no encontrado")

            # Mismo bloqueo que el cierre: el arqueo no ve un borrado a medias
            register = CashRegisterService(self.db).lock_register(movement.cash_register_id)
            audit = CashMovementAudit(
                movement_id=movement.id,
                cash_register_id=register.id,
                action="delete",
                snapshot=movement.snapshot(),
                register_status=register.status.value,
                reason=reason,
                performed_by=user_id,
                performed_at=datetime.utcnow()
            )
            self.db.add(audit)
            self.db.delete(movement)
            self.db.commit()
            self.db.refresh(audit)

            logger.warning(
                "Movimiento %s eliminado de caja %s (%s) por %s: %s",
                movement_id, register.id, audit.register_status, user_id,
                reason or "sin motivo"
            )
            return audit

        except CajaError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Error de base de datos al eliminar movimiento %s", movement_id)
            raise

    def _filtered_query(self, cash_register_id: Optional[UUID] = None,
                        branch_ids: Optional[List[UUID]] = None,
                        from_date: Optional[date] = None,
                        to_date: Optional[date] = None,
                        operation_type: Optional[OperationType] = None,
                        movement_type_id: Optional[int] = None,
                        payment_method_id: Optional[int] = None,
                        q: Optional[str] = None):
        query = self.db.query(CashMovement)

        if cash_register_id:
            query = query.filter(CashMovement.cash_register_id == cash_register_id)
        if branch_ids:
            query = query.join(CashRegister, CashMovement.cash_register_id == CashRegister.id).filter(
                CashRegister.branch_id.in_(branch_ids)
            )
        for condition in date_range_filter(CashMovement.created_at, from_date, to_date):
            query = query.filter(condition)
        if operation_type:
            query = query.join(MovementType, CashMovement.movement_type_id == MovementType.id).filter(
                MovementType.operation_type == operation_type
            )
        if movement_type_id:
            query = query.filter(CashMovement.movement_type_id == movement_type_id)
        if payment_method_id:
            query = query.filter(CashMovement.payment_method_id == payment_method_id)
        if q:
            query = query.filter(func.lower(CashMovement.description).contains(q.lower()))

        return query

    def get_movements(self, limit: int = 100, offset: int = 0, **filters) -> Dict[str, Any]:
        """
        Obtener movimientos de caja con filtros.

        Filtros: cash_register_id, branch_ids, from_date/to_date (inclusivos
        por día sobre created_at), operation_type (entrada/salida),
        movement_type_id, payment_method_id y q (texto en la descripción).
        """
        query = self._filtered_query(**filters).order_by(desc(CashMovement.created_at))

        total = query.count()
        movements = query.offset(offset).limit(limit).all()

        return {
            "movements": movements,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_movements_summary(self, **filters) -> Dict[str, Any]:
        """
        Totales por medio de pago de los movimientos filtrados.

        Usa el mismo cálculo que el cierre de caja, sin monto inicial: el
        neto del efectivo es el flujo de caja del período.
        """
        movements = self._filtered_query(**filters).all()
        summary = calculate_balance(
            ZERO,
            (LedgerEntry.from_movement(m) for m in movements),
            resolve_cash_method_name(self.db)
        )
        return {
            "period_start": filters.get("from_date"),
            "period_end": filters.get("to_date"),
            "total_income": summary.total_income,
            "total_expense": summary.total_expense,
            "net": summary.total_income - summary.total_expense,
            "cash_net": summary.expected_cash_balance,
            "movement_count": summary.movement_count,
            "payment_method_totals": payment_totals_to_list(summary),
        }

    def get_audit_trail(self, cash_register_id: UUID) -> List[CashMovementAudit]:
        return self.db.query(CashMovementAudit).filter(
            CashMovementAudit.cash_register_id == cash_register_id
        ).order_by(desc(CashMovementAudit.performed_at)).all()
