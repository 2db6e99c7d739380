"""
Motor de caja: sesiones de caja por sucursal, movimientos y arqueo.
"""
from app.modules.cash.models import CashRegister, CashMovement, CashMovementAudit, CashRegisterStatus
from app.modules.cash.services import CashRegisterService, CashMovementService

__all__ = [
    "CashRegister",
    "CashMovement",
    "CashMovementAudit",
    "CashRegisterStatus",
    "CashRegisterService",
    "CashMovementService",
]
