"""
Datos de referencia del catálogo de caja: tipos de movimiento y medios de pago.

seed_catalog() es idempotente: inserta lo que falta y no toca lo existente.
"""
from sqlalchemy.orm import Session
import logging

from app.modules.catalog.models import MovementType, MovementOrigin, OperationType, PaymentMethod

logger = logging.getLogger(__name__)

# Tipos usados por el subsistema de ventas/compras
SALE_MOVEMENT_TYPE = "Venta"
PURCHASE_MOVEMENT_TYPE = "Compra de mercadería"

MOVEMENT_TYPES = [
    # Automáticos
    {"name": SALE_MOVEMENT_TYPE, "description": "Ingreso por venta registrada en el POS",
     "operation_type": OperationType.ENTRADA, "origin": MovementOrigin.AUTOMATIC},
    {"name": PURCHASE_MOVEMENT_TYPE, "description": "Pago de orden de compra a proveedor",
     "operation_type": OperationType.SALIDA, "origin": MovementOrigin.AUTOMATIC},
    {"name": "Anulación de venta", "description": "Devolución de dinero por venta anulada",
     "operation_type": OperationType.SALIDA, "origin": MovementOrigin.AUTOMATIC},
    {"name": "Cobro de cuenta corriente", "description": "Pago de un cliente a su cuenta corriente",
     "operation_type": OperationType.ENTRADA, "origin": MovementOrigin.AUTOMATIC,
     "is_current_account_movement": True},

    # Manuales
    {"name": "Depósito", "description": "Ingreso manual de efectivo",
     "operation_type": OperationType.ENTRADA},
    {"name": "Ingresos varios", "description": "Otros ingresos de caja",
     "operation_type": OperationType.ENTRADA},
    {"name": "Retiro de efectivo", "description": "Retiro manual de efectivo",
     "operation_type": OperationType.SALIDA},
    {"name": "Gasto operativo", "description": "Gasto pagado desde la caja",
     "operation_type": OperationType.SALIDA},
    {"name": "Pago a proveedor", "description": "Pago manual a proveedor desde la caja",
     "operation_type": OperationType.SALIDA},

    # Solo cuenta corriente, nunca pasan por la caja
    {"name": "Ajuste a favor", "description": "Ajuste contable que beneficia al cliente",
     "operation_type": OperationType.ENTRADA, "is_cash_movement": False,
     "is_current_account_movement": True},
    {"name": "Interés aplicado", "description": "Interés aplicado por mora",
     "operation_type": OperationType.SALIDA, "is_cash_movement": False,
     "is_current_account_movement": True},
]

PAYMENT_METHODS = [
    {"name": "Efectivo", "is_cash": True},
    {"name": "Tarjeta de débito"},
    {"name": "Tarjeta de crédito"},
    {"name": "Transferencia"},
    {"name": "Cheque"},
    {"name": "Mercado Pago"},
]


def seed_catalog(db: Session) -> dict:
    """Poblar tipos de movimiento y medios de pago faltantes."""
    created = {"movement_types": 0, "payment_methods": 0}

    existing_types = {name for (name,) in db.query(MovementType.name).all()}
    for data in MOVEMENT_TYPES:
        if data["name"] in existing_types:
            continue
        db.add(MovementType(
            name=data["name"],
            description=data.get("description"),
            operation_type=data["operation_type"],
            origin=data.get("origin", MovementOrigin.MANUAL),
            is_cash_movement=data.get("is_cash_movement", True),
            is_current_account_movement=data.get("is_current_account_movement", False),
            active=True,
        ))
        created["movement_types"] += 1

    existing_methods = {name for (name,) in db.query(PaymentMethod.name).all()}
    for data in PAYMENT_METHODS:
        if data["name"] in existing_methods:
            continue
        db.add(PaymentMethod(name=data["name"], is_cash=data.get("is_cash", False), is_active=True))
        created["payment_methods"] += 1

    db.commit()
    logger.info(
        f"Catálogo cargado: {created['movement_types']} tipos de movimiento, "
        f"{created['payment_methods']} medios de pago"
    )
    return created
