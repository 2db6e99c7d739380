"""
Catálogo de caja: tipos de movimiento y medios de pago.

Datos de referencia de solo lectura para el motor de caja. Los tipos de
movimiento declaran explícitamente su dirección (entrada/salida), si afectan
la caja física o la cuenta corriente, y su origen (manual/automático).
"""

from .models import MovementType, PaymentMethod, OperationType, MovementOrigin
from .service import CatalogService

__all__ = [
    "MovementType", "PaymentMethod", "OperationType", "MovementOrigin",
    "CatalogService",
]
