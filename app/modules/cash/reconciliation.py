"""
Arqueo: comparación del efectivo contado contra el saldo esperado.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
import enum

from app.common.exceptions import ValidationError
from app.common.validators import to_money
from app.core.config import settings


class ReconciliationStatus(enum.Enum):
    MATCHED = "matched"      # Cuadra
    SURPLUS = "surplus"      # Sobrante
    SHORTFALL = "shortfall"  # Faltante


@dataclass(frozen=True)
class Reconciliation:
    expected: Decimal
    counted: Decimal
    difference: Decimal
    status: ReconciliationStatus

    @property
    def is_matched(self) -> bool:
        return self.status == ReconciliationStatus.MATCHED


def reconcile(expected, counted, epsilon: Optional[Decimal] = None) -> Reconciliation:
    """
    Calcular diferencia y clasificación del arqueo.

    Con saldo esperado negativo (las salidas superaron a las entradas) el
    efectivo contado se compara contra la magnitud del faltante.

    matched si |diferencia| < epsilon; si no, surplus o shortfall según el signo.
    """
    epsilon = settings.CURRENCY_EPSILON if epsilon is None else epsilon
    if counted is None:
        raise ValidationError("El efectivo contado es obligatorio")

    expected = to_money(expected)
    counted = to_money(counted)
    if counted < 0:
        raise ValidationError("El efectivo contado no puede ser negativo")

    if expected < 0:
        difference = counted - abs(expected)
    else:
        difference = counted - expected

    if abs(difference) < epsilon:
        status = ReconciliationStatus.MATCHED
    elif difference > 0:
        status = ReconciliationStatus.SURPLUS
    else:
        status = ReconciliationStatus.SHORTFALL

    return Reconciliation(expected=expected, counted=counted, difference=difference, status=status)
