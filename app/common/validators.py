"""
Validadores y helpers para montos monetarios.

El dinero nunca se representa como float: todo pasa por Decimal
cuantizado a centavos.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Convierte un valor a Decimal con dos decimales.

    Acepta Decimal, int o str. Los float se convierten vía str() para no
    arrastrar la representación binaria.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        try:
            amount = Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise ValueError(f"Monto inválido: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Monto inválido: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_non_negative_amount(value: Optional[Any]) -> Decimal:
    if value is None:
        raise ValueError("El monto es obligatorio")
    amount = to_money(value)
    if amount < 0:
        raise ValueError("El monto no puede ser negativo")
    return amount
