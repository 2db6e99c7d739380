"""
Cálculo de saldos de caja.

Funciones puras sobre una lista de movimientos: no tocan la base de datos.
El cierre de caja, el detalle de caja y el tablero multi-sucursal usan
esta misma implementación.

Algoritmo:
1. Agrupar movimientos por medio de pago
2. Sumar entradas en `income` y salidas en `expense` (se ignoran los
   movimientos con affects_balance=False); net = income - expense
3. Sumar el monto inicial solo al neto del medio de pago efectivo
4. expected_cash_balance = neto del efectivo
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Optional
from uuid import UUID

from app.common.validators import ZERO, to_money
from app.modules.catalog.models import OperationType


@dataclass(frozen=True)
class LedgerEntry:
    """Vista mínima de un movimiento para el cálculo de saldos"""
    amount: Decimal
    operation_type: OperationType
    payment_method: str
    is_cash_method: bool
    affects_balance: bool = True
    is_cash_movement: bool = True

    @classmethod
    def from_movement(cls, movement) -> "LedgerEntry":
        return cls(
            amount=to_money(movement.amount),
            operation_type=movement.movement_type.operation_type,
            payment_method=movement.payment_method.name,
            is_cash_method=bool(movement.payment_method.is_cash),
            affects_balance=bool(movement.affects_balance),
            is_cash_movement=bool(movement.movement_type.is_cash_movement),
        )

    @property
    def counts(self) -> bool:
        return self.affects_balance and self.is_cash_movement


@dataclass
class MethodTotals:
    income: Decimal = ZERO
    expense: Decimal = ZERO
    is_cash: bool = False

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass
class BalanceSummary:
    """Resultado del cálculo para una caja (o un subconjunto filtrado)"""
    initial_amount: Decimal
    cash_method: str
    payment_method_totals: Dict[str, MethodTotals] = field(default_factory=dict)
    movement_count: int = 0

    @property
    def expected_cash_balance(self) -> Decimal:
        cash = self.payment_method_totals.get(self.cash_method)
        return self.initial_amount + (cash.net if cash else ZERO)

    @property
    def total_income(self) -> Decimal:
        return sum((t.income for t in self.payment_method_totals.values()), ZERO)

    @property
    def total_expense(self) -> Decimal:
        return sum((t.expense for t in self.payment_method_totals.values()), ZERO)

    def method_net(self, method: str) -> Decimal:
        """Neto por medio de pago; el efectivo incluye el monto inicial."""
        totals = self.payment_method_totals.get(method)
        net = totals.net if totals else ZERO
        if method == self.cash_method:
            net += self.initial_amount
        return net

    def as_dict(self) -> Dict[str, Dict[str, Decimal]]:
        """Totales por medio de pago con el inicial sumado al efectivo."""
        result = {}
        for name, totals in self.payment_method_totals.items():
            result[name] = {
                "income": totals.income,
                "expense": totals.expense,
                "net": self.method_net(name),
                "is_cash": totals.is_cash,
            }
        if self.cash_method not in result:
            result[self.cash_method] = {
                "income": ZERO,
                "expense": ZERO,
                "net": self.initial_amount,
                "is_cash": True,
            }
        return result


def calculate_balance(initial_amount, entries: Iterable[LedgerEntry],
                      cash_method: str) -> BalanceSummary:
    """
    Calcular totales por medio de pago y el saldo esperado en efectivo.

    Args:
        initial_amount: Monto de apertura de la caja
        entries: Movimientos de la caja (el orden no importa)
        cash_method: Nombre del medio de pago efectivo

    Un saldo esperado negativo se devuelve tal cual, sin recortarlo a cero.
    """
    summary = BalanceSummary(initial_amount=to_money(initial_amount), cash_method=cash_method)

    for entry in entries:
        summary.movement_count += 1
        if not entry.counts:
            continue

        # Un medio de pago marcado como efectivo cae siempre en el bucket de efectivo
        bucket = cash_method if entry.is_cash_method else entry.payment_method
        totals = summary.payment_method_totals.get(bucket)
        if totals is None:
            totals = MethodTotals(is_cash=entry.is_cash_method)
            summary.payment_method_totals[bucket] = totals

        if entry.operation_type == OperationType.ENTRADA:
            totals.income += to_money(entry.amount)
        else:
            totals.expense += to_money(entry.amount)

    return summary


def summarize_register(register, cash_method: str,
                       movements: Optional[Iterable] = None) -> BalanceSummary:
    """Atajo para una CashRegister del ORM."""
    source = register.movements if movements is None else movements
    return calculate_balance(
        register.initial_amount,
        (LedgerEntry.from_movement(m) for m in source),
        cash_method
    )


@dataclass
class SessionBalance:
    """Saldo de una caja identificada, insumo del agregador multi-sucursal"""
    session_id: UUID
    branch_id: UUID
    is_open: bool
    summary: BalanceSummary
