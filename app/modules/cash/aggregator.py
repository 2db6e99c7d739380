"""
Agregación multi-sucursal.

Suma los saldos de varias cajas (una o más por sucursal) calculados con
balance.calculate_balance. No consulta la base ni tiene efectos.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from app.common.validators import ZERO
from app.modules.cash.balance import SessionBalance


@dataclass
class BranchBreakdown:
    branch_id: UUID
    balance: Decimal = ZERO
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    movement_count: int = 0
    session_count: int = 0
    is_open: bool = False

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


@dataclass
class FleetSummary:
    total_balance: Decimal = ZERO
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    movement_count: int = 0
    open_sessions: int = 0
    closed_sessions: int = 0
    branches: List[BranchBreakdown] = field(default_factory=list)

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def open_branches(self) -> int:
        return len([b for b in self.branches if b.is_open])


def aggregate_sessions(sessions: Iterable[SessionBalance],
                       branch_ids: Optional[Iterable[UUID]] = None) -> FleetSummary:
    """
    Consolidar saldos por sucursal y totales generales.

    Args:
        sessions: Saldos por caja
        branch_ids: Sucursales pedidas. Las que no tienen cajas aparecen con
            saldo 0; las cajas de sucursales fuera de la lista se ignoran.
            None = todas las sucursales presentes en `sessions`.
    """
    breakdown: Dict[UUID, BranchBreakdown] = {}
    requested = None
    if branch_ids is not None:
        requested = list(dict.fromkeys(branch_ids))
        for branch_id in requested:
            breakdown[branch_id] = BranchBreakdown(branch_id=branch_id)

    fleet = FleetSummary()
    seen = set()

    for session in sessions:
        if requested is not None and session.branch_id not in breakdown:
            continue
        if session.session_id in seen:
            continue
        seen.add(session.session_id)

        branch = breakdown.get(session.branch_id)
        if branch is None:
            branch = BranchBreakdown(branch_id=session.branch_id)
            breakdown[session.branch_id] = branch

        summary = session.summary
        branch.balance += summary.expected_cash_balance
        branch.income += summary.total_income
        branch.expenses += summary.total_expense
        branch.movement_count += summary.movement_count
        branch.session_count += 1
        branch.is_open = branch.is_open or session.is_open

        if session.is_open:
            fleet.open_sessions += 1
        else:
            fleet.closed_sessions += 1

    fleet.branches = list(breakdown.values())
    for branch in fleet.branches:
        fleet.total_balance += branch.balance
        fleet.total_income += branch.income
        fleet.total_expenses += branch.expenses
        fleet.movement_count += branch.movement_count

    return fleet
