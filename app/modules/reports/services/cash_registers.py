"""
Cash Register Reports Service

Handles cash register reports: the consolidated multi-branch dashboard,
the closing report of a single register and the closing audit.

Every figure is recomputed from the stored movements with the same balance
calculator used to close registers; nothing is read from cached totals.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import desc

from .base import BaseReportService
from app.common.validators import ZERO, to_money
from app.modules.cash.aggregator import aggregate_sessions
from app.modules.cash.balance import SessionBalance, summarize_register
from app.modules.cash.models import CashRegister, CashMovement, CashRegisterStatus
from app.modules.cash.reconciliation import ReconciliationStatus, reconcile
from app.modules.cash.services import CashRegisterService, reconciliation_to_dict


class CashRegisterReportService(BaseReportService):
    """Service for generating cash register reports"""

    def get_multiple_branches_summary(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        status: Optional[str] = None
    ) -> Dict:
        """
        Generate consolidated report for several branches.

        Sessions are filtered by branch and opening date; movements are only
        counted through in-scope sessions. Requested branches without sessions
        are reported with zero figures.
        """
        query = self._get_base_cash_register_query()
        query = self._apply_date_filter(query, CashRegister.opened_at, from_date, to_date)
        if status:
            query = query.filter(CashRegister.status == CashRegisterStatus(status))
        registers = query.order_by(CashRegister.opened_at).all()

        movements_by_register = self._load_movements([r.id for r in registers])

        balances = [
            SessionBalance(
                session_id=register.id,
                branch_id=register.branch_id,
                is_open=register.is_open,
                summary=summarize_register(
                    register, self.cash_method_name,
                    movements_by_register.get(register.id, [])
                )
            )
            for register in registers
        ]
        fleet = aggregate_sessions(balances, self.branch_ids)

        return {
            "period_start": from_date,
            "period_end": to_date,
            "total_balance": fleet.total_balance,
            "total_income": fleet.total_income,
            "total_expenses": fleet.total_expenses,
            "net": fleet.net,
            "movement_count": fleet.movement_count,
            "open_sessions": fleet.open_sessions,
            "closed_sessions": fleet.closed_sessions,
            "open_branches": fleet.open_branches,
            "branches": [
                {
                    "branch_id": branch.branch_id,
                    "balance": branch.balance,
                    "income": branch.income,
                    "expenses": branch.expenses,
                    "net": branch.net,
                    "movement_count": branch.movement_count,
                    "session_count": branch.session_count,
                    "is_open": branch.is_open,
                }
                for branch in fleet.branches
            ]
        }

    def get_closing_report(self, cash_register_id: UUID) -> Dict:
        """Closing report of a single register, recomputed from its movements."""
        report = CashRegisterService(self.db).get_cash_register_report(cash_register_id)
        report["generated_at"] = datetime.utcnow()
        return report

    def get_closing_audit(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> Dict:
        """
        Generate closing audit report.

        Lists closed registers (by closing date) with their reconciliation and
        summarizes how many matched, had a surplus or a shortfall.
        """
        query = self._get_base_cash_register_query().filter(
            CashRegister.status == CashRegisterStatus.CLOSED
        )
        query = self._apply_date_filter(query, CashRegister.closed_at, from_date, to_date)
        registers = query.order_by(desc(CashRegister.closed_at)).all()

        movements_by_register = self._load_movements([r.id for r in registers])

        closures = []
        counts = {status: 0 for status in ReconciliationStatus}
        total_surplus = ZERO
        total_shortfall = ZERO
        total_absolute = ZERO

        for register in registers:
            summary = summarize_register(
                register, self.cash_method_name,
                movements_by_register.get(register.id, [])
            )
            result = reconcile(summary.expected_cash_balance, register.final_amount)
            counts[result.status] += 1
            total_absolute += abs(result.difference)
            if result.status == ReconciliationStatus.SURPLUS:
                total_surplus += result.difference
            elif result.status == ReconciliationStatus.SHORTFALL:
                total_shortfall += abs(result.difference)

            closures.append({
                "cash_register_id": register.id,
                "branch_id": register.branch_id,
                "opened_at": register.opened_at,
                "closed_at": register.closed_at,
                "initial_amount": register.initial_amount,
                "movement_count": summary.movement_count,
                "reconciliation": reconciliation_to_dict(result),
            })

        total = len(closures)
        matched = counts[ReconciliationStatus.MATCHED]
        accuracy_rate = to_money(Decimal(matched) * 100 / total) if total else ZERO

        return {
            "period_start": from_date,
            "period_end": to_date,
            "closures": closures,
            "total_closures": total,
            "matched_count": matched,
            "surplus_count": counts[ReconciliationStatus.SURPLUS],
            "shortfall_count": counts[ReconciliationStatus.SHORTFALL],
            "total_surplus": total_surplus,
            "total_shortfall": total_shortfall,
            "total_absolute_difference": total_absolute,
            "accuracy_rate": accuracy_rate,
        }

    def _load_movements(self, register_ids: List[UUID]) -> Dict[UUID, List[CashMovement]]:
        """Fetch movements of several registers in one query, grouped by register"""
        grouped: Dict[UUID, List[CashMovement]] = defaultdict(list)
        if not register_ids:
            return grouped
        movements = self.db.query(CashMovement).filter(
            CashMovement.cash_register_id.in_(register_ids)
        ).all()
        for movement in movements:
            grouped[movement.cash_register_id].append(movement)
        return grouped
