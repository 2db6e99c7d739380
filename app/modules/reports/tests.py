"""
Tests for the cash register reports

Covers the consolidated multi-branch report, the closing report and the
closing audit, both at service level and through the HTTP endpoints.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from app.common.exceptions import NotFoundError
from app.modules.cash.schemas import CashRegisterOpen, CashRegisterClose, CashMovementCreate
from app.modules.cash.services import CashRegisterService, CashMovementService
from app.modules.reports.services import CashRegisterReportService


API = "/api/v1"


@pytest.fixture
def ledger(db_session, movement_types, payment_methods):
    """Helpers to build sessions with movements"""

    class Ledger:
        def open(self, branch_id, initial_amount):
            return CashRegisterService(db_session).open_cash_register(
                CashRegisterOpen(branch_id=branch_id, initial_amount=Decimal(initial_amount)),
                user_id=uuid4()
            )

        def add(self, register, type_name, amount, method="Efectivo"):
            return CashMovementService(db_session).create_movement(
                CashMovementCreate(
                    cash_register_id=register.id,
                    movement_type_id=movement_types[type_name].id,
                    payment_method_id=payment_methods[method].id,
                    amount=Decimal(amount),
                    description=type_name
                ),
                user_id=uuid4()
            )

        def close(self, register, counted_cash):
            return CashRegisterService(db_session).close_cash_register(
                register.id, CashRegisterClose(counted_cash=Decimal(counted_cash)), user_id=uuid4()
            )

    return Ledger()


class TestMultipleBranchesReport:
    """Tests for the consolidated multi-branch report"""

    def test_two_branch_totals(self, db_session, ledger):
        branch_a, branch_b, other_branch = uuid4(), uuid4(), uuid4()
        register_a = ledger.open(branch_a, "100.00")
        ledger.add(register_a, "Depósito", "300.00")
        ledger.add(register_a, "Ingresos varios", "200.00")
        ledger.add(register_a, "Gasto operativo", "100.00")
        register_b = ledger.open(branch_b, "0.00")
        ledger.add(register_b, "Depósito", "300.00")
        ledger.add(ledger.open(other_branch, "5000.00"), "Depósito", "1.00")

        report = CashRegisterReportService(db_session, [branch_a, branch_b]).get_multiple_branches_summary()

        assert report["total_balance"] == Decimal("800.00")
        assert report["movement_count"] == 4
        assert report["total_income"] == Decimal("800.00")
        assert report["total_expenses"] == Decimal("100.00")
        assert report["net"] == Decimal("700.00")
        assert report["open_sessions"] == 2
        by_branch = {b["branch_id"]: b for b in report["branches"]}
        assert by_branch[branch_a]["balance"] == Decimal("500.00")
        assert by_branch[branch_a]["movement_count"] == 3
        assert other_branch not in by_branch

    def test_branch_without_sessions_reports_zero(self, db_session, ledger):
        branch_a, empty_branch = uuid4(), uuid4()
        ledger.open(branch_a, "10.00")

        report = CashRegisterReportService(db_session, [branch_a, empty_branch]).get_multiple_branches_summary()

        by_branch = {b["branch_id"]: b for b in report["branches"]}
        assert by_branch[empty_branch]["balance"] == Decimal("0.00")
        assert by_branch[empty_branch]["is_open"] is False
        assert report["open_branches"] == 1

    def test_status_filter(self, db_session, ledger):
        branch_id = uuid4()
        first = ledger.open(branch_id, "10.00")
        ledger.close(first, "10.00")
        ledger.open(branch_id, "20.00")

        service = CashRegisterReportService(db_session, [branch_id])
        closed = service.get_multiple_branches_summary(status="closed")
        everything = service.get_multiple_branches_summary()

        assert closed["closed_sessions"] == 1
        assert closed["total_balance"] == Decimal("10.00")
        assert everything["total_balance"] == Decimal("30.00")


class TestClosingReports:
    """Tests for the closing report and the closing audit"""

    def test_closing_report(self, db_session, ledger):
        register = ledger.open(uuid4(), "50.00")
        ledger.add(register, "Retiro de efectivo", "20.00")
        ledger.close(register, "30.00")

        report = CashRegisterReportService(db_session).get_closing_report(register.id)

        assert report["expected_cash_balance"] == Decimal("30.00")
        assert report["reconciliation"]["status"] == "matched"
        assert report["generated_at"] is not None

    def test_closing_report_unknown_register(self, db_session):
        with pytest.raises(NotFoundError):
            CashRegisterReportService(db_session).get_closing_report(uuid4())

    def test_closing_audit_counts(self, db_session, ledger):
        branch_id = uuid4()
        for counted in ("100.00", "110.00", "95.00"):
            register = ledger.open(branch_id, "100.00")
            ledger.close(register, counted)
        ledger.open(branch_id, "1.00")

        audit = CashRegisterReportService(db_session, [branch_id]).get_closing_audit()

        assert audit["total_closures"] == 3
        assert audit["matched_count"] == 1
        assert audit["surplus_count"] == 1
        assert audit["shortfall_count"] == 1
        assert audit["total_surplus"] == Decimal("10.00")
        assert audit["total_shortfall"] == Decimal("5.00")
        assert audit["total_absolute_difference"] == Decimal("15.00")
        assert audit["accuracy_rate"] == Decimal("33.33")

    def test_closing_audit_without_closures(self, db_session):
        audit = CashRegisterReportService(db_session, [uuid4()]).get_closing_audit()

        assert audit["total_closures"] == 0
        assert audit["accuracy_rate"] == Decimal("0.00")


class TestReportEndpoints:
    """HTTP tests for the report endpoints"""

    def test_multiple_branches_endpoint(self, client, ledger):
        branch_id = uuid4()
        register = ledger.open(branch_id, "40.00")
        ledger.add(register, "Depósito", "10.00")

        response = client.get(
            f"{API}/reports/cash-registers/multiple-branches",
            params={"branch_ids": str(branch_id)}
        )

        assert response.status_code == 200
        assert Decimal(response.json()["total_balance"]) == Decimal("50.00")

    def test_invalid_period(self, client):
        response = client.get(
            f"{API}/reports/cash-registers/closing-audit",
            params={"from_date": "2024-02-01", "to_date": "2024-01-01"}
        )
        assert response.status_code == 422

    def test_closing_endpoint(self, client, ledger):
        register = ledger.open(uuid4(), "10.00")
        ledger.close(register, "9.00")

        response = client.get(f"{API}/reports/cash-registers/{register.id}/closing")

        assert response.status_code == 200
        body = response.json()
        assert body["state"]["status"] == "closed"
        assert body["reconciliation"]["status"] == "shortfall"
