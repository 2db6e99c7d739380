"""
Tests para el motor de caja

Cubren:
- Cálculo de saldos (puro) y arqueo
- Agregación multi-sucursal
- Apertura/cierre de cajas y la regla de una caja abierta por sucursal
- Registro, consulta y eliminación auditada de movimientos
- Endpoints HTTP con el header del operador
"""

import pytest
from decimal import Decimal
from datetime import date, datetime
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from app.common.exceptions import (
    ConflictError, InvalidStateError, NotFoundError, ValidationError
)
from app.modules.catalog.models import OperationType
from app.modules.cash.aggregator import aggregate_sessions
from app.modules.cash.balance import LedgerEntry, SessionBalance, calculate_balance
from app.modules.cash.models import CashMovementAudit, CashRegisterStatus
from app.modules.cash.reconciliation import ReconciliationStatus, reconcile
from app.modules.cash.schemas import (
    CashRegisterOpen, CashRegisterClose, CashMovementCreate, OpenSession, ClosedSession
)
from app.modules.cash.services import CashRegisterService, CashMovementService


API = "/api/v1"


# ===== HELPERS =====

def entrada(amount, method="Efectivo", is_cash=True, **kwargs):
    return LedgerEntry(Decimal(amount), OperationType.ENTRADA, method, is_cash, **kwargs)


def salida(amount, method="Efectivo", is_cash=True, **kwargs):
    return LedgerEntry(Decimal(amount), OperationType.SALIDA, method, is_cash, **kwargs)


def open_register(db, branch_id=None, initial_amount="1000.00", user_id=None):
    return CashRegisterService(db).open_cash_register(
        CashRegisterOpen(branch_id=branch_id or uuid4(), initial_amount=Decimal(initial_amount)),
        user_id=user_id or uuid4()
    )


def record(db, register, movement_type, payment_method, amount, **kwargs):
    description = kwargs.pop("description", f"{movement_type.name} {amount}")
    return CashMovementService(db).create_movement(
        CashMovementCreate(
            cash_register_id=register.id,
            movement_type_id=movement_type.id,
            payment_method_id=payment_method.id,
            amount=Decimal(amount),
            description=description,
            **kwargs
        ),
        user_id=uuid4()
    )


def close_register(db, register, counted_cash):
    return CashRegisterService(db).close_cash_register(
        register.id, CashRegisterClose(counted_cash=Decimal(counted_cash)), user_id=uuid4()
    )


# ===== FIXTURES =====

@pytest.fixture
def cash(payment_methods):
    return payment_methods["Efectivo"]


@pytest.fixture
def card(payment_methods):
    return payment_methods["Tarjeta de débito"]


@pytest.fixture
def deposit(movement_types):
    return movement_types["Depósito"]


@pytest.fixture
def expense(movement_types):
    return movement_types["Gasto operativo"]


@pytest.fixture
def sale_type(movement_types):
    return movement_types["Venta"]


# ===== CÁLCULO DE SALDOS =====

class TestBalanceCalculator:
    """Tests del cálculo puro de saldos"""

    def test_scenario_initial_plus_income_minus_expense(self):
        summary = calculate_balance("1000.00", [entrada("500.00"), salida("200.00")], "Efectivo")

        assert summary.expected_cash_balance == Decimal("1300.00")
        assert summary.total_income == Decimal("500.00")
        assert summary.total_expense == Decimal("200.00")
        assert summary.movement_count == 2

    def test_no_movements_returns_initial_amount(self):
        summary = calculate_balance(Decimal("250.00"), [], "Efectivo")

        assert summary.expected_cash_balance == Decimal("250.00")
        assert summary.as_dict()["Efectivo"]["net"] == Decimal("250.00")

    def test_non_cash_methods_do_not_change_expected_cash(self):
        entries = [
            entrada("100.00"),
            entrada("300.00", method="Tarjeta de débito", is_cash=False),
            salida("50.00", method="Transferencia", is_cash=False),
        ]
        summary = calculate_balance("0", entries, "Efectivo")

        assert summary.expected_cash_balance == Decimal("100.00")
        assert summary.method_net("Tarjeta de débito") == Decimal("300.00")
        assert summary.method_net("Transferencia") == Decimal("-50.00")
        assert summary.total_income == Decimal("400.00")

    def test_entries_not_affecting_balance_are_ignored_but_counted(self):
        entries = [entrada("100.00"), entrada("999.00", affects_balance=False)]
        summary = calculate_balance("0", entries, "Efectivo")

        assert summary.expected_cash_balance == Decimal("100.00")
        assert summary.movement_count == 2

    def test_non_cash_movement_types_are_ignored(self):
        summary = calculate_balance("10.00", [entrada("40.00", is_cash_movement=False)], "Efectivo")

        assert summary.expected_cash_balance == Decimal("10.00")

    def test_negative_expected_balance_is_preserved(self):
        summary = calculate_balance("0.00", [salida("150.00")], "Efectivo")

        assert summary.expected_cash_balance == Decimal("-150.00")

    def test_cash_flagged_method_uses_cash_bucket(self):
        summary = calculate_balance("0", [entrada("20.00", method="Caja chica", is_cash=True)], "Efectivo")

        assert summary.expected_cash_balance == Decimal("20.00")
        assert "Caja chica" not in summary.payment_method_totals

    def test_order_does_not_matter(self):
        entries = [entrada("10.10"), salida("3.05"), entrada("0.95")]
        forward = calculate_balance("5", entries, "Efectivo")
        backward = calculate_balance("5", list(reversed(entries)), "Efectivo")

        assert forward.expected_cash_balance == backward.expected_cash_balance == Decimal("13.00")


# ===== ARQUEO =====

class TestReconciliation:
    """Tests de la clasificación del arqueo"""

    def test_exact_count_is_matched(self):
        result = reconcile(Decimal("1300.00"), Decimal("1300.00"))

        assert result.status == ReconciliationStatus.MATCHED
        assert result.difference == Decimal("0.00")

    def test_negative_expected_compares_against_magnitude(self):
        result = reconcile(Decimal("-150.00"), Decimal("150.00"))

        assert result.difference == Decimal("0.00")
        assert result.status == ReconciliationStatus.MATCHED

    def test_surplus_and_shortfall(self):
        assert reconcile("100.00", "120.00").status == ReconciliationStatus.SURPLUS
        shortfall = reconcile("100.00", "75.50")
        assert shortfall.status == ReconciliationStatus.SHORTFALL
        assert shortfall.difference == Decimal("-24.50")

    def test_one_cent_difference_is_not_matched(self):
        assert reconcile("100.00", "100.01").status == ReconciliationStatus.SURPLUS
        assert reconcile("100.00", "99.99").status == ReconciliationStatus.SHORTFALL

    def test_custom_epsilon(self):
        result = reconcile("100.00", "100.03", epsilon=Decimal("0.05"))

        assert result.is_matched

    def test_counted_cash_required_and_non_negative(self):
        with pytest.raises(ValidationError):
            reconcile("100.00", None)
        with pytest.raises(ValidationError):
            reconcile("100.00", "-1.00")

    def test_is_deterministic(self):
        assert reconcile("42.10", "40.00") == reconcile("42.10", "40.00")


# ===== AGREGADOR =====

class TestAggregator:
    """Tests de la consolidación multi-sucursal"""

    def _session(self, branch_id, initial, entries, is_open=True):
        return SessionBalance(
            session_id=uuid4(),
            branch_id=branch_id,
            is_open=is_open,
            summary=calculate_balance(initial, entries, "Efectivo")
        )

    def test_two_branches_totals(self):
        branch_a, branch_b = uuid4(), uuid4()
        sessions = [
            self._session(branch_a, "100.00", [entrada("300.00"), entrada("200.00"), salida("100.00")]),
            self._session(branch_b, "0.00", [entrada("300.00")], is_open=False),
        ]

        fleet = aggregate_sessions(sessions, [branch_a, branch_b])

        assert fleet.total_balance == Decimal("800.00")
        assert fleet.movement_count == 4
        assert fleet.total_income == Decimal("800.00")
        assert fleet.total_expenses == Decimal("100.00")
        assert fleet.net == Decimal("700.00")
        assert fleet.open_sessions == 1
        assert fleet.closed_sessions == 1

    def test_requested_branch_without_sessions_reports_zero(self):
        branch_a, empty_branch = uuid4(), uuid4()
        fleet = aggregate_sessions(
            [self._session(branch_a, "50.00", [])], [branch_a, empty_branch]
        )

        empty = next(b for b in fleet.branches if b.branch_id == empty_branch)
        assert empty.balance == Decimal("0.00")
        assert empty.session_count == 0
        assert fleet.total_balance == Decimal("50.00")

    def test_sessions_outside_requested_branches_are_ignored(self):
        branch_a = uuid4()
        sessions = [
            self._session(branch_a, "10.00", []),
            self._session(uuid4(), "999.00", [entrada("1.00")]),
        ]

        fleet = aggregate_sessions(sessions, [branch_a])

        assert fleet.total_balance == Decimal("10.00")
        assert fleet.movement_count == 0
        assert len(fleet.branches) == 1

    def test_session_counted_once(self):
        session = self._session(uuid4(), "10.00", [entrada("5.00")])

        fleet = aggregate_sessions([session, session])

        assert fleet.total_balance == Decimal("15.00")
        assert fleet.movement_count == 1


# ===== APERTURA / CIERRE =====

class TestOpenCashRegister:
    """Tests de apertura de caja"""

    def test_open_register(self, db_session):
        branch_id = uuid4()
        register = open_register(db_session, branch_id, "1000.00")

        assert register.status == CashRegisterStatus.OPEN
        assert register.initial_amount == Decimal("1000.00")
        assert register.final_amount is None
        assert register.closed_at is None
        assert CashRegisterService(db_session).get_current_cash_register(branch_id).id == register.id

    def test_second_open_on_same_branch_conflicts(self, db_session):
        branch_id = uuid4()
        open_register(db_session, branch_id)

        with pytest.raises(ConflictError):
            open_register(db_session, branch_id)

    def test_open_after_close_is_allowed(self, db_session):
        branch_id = uuid4()
        first = open_register(db_session, branch_id, "100.00")
        close_register(db_session, first, "100.00")

        second = open_register(db_session, branch_id, "100.00")

        assert second.id != first.id
        assert second.is_open

    def test_other_branches_are_independent(self, db_session):
        open_register(db_session, uuid4())
        assert open_register(db_session, uuid4()).is_open

    def test_unique_index_conflict_maps_to_conflict_error(self, db_session, monkeypatch):
        branch_id = uuid4()
        open_register(db_session, branch_id)
        monkeypatch.setattr(
            CashRegisterService, "get_current_cash_register", lambda self, branch_id: None
        )

        with pytest.raises(ConflictError):
            open_register(db_session, branch_id)

    def test_negative_initial_amount_rejected(self, db_session):
        with pytest.raises(PydanticValidationError):
            CashRegisterOpen(branch_id=uuid4(), initial_amount=Decimal("-1.00"))

        unchecked = CashRegisterOpen.model_construct(
            branch_id=uuid4(), initial_amount=Decimal("-1.00"), opening_notes=None
        )
        with pytest.raises(ValidationError):
            CashRegisterService(db_session).open_cash_register(unchecked, user_id=uuid4())


class TestCloseCashRegister:
    """Tests de cierre de caja con arqueo"""

    def test_close_matched(self, db_session, deposit, expense, cash):
        register = open_register(db_session, initial_amount="1000.00")
        record(db_session, register, deposit, cash, "500.00")
        record(db_session, register, expense, cash, "200.00")

        result = close_register(db_session, register, "1300.00")

        assert result["reconciliation"]["expected"] == Decimal("1300.00")
        assert result["reconciliation"]["difference"] == Decimal("0.00")
        assert result["reconciliation"]["status"] == "matched"
        closed = result["cash_register"]
        assert closed.status.value == "closed"
        assert closed.final_amount == Decimal("1300.00")
        assert closed.closed_at is not None

    def test_close_with_shortfall(self, db_session, deposit, cash):
        register = open_register(db_session, initial_amount="100.00")
        record(db_session, register, deposit, cash, "50.00")

        result = close_register(db_session, register, "140.00")

        assert result["reconciliation"]["status"] == "shortfall"
        assert result["reconciliation"]["difference"] == Decimal("-10.00")

    def test_card_payments_do_not_change_expected_cash(self, db_session, sale_type, cash, card):
        register = open_register(db_session, initial_amount="0.00")
        record(db_session, register, sale_type, cash, "80.00", sale_id=uuid4())
        record(db_session, register, sale_type, card, "120.00", sale_id=uuid4())

        result = close_register(db_session, register, "80.00")

        assert result["reconciliation"]["status"] == "matched"
        totals = {t["payment_method"]: t for t in result["payment_method_totals"]}
        assert totals["Tarjeta de débito"]["net"] == Decimal("120.00")
        assert totals["Efectivo"]["net"] == Decimal("80.00")

    def test_close_twice_fails(self, db_session):
        register = open_register(db_session, initial_amount="10.00")
        close_register(db_session, register, "10.00")

        with pytest.raises(InvalidStateError):
            close_register(db_session, register, "10.00")

    def test_close_unknown_register(self, db_session):
        with pytest.raises(NotFoundError):
            CashRegisterService(db_session).close_cash_register(
                uuid4(), CashRegisterClose(counted_cash=Decimal("1.00")), user_id=uuid4()
            )

    def test_state_is_checked_before_missing_count(self, db_session):
        missing_count = CashRegisterClose.model_construct(counted_cash=None, closing_notes=None)
        service = CashRegisterService(db_session)

        with pytest.raises(NotFoundError):
            service.close_cash_register(uuid4(), missing_count, user_id=uuid4())

        register = open_register(db_session, initial_amount="10.00")
        close_register(db_session, register, "10.00")
        with pytest.raises(InvalidStateError):
            service.close_cash_register(register.id, missing_count, user_id=uuid4())

        other = open_register(db_session, initial_amount="10.00")
        with pytest.raises(ValidationError):
            service.close_cash_register(other.id, missing_count, user_id=uuid4())

    def test_counted_cash_is_required(self):
        with pytest.raises(PydanticValidationError):
            CashRegisterClose()


class TestCashRegisterQueries:
    """Tests de consultas de cajas"""

    def test_current_is_none_after_close(self, db_session):
        branch_id = uuid4()
        register = open_register(db_session, branch_id, "10.00")
        close_register(db_session, register, "10.00")

        assert CashRegisterService(db_session).get_current_cash_register(branch_id) is None

    def test_last_closure(self, db_session):
        branch_id = uuid4()
        service = CashRegisterService(db_session)
        assert service.get_last_closure(branch_id)["has_previous_closure"] is False

        register = open_register(db_session, branch_id, "10.00")
        close_register(db_session, register, "12.50")

        last = service.get_last_closure(branch_id)
        assert last["has_previous_closure"] is True
        assert last["last_closure_amount"] == Decimal("12.50")

    def test_branches_status(self, db_session):
        open_branch, closed_branch = uuid4(), uuid4()
        open_register(db_session, open_branch)

        status = CashRegisterService(db_session).get_branches_status([open_branch, closed_branch])

        assert status["open_count"] == 1
        assert status["closed_branches"] == [closed_branch]
        assert status["mixed_status"] is True
        assert status["all_open"] is False
        assert status["all_closed"] is False

    def test_history_filters_by_branch_and_status(self, db_session):
        branch_id = uuid4()
        first = open_register(db_session, branch_id, "10.00")
        close_register(db_session, first, "10.00")
        open_register(db_session, branch_id, "20.00")
        open_register(db_session, uuid4(), "30.00")

        service = CashRegisterService(db_session)
        history = service.get_cash_registers(branch_id=branch_id)
        closed = service.get_cash_registers(branch_id=branch_id, status=CashRegisterStatus.CLOSED)

        assert history["total"] == 2
        assert history["cash_registers"][0].initial_amount == Decimal("20.00")
        assert closed["total"] == 1

    def test_state_variant(self, db_session):
        register = open_register(db_session, initial_amount="10.00")
        service = CashRegisterService(db_session)

        assert isinstance(service.to_state(register), OpenSession)

        close_register(db_session, register, "11.00")
        state = service.to_state(service.get_cash_register(register.id))
        assert isinstance(state, ClosedSession)
        assert state.final_amount == Decimal("11.00")
        assert state.difference == Decimal("1.00")

    def test_report_is_recomputed_and_idempotent(self, db_session, deposit, cash):
        register = open_register(db_session, initial_amount="10.00")
        record(db_session, register, deposit, cash, "5.00")
        close_register(db_session, register, "14.00")
        service = CashRegisterService(db_session)

        first = service.get_cash_register_report(register.id)
        second = service.get_cash_register_report(register.id)

        assert first["expected_cash_balance"] == Decimal("15.00")
        assert first["reconciliation"] == second["reconciliation"]
        assert first["reconciliation"]["status"] == "shortfall"


# ===== MOVIMIENTOS =====

class TestCashMovements:
    """Tests de registro y eliminación de movimientos"""

    def test_record_on_closed_register_fails(self, db_session, deposit, cash):
        register = open_register(db_session, initial_amount="10.00")
        close_register(db_session, register, "10.00")

        with pytest.raises(InvalidStateError):
            record(db_session, register, deposit, cash, "5.00")

    def test_record_on_unknown_register(self, db_session, deposit, cash):
        with pytest.raises(NotFoundError):
            CashMovementService(db_session).create_movement(
                CashMovementCreate(
                    cash_register_id=uuid4(), movement_type_id=deposit.id,
                    payment_method_id=cash.id, amount=Decimal("1.00"), description="x"
                ),
                user_id=uuid4()
            )

    def test_amount_is_parsed_but_not_bounded_by_schema(self):
        movement = CashMovementCreate(
            cash_register_id=uuid4(), movement_type_id=1, payment_method_id=1,
            amount="0", description="cero"
        )
        assert movement.amount == Decimal("0.00")

        with pytest.raises(PydanticValidationError):
            CashMovementCreate(
                cash_register_id=uuid4(), movement_type_id=1, payment_method_id=1,
                amount="abc", description="texto"
            )

    def test_amount_must_be_positive(self, db_session, deposit, cash):
        register = open_register(db_session)

        with pytest.raises(ValidationError):
            record(db_session, register, deposit, cash, "0.00")
        with pytest.raises(ValidationError):
            record(db_session, register, deposit, cash, "-5.00")

    def test_closed_register_wins_over_invalid_amount(self, db_session, deposit, cash):
        register = open_register(db_session, initial_amount="10.00")
        close_register(db_session, register, "10.00")

        with pytest.raises(InvalidStateError):
            record(db_session, register, deposit, cash, "0.00")
        with pytest.raises(InvalidStateError):
            record(db_session, register, deposit, cash, "-5.00")

    def test_record_sale_without_open_register_ignores_amount(self, db_session, cash):
        with pytest.raises(InvalidStateError):
            CashMovementService(db_session).record_sale(
                uuid4(), uuid4(), Decimal("0"), cash.id, user_id=uuid4()
            )

    def test_sale_and_purchase_reference_are_exclusive(self):
        with pytest.raises(PydanticValidationError):
            CashMovementCreate(
                cash_register_id=uuid4(), movement_type_id=1, payment_method_id=1,
                amount=Decimal("1.00"), description="ambos",
                sale_id=uuid4(), purchase_order_id=uuid4()
            )

    def test_inactive_movement_type_rejected(self, db_session, deposit, cash):
        register = open_register(db_session)
        deposit.active = False
        db_session.commit()

        with pytest.raises(ValidationError):
            record(db_session, register, deposit, cash, "5.00")

    def test_current_account_only_type_rejected(self, db_session, movement_types, cash):
        register = open_register(db_session)

        with pytest.raises(ValidationError):
            record(db_session, register, movement_types["Ajuste a favor"], cash, "5.00")

    def test_unknown_payment_method_rejected(self, db_session, deposit):
        register = open_register(db_session)

        with pytest.raises(ValidationError):
            CashMovementService(db_session).create_movement(
                CashMovementCreate(
                    cash_register_id=register.id, movement_type_id=deposit.id,
                    payment_method_id=9999, amount=Decimal("1.00"), description="x"
                ),
                user_id=uuid4()
            )

    def test_record_sale_uses_open_register(self, db_session, cash):
        branch_id = uuid4()
        register = open_register(db_session, branch_id, "0.00")
        sale_id = uuid4()

        movement = CashMovementService(db_session).record_sale(
            branch_id, sale_id, Decimal("35.00"), cash.id, user_id=uuid4()
        )

        assert movement.cash_register_id == register.id
        assert movement.sale_id == sale_id
        assert movement.movement_type_name == "Venta"
        assert movement.is_automatic

    def test_record_purchase_is_an_expense(self, db_session, cash):
        branch_id = uuid4()
        register = open_register(db_session, branch_id, "100.00")

        CashMovementService(db_session).record_purchase(
            branch_id, uuid4(), Decimal("40.00"), cash.id, user_id=uuid4()
        )

        report = CashRegisterService(db_session).get_cash_register_report(register.id)
        assert report["expected_cash_balance"] == Decimal("60.00")

    def test_record_sale_without_open_register(self, db_session, cash):
        with pytest.raises(InvalidStateError):
            CashMovementService(db_session).record_sale(
                uuid4(), uuid4(), Decimal("1.00"), cash.id, user_id=uuid4()
            )

    def test_informational_movement_does_not_change_balance(self, db_session, deposit, cash):
        register = open_register(db_session, initial_amount="10.00")
        record(db_session, register, deposit, cash, "90.00", affects_balance=False)

        report = CashRegisterService(db_session).get_cash_register_report(register.id)
        assert report["expected_cash_balance"] == Decimal("10.00")
        assert report["movement_count"] == 1

    def test_list_movements_with_filters(self, db_session, deposit, expense, cash, card):
        register = open_register(db_session)
        record(db_session, register, deposit, cash, "5.00", description="Cambio inicial")
        record(db_session, register, expense, cash, "3.00", description="Limpieza")
        record(db_session, register, deposit, card, "7.00", description="Depósito tarjeta")
        service = CashMovementService(db_session)

        assert service.get_movements(cash_register_id=register.id)["total"] == 3
        assert service.get_movements(movement_type_id=deposit.id)["total"] == 2
        assert service.get_movements(payment_method_id=card.id)["total"] == 1
        assert service.get_movements(q="limpieza")["total"] == 1
        assert service.get_movements(branch_ids=[register.branch_id])["total"] == 3
        assert service.get_movements(branch_ids=[uuid4()])["total"] == 0

    def _dated(self, db_session, movement, when):
        movement.created_at = when
        db_session.commit()
        return movement

    def test_list_movements_by_period_and_direction(self, db_session, deposit, expense, cash):
        register = open_register(db_session)
        self._dated(db_session, record(db_session, register, deposit, cash, "500.00"), datetime(2024, 1, 10, 9))
        self._dated(db_session, record(db_session, register, expense, cash, "200.00"), datetime(2024, 1, 15, 23, 59))
        self._dated(db_session, record(db_session, register, deposit, cash, "40.00"), datetime(2024, 1, 20, 8))
        service = CashMovementService(db_session)

        january_first_half = service.get_movements(from_date=date(2024, 1, 1), to_date=date(2024, 1, 15))
        exits = service.get_movements(operation_type=OperationType.SALIDA)
        late_entries = service.get_movements(
            branch_ids=[register.branch_id], from_date=date(2024, 1, 16),
            operation_type=OperationType.ENTRADA
        )

        assert january_first_half["total"] == 2
        assert exits["total"] == 1
        assert exits["movements"][0].amount == Decimal("200.00")
        assert late_entries["total"] == 1
        assert late_entries["movements"][0].amount == Decimal("40.00")

    def test_movements_summary_for_branch_and_period(self, db_session, deposit, expense, cash, card):
        register = open_register(db_session, initial_amount="1000.00")
        other_branch = open_register(db_session, initial_amount="50.00")
        self._dated(db_session, record(db_session, register, deposit, cash, "500.00"), datetime(2024, 1, 10, 9))
        self._dated(db_session, record(db_session, register, expense, cash, "200.00"), datetime(2024, 1, 10, 12))
        self._dated(db_session, record(db_session, register, deposit, card, "70.00"), datetime(2024, 1, 11, 12))
        self._dated(db_session, record(db_session, register, deposit, cash, "40.00"), datetime(2024, 1, 20, 8))
        self._dated(db_session, record(db_session, other_branch, deposit, cash, "9.00"), datetime(2024, 1, 10, 9))
        service = CashMovementService(db_session)

        summary = service.get_movements_summary(
            branch_ids=[register.branch_id], from_date=date(2024, 1, 1), to_date=date(2024, 1, 15)
        )

        assert summary["movement_count"] == 3
        assert summary["total_income"] == Decimal("570.00")
        assert summary["total_expense"] == Decimal("200.00")
        assert summary["net"] == Decimal("370.00")
        assert summary["cash_net"] == Decimal("300.00")
        totals = {t["payment_method"]: t for t in summary["payment_method_totals"]}
        assert totals["Efectivo"]["net"] == Decimal("300.00")
        assert totals["Tarjeta de débito"]["net"] == Decimal("70.00")

        exits = service.get_movements_summary(
            branch_ids=[register.branch_id], operation_type=OperationType.SALIDA
        )
        assert exits["movement_count"] == 1
        assert exits["total_income"] == Decimal("0.00")
        assert exits["cash_net"] == Decimal("-200.00")

    def test_delete_from_closed_register_recomputes_report(self, db_session, deposit, cash):
        register = open_register(db_session, initial_amount="1000.00")
        movement = record(db_session, register, deposit, cash, "500.00")
        close_register(db_session, register, "1500.00")
        service = CashRegisterService(db_session)
        assert service.get_cash_register_report(register.id)["reconciliation"]["status"] == "matched"

        performer = uuid4()
        audit = CashMovementService(db_session).delete_movement(movement.id, performer, reason="Duplicado")

        report = service.get_cash_register_report(register.id)
        assert report["expected_cash_balance"] == Decimal("1000.00")
        assert report["reconciliation"]["status"] == "surplus"
        assert report["reconciliation"]["difference"] == Decimal("500.00")
        assert audit.register_status == "closed"
        assert audit.performed_by == performer
        assert audit.snapshot["amount"] == "500.00"
        assert db_session.query(CashMovementAudit).count() == 1

    def test_delete_locks_owning_register(self, db_session, deposit, cash, monkeypatch):
        register = open_register(db_session)
        movement = record(db_session, register, deposit, cash, "5.00")
        locked = []
        original = CashRegisterService.lock_register

        def tracking_lock(service, register_id):
            locked.append(register_id)
            return original(service, register_id)

        monkeypatch.setattr(CashRegisterService, "lock_register", tracking_lock)
        CashMovementService(db_session).delete_movement(movement.id, uuid4())

        assert locked == [register.id]

    def test_delete_unknown_movement(self, db_session):
        with pytest.raises(NotFoundError):
            CashMovementService(db_session).delete_movement(uuid4(), uuid4())


# ===== ENDPOINTS =====

class TestCashRegisterEndpoints:
    """Tests HTTP de cajas y movimientos"""

    def _open(self, client, headers, branch_id, amount="1000.00"):
        return client.post(
            f"{API}/cash-registers/open",
            json={"branch_id": str(branch_id), "initial_amount": amount},
            headers=headers
        )

    def _movement(self, client, headers, register_id, movement_type, payment_method, amount):
        return client.post(
            f"{API}/cash-movements/",
            json={
                "cash_register_id": register_id,
                "movement_type_id": movement_type.id,
                "payment_method_id": payment_method.id,
                "amount": amount,
                "description": movement_type.name
            },
            headers=headers
        )

    def test_full_session_flow(self, client, operator_headers, deposit, expense, cash):
        branch_id = uuid4()
        response = self._open(client, operator_headers, branch_id)
        assert response.status_code == 201
        register_id = response.json()["id"]

        assert self._movement(client, operator_headers, register_id, deposit, cash, "500.00").status_code == 201
        assert self._movement(client, operator_headers, register_id, expense, cash, "200.00").status_code == 201

        detail = client.get(f"{API}/cash-registers/{register_id}")
        assert detail.status_code == 200
        assert Decimal(detail.json()["expected_cash_balance"]) == Decimal("1300.00")
        assert detail.json()["state"]["status"] == "open"

        closed = client.post(
            f"{API}/cash-registers/{register_id}/close",
            json={"counted_cash": "1300.00"},
            headers=operator_headers
        )
        assert closed.status_code == 200
        assert closed.json()["reconciliation"]["status"] == "matched"

        late = self._movement(client, operator_headers, register_id, deposit, cash, "1.00")
        assert late.status_code == 409

        current = client.get(f"{API}/cash-registers/current", params={"branch_id": str(branch_id)})
        assert current.status_code == 404

        last = client.get(f"{API}/cash-registers/last-closure", params={"branch_id": str(branch_id)})
        assert Decimal(last.json()["last_closure_amount"]) == Decimal("1300.00")

    def test_duplicate_open_returns_conflict(self, client, operator_headers):
        branch_id = uuid4()
        assert self._open(client, operator_headers, branch_id).status_code == 201
        assert self._open(client, operator_headers, branch_id).status_code == 409

    def test_operator_header_required(self, client):
        response = self._open(client, {}, uuid4())
        assert response.status_code == 401

    def test_negative_initial_amount(self, client, operator_headers):
        assert self._open(client, operator_headers, uuid4(), "-5.00").status_code == 422

    def test_close_requires_counted_cash(self, client, operator_headers):
        register_id = self._open(client, operator_headers, uuid4()).json()["id"]

        response = client.post(f"{API}/cash-registers/{register_id}/close", json={}, headers=operator_headers)
        assert response.status_code == 422

    def test_delete_movement_requires_privileged_role(self, client, operator_headers, admin_headers, deposit, cash):
        register_id = self._open(client, operator_headers, uuid4()).json()["id"]
        movement_id = self._movement(client, operator_headers, register_id, deposit, cash, "5.00").json()["id"]

        forbidden = client.delete(f"{API}/cash-movements/{movement_id}", headers=operator_headers)
        assert forbidden.status_code == 403

        deleted = client.request(
            "DELETE", f"{API}/cash-movements/{movement_id}",
            json={"reason": "Carga duplicada"}, headers=admin_headers
        )
        assert deleted.status_code == 200
        assert deleted.json()["reason"] == "Carga duplicada"

        audit = client.get(f"{API}/cash-registers/{register_id}/audit")
        assert len(audit.json()) == 1

    def test_branches_status_endpoint(self, client, operator_headers):
        open_branch, idle_branch = uuid4(), uuid4()
        self._open(client, operator_headers, open_branch)

        response = client.get(
            f"{API}/cash-registers/branches-status",
            params=[("branch_ids", str(open_branch)), ("branch_ids", str(idle_branch))]
        )
        body = response.json()
        assert response.status_code == 200
        assert body["open_count"] == 1
        assert body["closed_branches"] == [str(idle_branch)]

    def test_list_movements_endpoint(self, client, operator_headers, deposit, cash):
        register_id = self._open(client, operator_headers, uuid4()).json()["id"]
        self._movement(client, operator_headers, register_id, deposit, cash, "5.00")

        response = client.get(f"{API}/cash-movements/", params={"cash_register_id": register_id})
        body = response.json()
        assert body["total"] == 1
        assert body["movements"][0]["movement_type_name"] == "Depósito"
        assert body["movements"][0]["operation_type"] == "entrada"

    def test_zero_amount_on_closed_register_returns_conflict(self, client, operator_headers, deposit, cash):
        register_id = self._open(client, operator_headers, uuid4(), "10.00").json()["id"]
        client.post(
            f"{API}/cash-registers/{register_id}/close",
            json={"counted_cash": "10.00"},
            headers=operator_headers
        )

        response = self._movement(client, operator_headers, register_id, deposit, cash, "0")
        assert response.status_code == 409

    def test_zero_amount_on_open_register_is_rejected(self, client, operator_headers, deposit, cash):
        register_id = self._open(client, operator_headers, uuid4()).json()["id"]

        response = self._movement(client, operator_headers, register_id, deposit, cash, "0")
        assert response.status_code == 422

    def test_movements_summary_endpoint(self, client, operator_headers, deposit, expense, cash):
        branch_id = uuid4()
        register_id = self._open(client, operator_headers, branch_id).json()["id"]
        self._movement(client, operator_headers, register_id, deposit, cash, "500.00")
        self._movement(client, operator_headers, register_id, expense, cash, "200.00")

        response = client.get(
            f"{API}/cash-movements/summary",
            params={"branch_ids": str(branch_id), "operation_type": "entrada"}
        )
        body = response.json()
        assert response.status_code == 200
        assert body["movement_count"] == 1
        assert Decimal(body["total_income"]) == Decimal("500.00")
        assert Decimal(body["cash_net"]) == Decimal("500.00")

        history = client.get(
            f"{API}/cash-movements/",
            params={"branch_ids": str(branch_id), "operation_type": "salida"}
        )
        assert history.json()["total"] == 1

    def test_movement_period_must_be_ordered(self, client):
        response = client.get(
            f"{API}/cash-movements/",
            params={"from_date": "2024-02-01", "to_date": "2024-01-01"}
        )
        assert response.status_code == 422
