"""
Tests para el catálogo de caja (tipos de movimiento y medios de pago)
"""

import pytest

from app.common.exceptions import NotFoundError, ValidationError
from app.modules.catalog.models import MovementOrigin, OperationType
from app.modules.catalog.seed_data import (
    MOVEMENT_TYPES, PAYMENT_METHODS, SALE_MOVEMENT_TYPE, seed_catalog
)
from app.modules.catalog.service import CatalogService


API = "/api/v1"


class TestSeedCatalog:
    """Tests de la carga del catálogo"""

    def test_seed_is_idempotent(self, db_session):
        created = seed_catalog(db_session)

        assert created == {"movement_types": 0, "payment_methods": 0}
        service = CatalogService(db_session)
        assert len(service.list_movement_types(active_only=False)) == len(MOVEMENT_TYPES)
        assert len(service.list_payment_methods(active_only=False)) == len(PAYMENT_METHODS)

    def test_single_cash_payment_method(self, db_session):
        cash = CatalogService(db_session).get_cash_payment_method()

        assert cash.name == "Efectivo"
        assert cash.is_cash is True


class TestCatalogService:
    """Tests de consultas del catálogo"""

    def test_filter_by_origin(self, db_session):
        service = CatalogService(db_session)

        manual = service.list_movement_types(origin=MovementOrigin.MANUAL, cash_only=True)
        automatic = service.list_movement_types(origin=MovementOrigin.AUTOMATIC)

        assert "Depósito" in {mt.name for mt in manual}
        assert SALE_MOVEMENT_TYPE not in {mt.name for mt in manual}
        assert SALE_MOVEMENT_TYPE in {mt.name for mt in automatic}

    def test_cash_only_excludes_current_account_types(self, db_session):
        names = {mt.name for mt in CatalogService(db_session).list_movement_types(cash_only=True)}

        assert "Ajuste a favor" not in names
        assert "Interés aplicado" not in names

    def test_operation_type_direction(self, movement_types):
        assert movement_types["Venta"].operation_type == OperationType.ENTRADA
        assert movement_types["Venta"].is_income
        assert movement_types["Retiro de efectivo"].operation_type == OperationType.SALIDA

    def test_missing_entries(self, db_session):
        service = CatalogService(db_session)

        with pytest.raises(NotFoundError):
            service.get_movement_type(9999)
        with pytest.raises(NotFoundError):
            service.get_payment_method(9999)
        with pytest.raises(ValidationError):
            service.require_active_movement_type(9999)
        with pytest.raises(ValidationError):
            service.require_payment_method(9999)

    def test_inactive_payment_method_rejected(self, db_session, payment_methods):
        cheque = payment_methods["Cheque"]
        cheque.is_active = False
        db_session.commit()

        with pytest.raises(ValidationError):
            CatalogService(db_session).require_payment_method(cheque.id)


class TestCatalogEndpoints:
    """Tests HTTP del catálogo"""

    def test_list_manual_movement_types(self, client):
        response = client.get(f"{API}/movement-types", params={"origin": "manual", "cash_only": True})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == len(body["movement_types"])
        assert all(mt["origin"] == "manual" for mt in body["movement_types"])

    def test_get_movement_type_not_found(self, client):
        assert client.get(f"{API}/movement-types/9999").status_code == 404

    def test_list_payment_methods(self, client):
        response = client.get(f"{API}/payment-methods")

        assert response.status_code == 200
        assert "Efectivo" in {pm["name"] for pm in response.json()["payment_methods"]}
