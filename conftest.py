"""
Fixtures compartidas de pytest.

La base de tests es SQLite en memoria (StaticPool: una sola conexión
compartida). Cada test recrea el esquema y carga el catálogo estándar.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEBUG"] = "false"

import pytest
from uuid import uuid4
from fastapi.testclient import TestClient

from app.database.database import Base, SessionLocal, sync_engine, get_db
from app.main import app
from app.modules.catalog.models import MovementType, PaymentMethod
from app.modules.catalog.seed_data import seed_catalog


@pytest.fixture
def db_session():
    """Sesión sobre un esquema limpio con el catálogo cargado"""
    Base.metadata.drop_all(bind=sync_engine)
    Base.metadata.create_all(bind=sync_engine)
    session = SessionLocal()
    seed_catalog(session)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """TestClient que usa la misma sesión que el test"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def operator_id():
    return uuid4()


@pytest.fixture
def operator_headers(operator_id):
    """Headers de un cajero"""
    return {"X-User-ID": str(operator_id), "X-User-Role": "cashier"}


@pytest.fixture
def admin_headers():
    """Headers de un supervisor habilitado para borrar movimientos"""
    return {"X-User-ID": str(uuid4()), "X-User-Role": "admin"}


@pytest.fixture
def movement_types(db_session):
    """Tipos de movimiento del catálogo indexados por nombre"""
    return {mt.name: mt for mt in db_session.query(MovementType).all()}


@pytest.fixture
def payment_methods(db_session):
    """Medios de pago del catálogo indexados por nombre"""
    return {pm.name: pm for pm in db_session.query(PaymentMethod).all()}
