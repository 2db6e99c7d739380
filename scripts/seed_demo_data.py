"""
Seed script: load the cash catalog and, optionally, demo cash sessions.

What it creates:
- Movement types and payment methods (idempotent, always).
- Branches (N, default 3): one closed session per past day and one open session for today.
- Movements: sales by payment method, deposits, expenses and withdrawals through the services.

Run inside the API container to use 'postgres' host and project PYTHONPATH:
    docker compose exec api python scripts/seed_demo_data.py --branches 3 --days 5

Note: demo sessions are intended for development environments only.
"""

# Add project root (/code) to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import random
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from app.database.database import SessionLocal
from app.modules.catalog.models import MovementType, MovementOrigin, OperationType, PaymentMethod
from app.modules.catalog.seed_data import seed_catalog
from app.modules.cash.schemas import CashRegisterOpen, CashRegisterClose, CashMovementCreate
from app.modules.cash.services import CashRegisterService, CashMovementService


def money(low: int, high: int) -> Decimal:
    return Decimal(random.randint(low * 100, high * 100)) / 100


def add_movements(db, register, manual_types, sale_type, methods, user_id, count: int):
    movement_service = CashMovementService(db)
    for _ in range(count):
        if random.random() < 0.7:
            movement_type = sale_type
            payment_method = random.choice(methods)
            sale_id = uuid4()
        else:
            movement_type = random.choice(manual_types)
            payment_method = next(m for m in methods if m.is_cash)
            sale_id = None
        movement_service.create_movement(
            CashMovementCreate(
                cash_register_id=register.id,
                movement_type_id=movement_type.id,
                payment_method_id=payment_method.id,
                amount=money(5, 300) if movement_type.operation_type == OperationType.ENTRADA else money(5, 80),
                description=movement_type.name,
                sale_id=sale_id
            ),
            user_id=user_id
        )


def create_demo_sessions(db, branches: int, days: int, movements: int):
    manual_types = db.query(MovementType).filter(
        MovementType.origin == MovementOrigin.MANUAL,
        MovementType.is_cash_movement.is_(True)
    ).all()
    sale_type = db.query(MovementType).filter(MovementType.name == "Venta").one()
    methods = db.query(PaymentMethod).filter(PaymentMethod.is_active.is_(True)).all()
    register_service = CashRegisterService(db)

    branch_ids = [uuid4() for _ in range(branches)]
    for branch_id in branch_ids:
        user_id = uuid4()
        for day in range(days, -1, -1):
            initial = register_service.get_last_closure(branch_id)["last_closure_amount"] or Decimal("1000.00")
            register = register_service.open_cash_register(
                CashRegisterOpen(branch_id=branch_id, initial_amount=initial), user_id=user_id
            )
            register.opened_at = datetime.utcnow() - timedelta(days=day, hours=8)
            db.commit()

            add_movements(db, register, manual_types, sale_type, methods, user_id, movements)

            if day == 0:
                continue
            expected = register_service.get_cash_register_report(register.id)["expected_cash_balance"]
            counted = max(expected + random.choice([Decimal("0"), Decimal("0"), money(-20, 20)]), Decimal("0"))
            register_service.close_cash_register(
                register.id, CashRegisterClose(counted_cash=counted), user_id=user_id
            )
    return branch_ids


def main():
    parser = argparse.ArgumentParser(description="Seed cash catalog and demo sessions")
    parser.add_argument("--catalog-only", action="store_true")
    parser.add_argument("--branches", type=int, default=3)
    parser.add_argument("--days", type=int, default=5)
    parser.add_argument("--movements", type=int, default=25)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        print("Loading catalog...")
        created = seed_catalog(db)
        print(f"Movement types created: {created['movement_types']}, payment methods created: {created['payment_methods']}")

        if args.catalog_only:
            return

        print("Creating demo sessions...")
        branch_ids = create_demo_sessions(db, args.branches, args.days, args.movements)

        print("\nSeed completed.")
        print("Branch IDs:")
        for branch_id in branch_ids:
            print(f"  {branch_id}")
        print("Headers for API requests:")
        print(f"  X-User-ID: {uuid4()}")
        print("  X-User-Role: admin")
    finally:
        db.close()


if __name__ == "__main__":
    main()
