#!/usr/bin/env python3
"""
Script para gestionar migraciones de base de datos con Alembic
y cargar el catálogo de caja.
"""
import sys
from pathlib import Path

# Agregar el directorio raíz al path
root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from alembic.config import Config
from alembic import command
from app.core.config import settings
from app.database.database import SessionLocal
from app.modules.catalog.seed_data import seed_catalog

USAGE = """Uso:
  python migrate.py create 'message'  # Crear migración
  python migrate.py upgrade [rev]     # Ejecutar migraciones (default: head)
  python migrate.py downgrade [rev]   # Rollback (default: -1)
  python migrate.py history           # Ver historial
  python migrate.py current           # Ver actual
  python migrate.py seed              # Cargar tipos de movimiento y medios de pago
  python migrate.py setup             # upgrade head + seed"""


def get_alembic_config():
    """Obtener configuración de Alembic."""
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    command.revision(get_alembic_config(), autogenerate=True, message=message)
    print(f"Migración creada: {message}")


def run_migrations(revision: str = "head"):
    command.upgrade(get_alembic_config(), revision)
    print(f"Migraciones ejecutadas hasta {revision}")


def rollback_migration(revision: str = "-1"):
    command.downgrade(get_alembic_config(), revision)
    print(f"Rollback ejecutado ({revision})")


def seed():
    """Cargar el catálogo estándar (idempotente)."""
    db = SessionLocal()
    try:
        created = seed_catalog(db)
    finally:
        db.close()
    print(
        f"Catálogo cargado: {created['movement_types']} tipos de movimiento, "
        f"{created['payment_methods']} medios de pago nuevos"
    )


def main(argv):
    if len(argv) < 2:
        print(USAGE)
        return 1

    action = argv[1]
    arg = argv[2] if len(argv) > 2 else None

    if action == "create":
        if not arg:
            print("Error: Se requiere un mensaje para la migración")
            return 1
        create_migration(arg)
    elif action == "upgrade":
        run_migrations(arg or "head")
    elif action == "downgrade":
        rollback_migration(arg or "-1")
    elif action == "history":
        command.history(get_alembic_config())
    elif action == "current":
        command.current(get_alembic_config())
    elif action == "seed":
        seed()
    elif action == "setup":
        run_migrations()
        seed()
    else:
        print(f"Acción desconocida: {action}")
        print(USAGE)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
