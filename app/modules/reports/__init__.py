"""
Reports Module

Reportes de caja de solo lectura sobre las tablas del motor de caja.
Este módulo NO crea tablas: recalcula todo desde los movimientos.

Funcionalidades principales:
- Tablero consolidado multi-sucursal (saldo, ingresos, egresos, movimientos)
- Reporte de cierre de una caja
- Auditoría de cierres (cuadra / sobrante / faltante, tasa de acierto)

Architecture Pattern: Service Layer
- routers/ -> Define FastAPI endpoints con validaciones
- services/ -> Lógica de negocio y consultas
- schemas/ -> Modelos Pydantic para requests y responses
"""

from .routers import cash_registers_router

__all__ = [
    "cash_registers_router"
]
